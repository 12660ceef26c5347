"""Headshot Studio: turn a user photo into a styled professional headshot."""

__version__ = "1.0.0"
