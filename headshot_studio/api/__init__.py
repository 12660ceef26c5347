"""HTTP routers."""

from . import headshot, health

__all__ = ["headshot", "health"]
