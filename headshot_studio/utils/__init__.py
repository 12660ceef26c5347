"""Utility modules for configuration, logging, retries and error handling."""

from .config import load_config, get_config
from .logger import get_logger
from .retry import AttemptResult, RetryPolicy, run_with_backoff, timeout_async

__all__ = [
    "load_config",
    "get_config",
    "get_logger",
    "AttemptResult",
    "RetryPolicy",
    "run_with_backoff",
    "timeout_async",
]
