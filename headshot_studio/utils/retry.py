"""Bounded retry with exponential backoff for async operations.

Each attempt reports an explicit ``AttemptResult`` instead of raising, so the
loop only ever decides between three outcomes: success, retryable failure,
and terminal failure. Terminal failures stop the loop on the attempt they
occur; retryable failures are retried until ``max_attempts`` is reached.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from .logger import get_logger
from .errors import PipelineTimeoutError

logger = get_logger(__name__)

T = TypeVar('T')

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class AttemptResult(Generic[T]):
    """Outcome of a single attempt."""
    value: Optional[T] = None
    error: Optional[Exception] = None
    retryable: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "AttemptResult[T]":
        return cls(value=value)

    @classmethod
    def retry(cls, error: Exception) -> "AttemptResult[T]":
        return cls(error=error, retryable=True)

    @classmethod
    def terminal(cls, error: Exception) -> "AttemptResult[T]":
        return cls(error=error, retryable=False)


@dataclass(frozen=True)
class RetryPolicy:
    """How many attempts to make and how long to wait between them."""
    max_attempts: int = 3
    base_delay: float = 1.0

    def delay_for(self, attempt: int) -> float:
        """Delay after failed ``attempt`` (counted from 1): base * 2^(attempt-1)."""
        return self.base_delay * (2 ** (attempt - 1))


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Final result of a retry loop."""
    result: AttemptResult[T]
    attempts: int
    delays: tuple

    @property
    def exhausted(self) -> bool:
        """True when the last failure was retryable but no attempts were left."""
        return not self.result.ok and self.result.retryable


async def run_with_backoff(
    attempt_fn: Callable[[int], Awaitable[AttemptResult[T]]],
    policy: RetryPolicy,
    sleep: SleepFn = asyncio.sleep,
    operation: str = "operation",
) -> RetryOutcome[T]:
    """
    Run ``attempt_fn`` until it succeeds, fails terminally, or attempts run out.

    Args:
        attempt_fn: Coroutine function receiving the 1-based attempt number
        policy: Attempt count and backoff base
        sleep: Delay coroutine (injectable so tests do not actually wait)
        operation: Name used in log records

    Returns:
        RetryOutcome with the last attempt's result and the delays applied
    """
    delays = []
    result: AttemptResult[T] = AttemptResult.terminal(RuntimeError("no attempts made"))
    attempt = 0

    for attempt in range(1, policy.max_attempts + 1):
        result = await attempt_fn(attempt)

        if result.ok:
            return RetryOutcome(result=result, attempts=attempt, delays=tuple(delays))

        if not result.retryable:
            logger.error(
                f"{operation} failed with non-retryable error on attempt {attempt}",
                extra={
                    "operation": operation,
                    "attempt": attempt,
                    "error": str(result.error),
                }
            )
            break

        if attempt == policy.max_attempts:
            logger.error(
                f"{operation} failed after {policy.max_attempts} attempts",
                extra={
                    "operation": operation,
                    "attempts": policy.max_attempts,
                    "error": str(result.error),
                }
            )
            break

        delay = policy.delay_for(attempt)
        logger.warning(
            f"{operation} attempt {attempt}/{policy.max_attempts} failed, retrying in {delay}s",
            extra={
                "operation": operation,
                "attempt": attempt,
                "max_attempts": policy.max_attempts,
                "delay_seconds": delay,
                "error": str(result.error),
            }
        )
        delays.append(delay)
        await sleep(delay)

    return RetryOutcome(result=result, attempts=attempt, delays=tuple(delays))


async def timeout_async(coro, seconds: float):
    """
    Run an async coroutine with a timeout.

    Args:
        coro: Coroutine to run
        seconds: Timeout in seconds

    Returns:
        Result of the coroutine

    Raises:
        PipelineTimeoutError: If timeout is exceeded
    """
    try:
        return await asyncio.wait_for(coro, timeout=seconds)
    except asyncio.TimeoutError:
        raise PipelineTimeoutError(f"Request timed out after {seconds:g} seconds")
