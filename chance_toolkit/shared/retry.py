"""
Backoff retries for the I/O around the draw engine.

Relay fetches and snapshot loads are retried on transient failures. The
engine's replay functions are pure and are called exactly once.

A NonRetryableException (or anything outside the retryable tuple)
propagates on the first occurrence.
"""

import logging
import time
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

import httpx

from chance_toolkit.shared.exceptions import RetryableException

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    RetryableException,  # BeaconFetchException
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
)


def _compute_delay(
    attempt: int, base_delay: float, max_delay: float, exponential: bool
) -> float:
    if exponential:
        return min(base_delay * (2**attempt), max_delay)
    return base_delay


def retry_sync_operation(
    operation: Callable[..., T],
    *args: Any,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential: bool = True,
    retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    operation_name: Optional[str] = None,
    **kwargs: Any,
) -> T:
    """
    Call `operation(*args, **kwargs)`, sleeping and calling again on a
    retryable failure.

    Args:
        operation: Callable to invoke
        max_attempts: Total number of calls, first one included
        base_delay: Seconds to wait after the first failure
        max_delay: Ceiling for the exponential wait
        exponential: Double the wait after each failure when True
        retryable_exceptions: Failures worth another call
        operation_name: Label used in the retry log line

    Returns:
        Whatever the first successful call returns

    Raises:
        The last retryable exception once every attempt has failed, or the
        first non-retryable one immediately.
    """
    retryable = retryable_exceptions or DEFAULT_RETRYABLE_EXCEPTIONS
    name = operation_name or getattr(operation, "__name__", "operation")

    for attempt in range(max_attempts):
        try:
            return operation(*args, **kwargs)
        except retryable as e:
            if attempt + 1 >= max_attempts:
                raise
            delay = _compute_delay(attempt, base_delay, max_delay, exponential)
            logger.warning(
                f"{name} failed ({attempt + 1}/{max_attempts}): {e}; "
                f"next try in {delay:.1f}s"
            )
            time.sleep(delay)

    raise ValueError(f"max_attempts must be positive, got {max_attempts}")


class RetryConfig:
    """A named retry policy shared by every call of one collaborator."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential: bool = True,
        retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential = exponential
        self.retryable_exceptions = (
            retryable_exceptions or DEFAULT_RETRYABLE_EXCEPTIONS
        )

    def run(self, operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call `operation` under this policy."""
        return retry_sync_operation(
            operation,
            *args,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            exponential=self.exponential,
            retryable_exceptions=self.retryable_exceptions,
            **kwargs,
        )


# drand relays answer fast or not at all
HTTP_RETRY_CONFIG = RetryConfig(max_attempts=3, base_delay=0.5, max_delay=5.0)

SOURCE_RETRY_CONFIG = RetryConfig(max_attempts=3, base_delay=1.0, max_delay=10.0)
