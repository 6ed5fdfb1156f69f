"""Bounded retry with increasing backoff for store operations.

Every store call in this package runs through ``call_with_retry``. Path
errors and local read errors are never retried; anything else raised by the
operation is retried until the attempt ceiling, then surfaced as
``StorageError`` chained to the last underlying error.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from bucketstream.infra.storage.client import (
    InvalidPathError,
    ReadError,
    StorageError,
)

if TYPE_CHECKING:
    from bucketstream.common.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0  # seconds

# Errors that cannot succeed on a later attempt.
NON_RETRYABLE: tuple[type[Exception], ...] = (InvalidPathError, ReadError)


def backoff_delay(attempt: int, base: float = DEFAULT_BASE_DELAY) -> float:
    """Return the sleep before retrying after ``attempt`` (1-based) failed."""
    return base * attempt * attempt


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    attempts: int = DEFAULT_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RetryPolicy":
        return cls(
            attempts=settings.TRANSFER_ATTEMPTS,
            base_delay=settings.TRANSFER_BACKOFF_SECONDS,
        )


def call_with_retry(
    operation: Callable[[int], T],
    *,
    description: str,
    policy: RetryPolicy | None = None,
    verbose: bool = False,
    sleep: Callable[[float], None] = time.sleep,
    can_retry: Callable[[], bool] | None = None,
    error_cls: type[Exception] = StorageError,
) -> T:
    """Run ``operation`` until it succeeds or the attempts are exhausted.

    Args:
        operation: Callable receiving the 1-based attempt number.
        description: Human readable action used in log notices,
            e.g. ``"download file from s3://bucket/key"``.
        policy: Attempt ceiling and backoff base. Defaults to 3 attempts.
        verbose: Emit attempt notices at INFO instead of DEBUG.
        sleep: Blocking sleep function, injectable for tests.
        can_retry: Called after a failed non-final attempt; returning False
            gives up immediately (e.g. a stream that cannot be rewound).
        error_cls: Error raised once attempts are exhausted.

    Returns:
        Whatever ``operation`` returns on the first successful attempt.

    Raises:
        InvalidPathError: Propagated untouched.
        ReadError: Propagated untouched.
        error_cls: After the final attempt fails.
    """
    policy = policy or RetryPolicy()
    notice = logging.INFO if verbose else logging.DEBUG

    for attempt in range(1, policy.attempts + 1):
        logger.log(notice, "Attempt %d to %s", attempt, description)
        try:
            result = operation(attempt)
        except NON_RETRYABLE:
            raise
        except Exception as exc:
            logger.log(notice, "Error: %s", exc)
            logger.log(notice, "Attempt: %d", attempt)
            if attempt == policy.attempts:
                logger.log(notice, "This was last attempt")
                raise error_cls(
                    f"Failed to {description} after {attempt} attempts: {exc}"
                ) from exc
            if can_retry is not None and not can_retry():
                logger.log(notice, "Cannot retry: stream was partially consumed")
                raise error_cls(
                    f"Failed to {description} on attempt {attempt}, "
                    f"stream cannot be replayed: {exc}"
                ) from exc
            sleep(backoff_delay(attempt, policy.base_delay))
            continue
        logger.log(notice, "Succeeded to %s on attempt %d", description, attempt)
        return result

    raise AssertionError("unreachable")
