"""Retry policy for artifact downloads.

Failures are classified once, here: transport errors (no response, 5xx,
408, 429) and digest mismatches are retried with exponential backoff;
other 4xx replies are fatal on the first attempt.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from vmgr.core.errors import DigestMismatch, FatalHTTPError, TransportError

from .http import HttpError

__all__ = ["RetryPolicy", "classify_http_error", "is_retryable"]

RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})


def classify_http_error(error: HttpError) -> TransportError | FatalHTTPError:
    """Turn a raw HTTP failure into a retryable or fatal error value."""
    status = error.status
    if 400 <= status < 500 and status not in RETRYABLE_CLIENT_STATUSES:
        return FatalHTTPError(url=error.url, status=status, reason=error.message)
    return TransportError(url=error.url, status=status, reason=error.message)


def is_retryable(error: TransportError | FatalHTTPError | DigestMismatch) -> bool:
    return not isinstance(error, FatalHTTPError)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """How many extra attempts to make and how long to wait before each.

    Attributes:
        max_retries: Extra attempts after the first (total = max_retries + 1)
        base_delay: Seconds before the first retry; doubles each time
        sleep: Injected for tests
    """

    max_retries: int = 3
    base_delay: float = 2.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_before(self, attempt: int) -> float:
        """Backoff before attempt number ``attempt`` (1-based retry count).

        ``base_delay * 2**(attempt-1)``: 2s, 4s, 8s with the defaults.
        """
        if attempt < 1:
            return 0.0
        return self.base_delay * (2 ** (attempt - 1))

    def wait(self, attempt: int) -> None:
        delay = self.delay_before(attempt)
        if delay > 0:
            self.sleep(delay)
