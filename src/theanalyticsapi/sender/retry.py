"""Retry classification and backoff timing for collector requests."""

from __future__ import annotations

import http.client
import random
import socket
from dataclasses import dataclass
from typing import Optional
from urllib.error import HTTPError, URLError

NETWORK_ERRORS = (URLError, ConnectionError, TimeoutError, socket.timeout, http.client.HTTPException)


def response_status(error: BaseException) -> Optional[int]:
    """Return the HTTP status carried by ``error``, or None when there was no response."""
    if isinstance(error, HTTPError):
        return error.code
    status = getattr(error, "status", None)
    return status if isinstance(status, int) else None


@dataclass
class RetryPolicy:
    """Decides which failures are retried and how long to wait between attempts."""

    max_retries: int = 3
    backoff_base: float = 0.1  # Delay before the first retry
    backoff_max: float = 10.0
    jitter: float = 0.2  # Fraction of the delay added at random

    def is_retryable(self, error: BaseException) -> bool:
        status = response_status(error)

        # Network errors never reached the collector
        if status is None:
            return isinstance(error, NETWORK_ERRORS)

        # Server errors (5xx)
        if 500 <= status <= 599:
            return True

        # Rate limited
        return status == 429

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        """Check whether ``attempt`` (0-based) may be followed by another one."""
        return attempt < self.max_retries and self.is_retryable(error)

    def delay(self, attempt: int) -> float:
        """Exponential backoff delay in seconds before retry number ``attempt + 1``."""
        delay = min(self.backoff_base * (2**attempt), self.backoff_max)
        return delay + delay * self.jitter * random.random()
