"""Exception types raised and reported by the analytics client."""

from __future__ import annotations

from typing import Optional


class AnalyticsError(Exception):
    """Base class for analytics client errors."""


class ValidationError(AnalyticsError, ValueError):
    """A message failed shape checks and was not queued."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class TransportError(AnalyticsError):
    """The collector answered a request with an error status."""

    def __init__(self, status: int, status_text: str, response_body: str = ""):
        super().__init__(f"HTTP {status}: {status_text}")
        self.status = status
        self.status_text = status_text
        self.response_body = response_body


class DeliveryError(AnalyticsError):
    """A batch was rejected by the collector.

    The message is the collector's status text; the status code is kept
    for callers that want to branch on it.
    """

    def __init__(self, status_text: str, status: Optional[int] = None):
        super().__init__(status_text)
        self.status_text = status_text
        self.status = status

    @classmethod
    def from_transport_error(cls, error: TransportError) -> "DeliveryError":
        delivery_error = cls(error.status_text, status=error.status)
        delivery_error.__cause__ = error
        return delivery_error
