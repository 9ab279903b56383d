"""HTTP sender module for the analytics client."""

from .http_sender import HTTPSender, SenderConfig
from .retry import RetryPolicy

__all__ = ["HTTPSender", "RetryPolicy", "SenderConfig"]
