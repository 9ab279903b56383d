"""Core analytics client components."""

from .errors import AnalyticsError, DeliveryError, TransportError, ValidationError
from .events import TRACK, Batch, EventRecord, QueueEntry
from .enricher import MessageEnricher
from .validation import TrackMessage, validate_message
from .client import TheAnalyticsAPI

__all__ = [
    # Errors
    "AnalyticsError",
    "DeliveryError",
    "TransportError",
    "ValidationError",
    # Event model
    "TRACK",
    "Batch",
    "EventRecord",
    "QueueEntry",
    # Pipeline stages
    "MessageEnricher",
    "TrackMessage",
    "validate_message",
    # Client
    "TheAnalyticsAPI",
]
