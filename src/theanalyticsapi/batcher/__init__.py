"""Event batching module for the analytics client."""

from .event_batcher import EventBatcher, Sender, to_delivery_error

__all__ = ["EventBatcher", "Sender", "to_delivery_error"]
