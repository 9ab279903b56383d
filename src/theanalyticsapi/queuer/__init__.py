"""Event queue module for the analytics client."""

from .event_queue import EventQueue, QueueConfig, should_flush

__all__ = ["EventQueue", "QueueConfig", "should_flush"]
