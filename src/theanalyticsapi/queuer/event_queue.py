"""In-memory event queue for the analytics client.

This module buffers enriched records until they are drained into a batch.
It owns the flush-trigger policy: the first record ever pushed and any push
that reaches ``flush_at`` call for an immediate flush, and a one-shot timer
bounds how long a partial batch may wait.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from ..core.events import QueueEntry


def should_flush(queue_length: int, has_flushed: bool, flush_at: int) -> bool:
    """Decide whether a push must flush immediately.

    Args:
        queue_length: Number of queued entries after the push
        has_flushed: Whether this queue has ever triggered a flush
        flush_at: Batch size threshold

    Returns:
        True for the first push ever and whenever the threshold is reached
    """
    return not has_flushed or queue_length >= flush_at


@dataclass
class QueueConfig:
    """Configuration for the event queue."""

    flush_at: int = 20  # Maximum entries per batch, floored at 1
    flush_interval: float = 10.0  # Seconds before a forced flush, 0 disables the timer

    def __post_init__(self):
        self.flush_at = max(int(self.flush_at or 0), 1)
        self.flush_interval = float(self.flush_interval or 0)


class EventQueue:
    """Ordered buffer of queue entries with flush-trigger bookkeeping."""

    def __init__(self, config: Optional[QueueConfig] = None):
        """Initialize the event queue.

        Args:
            config: Queue configuration
        """
        self.config = config or QueueConfig()
        self._queue: deque[QueueEntry] = deque()
        self._lock = threading.RLock()
        self._timer: Optional[threading.Timer] = None
        self._flushed = False

        # Statistics
        self._total_enqueued = 0
        self._total_dequeued = 0

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def flushed(self) -> bool:
        return self._flushed

    def push(self, entry: QueueEntry) -> bool:
        """Append an entry and report whether a flush is due.

        The first push ever marks the queue as flushed.

        Args:
            entry: Entry to append

        Returns:
            True if the caller should flush now
        """
        with self._lock:
            self._queue.append(entry)
            self._total_enqueued += 1

            due = should_flush(len(self._queue), self._flushed, self.config.flush_at)
            self._flushed = True

            logger.debug(f"Enqueued {entry.message.get('event')!r}, queue size: {len(self._queue)}")
            return due

    def take(self, limit: Optional[int] = None) -> list[QueueEntry]:
        """Remove and return up to ``limit`` entries, oldest first.

        Args:
            limit: Maximum number of entries, ``flush_at`` by default

        Returns:
            List of entries (may be empty)
        """
        limit = limit or self.config.flush_at
        entries = []

        with self._lock:
            while len(entries) < limit and self._queue:
                entries.append(self._queue.popleft())
            self._total_dequeued += len(entries)

        if entries:
            logger.debug(f"Dequeued batch of {len(entries)} entries, queue size: {len(self._queue)}")

        return entries

    def arm_timer(self, callback: Callable[[], object]) -> bool:
        """Arm the one-shot flush timer if enabled and not already pending.

        Returns:
            True if a new timer was started
        """
        with self._lock:
            if not self.config.flush_interval or self._timer is not None:
                return False

            self._timer = threading.Timer(self.config.flush_interval, callback)
            self._timer.daemon = True
            self._timer.start()
            logger.debug(f"Armed flush timer for {self.config.flush_interval:.2f}s")
            return True

    def disarm_timer(self) -> None:
        """Cancel the pending flush timer, if any."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def has_timer(self) -> bool:
        with self._lock:
            return self._timer is not None

    def size(self) -> int:
        """Return the current queue size."""
        with self._lock:
            return len(self._queue)

    def is_empty(self) -> bool:
        """Check if the queue is empty."""
        with self._lock:
            return len(self._queue) == 0

    def get_stats(self) -> dict:
        """Get queue statistics."""
        with self._lock:
            return {
                "current_size": len(self._queue),
                "flush_at": self.config.flush_at,
                "flush_interval": self.config.flush_interval,
                "flushed": self._flushed,
                "timer_pending": self._timer is not None,
                "total_enqueued": self._total_enqueued,
                "total_dequeued": self._total_dequeued,
            }
