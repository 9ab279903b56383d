"""Event batcher for draining the queue and delivering batches.

This module takes up to ``flush_at`` entries off the front of the queue,
hands the resulting batch to the sender on a single background worker, and
reports the outcome to every entry's callback and to the flush callback.
Entries leave the queue before the request is made, so new enqueues never
see an in-flight batch.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Dict, List, Optional, Protocol
from urllib.error import HTTPError

from loguru import logger

from ..core.errors import AnalyticsError, DeliveryError, TransportError
from ..core.events import Batch, FlushCallback, QueueEntry, noop, utcnow
from ..queuer import EventQueue


class Sender(Protocol):
    def send_batch(self, batch: Batch) -> Any: ...


def to_delivery_error(error: BaseException) -> BaseException:
    """Rebuild errors that carry a collector response around its status text."""
    if isinstance(error, TransportError):
        return DeliveryError.from_transport_error(error)
    if isinstance(error, HTTPError):
        delivery_error = DeliveryError(str(error.reason), status=error.code)
        delivery_error.__cause__ = error
        return delivery_error
    return error


class EventBatcher:
    """Flushes queued entries to the collector, one batch per request."""

    def __init__(
        self,
        queue: EventQueue,
        sender: Sender,
        enable: bool = True,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        """Initialize the event batcher.

        Args:
            queue: Queue to drain
            sender: Transport used to deliver batches
            enable: When False every flush is a no-op that still resolves its callback
            executor: Worker that runs deliveries and callbacks, single threaded by default
        """
        self.queue = queue
        self.sender = sender
        self.enable = enable
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="theanalyticsapi-flush")
        self._closed = False
        self._stats_lock = threading.Lock()

        # Statistics
        self._total_batches_sent = 0
        self._total_batches_failed = 0
        self._total_events_sent = 0
        self._total_events_failed = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def flush(self, callback: Optional[FlushCallback] = None) -> Future:
        """Flush the oldest ``flush_at`` entries.

        The returned future is completed by the single delivery worker, so
        blocking on it from a callback running on that worker never returns.

        Args:
            callback: Called once with ``(error, batch)`` after the attempt

        Returns:
            Future resolving to the sent batch, or None when nothing was sent
        """
        callback = callback or noop

        if self._closed:
            raise AnalyticsError("Cannot flush a closed client")

        if not self.enable:
            return self.defer(callback, None, None)

        with self.queue.lock:
            self.queue.disarm_timer()

            entries = self.queue.take()
            if not entries:
                return self.defer(callback, None, None)

            now = utcnow()
            batch = Batch(messages=tuple(entry.message for entry in entries), timestamp=now, sent_at=now)

            # Submitted under the lock so batches reach the worker in queue order
            return self._executor.submit(self._deliver, entries, batch, callback)

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """Flush everything still queued and stop the delivery worker.

        Args:
            timeout: Seconds to wait for in-flight deliveries, None waits indefinitely

        Returns:
            True if every delivery finished within the timeout
        """
        if self._closed:
            return True

        futures = []
        while not self.queue.is_empty():
            futures.append(self.flush())
        self.queue.disarm_timer()

        _, not_done = wait(futures, timeout=timeout)
        if not_done:
            logger.warning(f"{len(not_done)} batches still in flight at shutdown")

        self._closed = True
        self._executor.shutdown(wait=not not_done)

        logger.info(f"Stopped event batcher. Stats - Batches sent: {self._total_batches_sent}, Batches failed: {self._total_batches_failed}, Events sent: {self._total_events_sent}")
        return not not_done

    def get_stats(self) -> Dict[str, Any]:
        """Get batcher statistics."""
        with self._stats_lock:
            return {
                "enabled": self.enable,
                "closed": self._closed,
                "total_batches_sent": self._total_batches_sent,
                "total_batches_failed": self._total_batches_failed,
                "total_events_sent": self._total_events_sent,
                "total_events_failed": self._total_events_failed,
            }

    def defer(self, callback, *args) -> Future:
        """Run ``callback(*args)`` on the delivery worker, after anything already scheduled.

        Returns:
            Future resolving to None once the callback has run
        """
        return self._executor.submit(self._invoke, callback, *args)

    def _deliver(self, entries: List[QueueEntry], batch: Batch, callback: FlushCallback) -> Batch:
        """Send one batch and fan the outcome out to every callback."""
        try:
            self.sender.send_batch(batch)
        except Exception as e:
            error = to_delivery_error(e)
            with self._stats_lock:
                self._total_batches_failed += 1
                self._total_events_failed += batch.size()
            self._complete(entries, callback, error, batch)
            raise error

        with self._stats_lock:
            self._total_batches_sent += 1
            self._total_events_sent += batch.size()
        self._complete(entries, callback, None, batch)
        return batch

    def _complete(self, entries: List[QueueEntry], callback: FlushCallback, error: Optional[BaseException], batch: Batch) -> None:
        for entry in entries:
            self._invoke(entry.callback, error)
        self._invoke(callback, error, batch)

    @staticmethod
    def _invoke(callback, *args) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception("Error in delivery callback")
