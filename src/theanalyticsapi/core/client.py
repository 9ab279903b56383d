"""Analytics client: validate, enrich, queue and deliver track events.

    client = TheAnalyticsAPI("write-key")
    client.track({"userId": "42", "event": "Signed Up"})
    client.close()
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

from loguru import logger

from ..batcher import EventBatcher, Sender
from ..config.settings import ClientConfig
from ..queuer import EventQueue, QueueConfig
from ..sender import HTTPSender
from .enricher import MessageEnricher
from .errors import AnalyticsError
from .events import TRACK, EntryCallback, FlushCallback, QueueEntry, noop
from .validation import validate_message


class TheAnalyticsAPI:
    """Buffers track events in memory and delivers them to the collector in batches."""

    def __init__(
        self,
        write_key: str,
        host: Optional[str] = None,
        timeout: Union[int, float, str, None] = None,
        flush_at: Optional[int] = None,
        flush_interval: Union[int, float, str, None] = None,
        enable: Optional[bool] = None,
        retry_count: Optional[int] = None,
        sender: Optional[Sender] = None,
        config: Optional[ClientConfig] = None,
    ):
        """Initialize the client with the project's write key.

        Options left as None are read from ``THEANALYTICSAPI_*`` environment
        variables, then fall back to the defaults of :class:`ClientConfig`.

        Args:
            write_key: Project write key, sent in the ``api_key`` header
            host: Collector base URL
            timeout: Per-request timeout, seconds or a duration string like "2s"; 0 means none
            flush_at: Maximum events per batch (20)
            flush_interval: Seconds a partial batch may wait (10), 0 disables the timer
            enable: When False nothing is queued or sent and callbacks get no error
            retry_count: Maximum retries for transient delivery failures (3)
            sender: Transport override, an HTTPSender is built when omitted
            config: Full configuration, takes precedence over the keyword options
        """
        if not write_key:
            raise ValueError("You must pass your project's write key.")

        if config is None:
            config = ClientConfig.from_env(
                host=host or None,
                timeout=timeout,
                flush_at=flush_at,
                flush_interval=flush_interval,
                enable=enable if isinstance(enable, bool) else None,
                retry_count=retry_count,
            )

        is_valid, errors = config.validate()
        if not is_valid:
            raise ValueError(f"Invalid client configuration: {'; '.join(errors)}")

        self.write_key = write_key
        self.config = config
        self._enable = bool(config.enable)

        self.enricher = MessageEnricher(
            library_name=config.library_name,
            library_version=config.library_version,
            runtime_version=config.runtime_version,
        )
        self.queue = EventQueue(QueueConfig(flush_at=config.flush_at, flush_interval=config.flush_interval))
        self.sender = sender if sender is not None else HTTPSender(config.get_sender_config(write_key))
        self.batcher = EventBatcher(self.queue, self.sender, enable=self._enable)

        logger.debug(f"Initialized analytics client for {config.host} (flush_at={config.flush_at}, flush_interval={config.flush_interval}, enable={self._enable})")

    @property
    def enable(self) -> bool:
        return self._enable

    @property
    def host(self) -> str:
        return self.config.host

    @property
    def flush_at(self) -> int:
        return self.queue.config.flush_at

    @property
    def flush_interval(self) -> float:
        return self.queue.config.flush_interval

    def track(self, message: Mapping[str, Any], callback: Optional[EntryCallback] = None) -> "TheAnalyticsAPI":
        """Send a track ``message``.

        Args:
            message: Event with ``event`` and a ``userId`` or ``anonymousId``
            callback: Called once with an error, or None, after the event's batch was attempted

        Returns:
            The client, for chaining

        Raises:
            ValidationError: If the message is malformed; nothing is queued
        """
        validate_message(message, TRACK)
        self.enqueue(TRACK, message, callback)
        return self

    def enqueue(self, type_: str, message: Mapping[str, Any], callback: Optional[EntryCallback] = None) -> None:
        """Add a ``message`` of type ``type_`` to the queue and check whether it should be flushed."""
        callback = callback or noop

        if self.batcher.closed:
            raise AnalyticsError("Cannot enqueue on a closed client")

        if not self._enable:
            self.batcher.defer(callback, None)
            return

        record = self.enricher.enrich(message, type_)

        with self.queue.lock:
            first = not self.queue.flushed
            due = self.queue.push(QueueEntry(record, callback))

            if first:
                self.batcher.flush()
                return

            if due:
                self.batcher.flush()

            self.queue.arm_timer(self._flush_on_timer)

    def flush(self, callback: Optional[FlushCallback] = None):
        """Flush the current queue.

        Callbacks run on the delivery worker that also resolves this future,
        so a callback may call ``flush()`` but must not wait on its result:
        the future cannot complete until the callback returns.

        Args:
            callback: Called once with ``(error, batch)``

        Returns:
            Future resolving to the sent batch, or None when nothing was sent
        """
        return self.batcher.flush(callback)

    def close(self, timeout: Optional[float] = None) -> bool:
        """Deliver everything still queued and release the delivery worker.

        Returns:
            True if all deliveries finished within ``timeout``
        """
        return self.batcher.shutdown(timeout=timeout)

    def get_stats(self) -> Dict[str, Any]:
        stats = {
            "queue": self.queue.get_stats(),
            "batcher": self.batcher.get_stats(),
        }
        if hasattr(self.sender, "get_stats"):
            stats["sender"] = self.sender.get_stats()
        return stats

    def _flush_on_timer(self) -> None:
        if self.batcher.closed:
            return
        logger.debug("Flush interval elapsed")
        self.batcher.flush()

    def __enter__(self) -> "TheAnalyticsAPI":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
