"""HTTP sender for transmitting event batches to the collector.

This module provides HTTP/HTTPS transport for posting batches to the
collector's track endpoint with write-key authentication and transparent
retries for transient failures.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from loguru import logger

from ..core.errors import TransportError
from ..core.events import Batch
from .retry import RetryPolicy


@dataclass
class SenderConfig:
    """Configuration for the HTTP sender."""

    host: str = "http://localhost:8000"  # Collector base URL, no trailing slash
    track_endpoint: str = "/api/track/events"

    # Authentication
    write_key: str = ""
    user_agent: str = "theanalyticsapi-client-python"

    # HTTP settings
    timeout_seconds: Optional[float] = None  # None waits indefinitely
    max_retries: int = 3
    retry_backoff_base: float = 0.1
    retry_backoff_max: float = 10.0

    @property
    def track_url(self) -> str:
        return f"{self.host}{self.track_endpoint}"


class HTTPSender:
    """HTTP sender for transmitting event batches."""

    def __init__(
        self,
        config: Optional[SenderConfig] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the HTTP sender.

        Args:
            config: Sender configuration
            retry_policy: Retry classification and backoff, built from config when omitted
            sleep: Function used to wait between attempts
        """
        self.config = config or SenderConfig()
        self.retry_policy = retry_policy or RetryPolicy(
            max_retries=self.config.max_retries,
            backoff_base=self.config.retry_backoff_base,
            backoff_max=self.config.retry_backoff_max,
        )
        self._sleep = sleep

        # Statistics
        self._total_batches_sent = 0
        self._total_batches_failed = 0
        self._total_events_sent = 0
        self._total_retries = 0
        self._last_successful_send: Optional[datetime] = None
        self._last_error: Optional[str] = None

    def send_batch(self, batch: Batch) -> None:
        """Send a batch of events to the collector.

        Retryable failures are retried with exponential backoff; only the final
        outcome is reported.

        Args:
            batch: Event batch to send

        Raises:
            TransportError: The collector answered with an error status
            URLError: The collector could not be reached
        """
        start_time = time.time()
        payload = batch.to_json().encode("utf-8")

        try:
            self._send_with_retries(self.config.track_url, payload)
        except Exception as e:
            self._total_batches_failed += 1
            self._last_error = str(e)
            logger.error(f"Failed to send batch of {batch.size()} events: {e}")
            raise

        self._total_batches_sent += 1
        self._total_events_sent += batch.size()
        self._last_successful_send = datetime.now()
        self._last_error = None
        logger.info(f"Successfully sent batch with {batch.size()} events in {time.time() - start_time:.2f}s")

    def get_stats(self) -> Dict[str, Any]:
        """Get sender statistics.

        Returns:
            Dictionary with sender statistics
        """
        attempted = self._total_batches_sent + self._total_batches_failed
        return {
            "total_batches_sent": self._total_batches_sent,
            "total_batches_failed": self._total_batches_failed,
            "total_events_sent": self._total_events_sent,
            "total_retries": self._total_retries,
            "success_rate": self._total_batches_sent / max(1, attempted),
            "last_successful_send": self._last_successful_send.isoformat() if self._last_successful_send else None,
            "last_error": self._last_error,
        }

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": self.config.user_agent,
            "api_key": self.config.write_key,
        }

    def _send_with_retries(self, url: str, payload: bytes) -> None:
        """Send payload, retrying while the policy allows it."""
        attempt = 0
        while True:
            try:
                self._send_request(url, payload)
                return
            except Exception as e:
                if not self.retry_policy.should_retry(e, attempt):
                    raise

                delay = self.retry_policy.delay(attempt)
                attempt += 1
                self._total_retries += 1
                logger.warning(f"Send attempt {attempt} failed: {e}. Retrying in {delay:.1f}s...")
                self._sleep(delay)

    def _send_request(self, url: str, payload: bytes) -> None:
        """Send a single HTTP request.

        Raises:
            TransportError: On any HTTP error status
        """
        req = Request(url, data=payload, headers=self._headers(), method="POST")

        kwargs = {}
        if self.config.timeout_seconds:
            kwargs["timeout"] = self.config.timeout_seconds

        try:
            with urlopen(req, **kwargs) as response:
                logger.debug(f"Successful response: {response.status}")
        except HTTPError as e:
            body = ""
            try:
                body = e.read().decode("utf-8", errors="replace")
            except Exception:
                logger.debug("Could not read error response body")
            raise TransportError(e.code, str(e.reason), body) from e
