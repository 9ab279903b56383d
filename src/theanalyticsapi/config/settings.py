"""Configuration management for the analytics client.

This module provides the client configuration dataclass, environment variable
overrides, and the duration parsing used for timeouts and flush intervals.
"""

from __future__ import annotations

import os
import platform
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from loguru import logger

from ..sender.http_sender import SenderConfig

LIBRARY_NAME = "theanalyticsapi"
LIBRARY_VERSION = "1.0.8"
DEFAULT_HOST = "https://tanalytics-collector-api-6wyfjoyn3q-uc.a.run.app"

_DURATION_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?|\.\d+)\s*(ms|msecs?|milliseconds?|s|secs?|seconds?|m|mins?|minutes?|h|hrs?|hours?|d|days?)?\s*$", re.IGNORECASE)

_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}


def parse_duration(value: Union[int, float, str, None]) -> Optional[float]:
    """Convert a duration to seconds.

    Numbers are taken as seconds. Strings may carry a unit suffix
    ("250ms", "2s", "1.5m", "1h", "1d"); a bare numeric string is seconds.

    Args:
        value: Number of seconds, duration string, or None

    Returns:
        Duration in seconds, or None when no duration was given

    Raises:
        ValueError: If the value cannot be interpreted as a duration
    """
    if value is None or value is False:
        return None

    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")

    if isinstance(value, (int, float)):
        return float(value)

    if not isinstance(value, str):
        raise ValueError(f"Invalid duration: {value!r}")

    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")

    amount, unit = match.groups()
    unit = (unit or "s").lower()
    # "ms", "msec", "millisecond(s)" all start with "m" but are not minutes
    key = "ms" if unit.startswith("ms") or unit.startswith("milli") else unit[0]
    return float(amount) * _UNIT_SECONDS[key]


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean: {value!r}")


@dataclass
class ClientConfig:
    """Complete analytics client configuration."""

    # Collector settings
    host: str = DEFAULT_HOST
    timeout: Union[int, float, str, None] = None  # Seconds or duration string

    # Batching settings
    flush_at: int = 20  # Maximum events per batch
    flush_interval: Union[int, float, str, None] = 10.0  # 0/None disables the timer

    # Delivery settings
    enable: bool = True
    retry_count: int = 3
    retry_backoff_base: float = 0.1
    retry_backoff_max: float = 10.0

    # Enrichment identity, injected rather than read inside the enricher
    library_name: str = LIBRARY_NAME
    library_version: str = LIBRARY_VERSION
    runtime_version: str = field(default_factory=platform.python_version)

    log_level: str = "WARNING"

    def __post_init__(self):
        """Normalize values passed to the constructor."""
        self.host = self.host.rstrip("/")
        # 0 means no timeout, like leaving it unset
        self.timeout = parse_duration(self.timeout) or None
        self.flush_interval = parse_duration(self.flush_interval) or 0.0

        try:
            self.flush_at = max(int(self.flush_at), 1)
        except (TypeError, ValueError):
            logger.warning(f"Invalid flush_at: {self.flush_at!r}, using 20")
            self.flush_at = 20

        try:
            self.retry_count = int(self.retry_count)
        except (TypeError, ValueError):
            logger.warning(f"Invalid retry_count: {self.retry_count!r}, using 3")
            self.retry_count = 3

    @classmethod
    def from_env(cls, **options: Any) -> "ClientConfig":
        """Build a configuration from environment variables and explicit options.

        ``THEANALYTICSAPI_*`` variables only fill in what the caller left out:
        an option passed with a value other than None always wins.
        """
        values = cls._env_values()
        values.update({name: value for name, value in options.items() if value is not None})
        return cls(**values)

    @staticmethod
    def _env_values() -> Dict[str, Any]:
        """Read configuration values from environment variables."""
        values: Dict[str, Any] = {}

        if host := os.getenv("THEANALYTICSAPI_HOST"):
            values["host"] = host

        if timeout := os.getenv("THEANALYTICSAPI_TIMEOUT"):
            try:
                values["timeout"] = parse_duration(timeout)
            except ValueError:
                logger.warning(f"Invalid timeout: {timeout}")

        if flush_at := os.getenv("THEANALYTICSAPI_FLUSH_AT"):
            try:
                values["flush_at"] = int(flush_at)
            except ValueError:
                logger.warning(f"Invalid flush at: {flush_at}")

        if flush_interval := os.getenv("THEANALYTICSAPI_FLUSH_INTERVAL"):
            try:
                values["flush_interval"] = parse_duration(flush_interval)
            except ValueError:
                logger.warning(f"Invalid flush interval: {flush_interval}")

        if enable := os.getenv("THEANALYTICSAPI_ENABLE"):
            try:
                values["enable"] = _parse_bool(enable)
            except ValueError:
                logger.warning(f"Invalid enable flag: {enable}")

        if retry_count := os.getenv("THEANALYTICSAPI_RETRY_COUNT"):
            try:
                values["retry_count"] = int(retry_count)
            except ValueError:
                logger.warning(f"Invalid retry count: {retry_count}")

        if log_level := os.getenv("THEANALYTICSAPI_LOG_LEVEL"):
            values["log_level"] = log_level.upper()

        return values

    @property
    def user_agent(self) -> str:
        return f"{self.library_name}-client-python/{self.library_version}"

    def get_sender_config(self, write_key: str) -> SenderConfig:
        """Get configuration for the HTTP sender."""
        return SenderConfig(
            host=self.host,
            write_key=write_key,
            user_agent=self.user_agent,
            timeout_seconds=self.timeout,
            max_retries=self.retry_count,
            retry_backoff_base=self.retry_backoff_base,
            retry_backoff_max=self.retry_backoff_max,
        )

    def validate(self) -> tuple[bool, list[str]]:
        """Validate the configuration.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        if not self.host:
            errors.append("Host is required")
        elif not self.host.startswith(("http://", "https://")):
            errors.append(f"Host must be an http(s) URL: {self.host}")

        if self.timeout is not None and self.timeout <= 0:
            errors.append("Timeout must be positive")

        if self.flush_interval < 0:
            errors.append("Flush interval must not be negative")

        if self.retry_count < 0:
            errors.append("Retry count must not be negative")

        return len(errors) == 0, errors
