"""Configuration module for the analytics client."""

from .logger_config import setup_logging
from .settings import DEFAULT_HOST, LIBRARY_NAME, LIBRARY_VERSION, ClientConfig, parse_duration

__all__ = ["ClientConfig", "DEFAULT_HOST", "LIBRARY_NAME", "LIBRARY_VERSION", "parse_duration", "setup_logging"]
