"""TheAnalyticsAPI client - batched, retried delivery of track events."""

from loguru import logger

from .core import AnalyticsError, Batch, DeliveryError, TheAnalyticsAPI, TransportError, ValidationError
from .config import LIBRARY_VERSION, ClientConfig, setup_logging

__version__ = LIBRARY_VERSION

# Library logging stays silent until the application calls setup_logging()
logger.disable(__name__)

__all__ = ["AnalyticsError", "Batch", "ClientConfig", "DeliveryError", "TheAnalyticsAPI", "TransportError", "ValidationError", "setup_logging"]
