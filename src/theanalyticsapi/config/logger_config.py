"""Logger configuration for the analytics client."""

import sys
from typing import Any, Optional

from loguru import logger

from .settings import LIBRARY_NAME


def setup_logging(level: str = "INFO", sink: Optional[Any] = None) -> int:
    """Enable and configure loguru output for the client.

    The package disables its own loguru records on import so that host
    applications stay quiet unless they opt in through this function.

    Args:
        level: Minimum level to emit
        sink: Where to write records, stderr by default

    Returns:
        The loguru handler id, usable with ``logger.remove``
    """
    logger.enable(LIBRARY_NAME)

    handler_id = logger.add(
        sink=sink if sink is not None else sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level.upper(),
        filter=LIBRARY_NAME,
        colorize=sink is None,
    )

    logger.debug(f"Logging enabled for {LIBRARY_NAME} at level {level.upper()}")
    return handler_id
