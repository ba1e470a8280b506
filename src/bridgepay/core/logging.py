"""
Logging setup for BridgePay.

All modules log under the ``bridgepay`` logger tree. Payment attempts log
through an adapter that prefixes every line with the attempt id, since
concurrent attempts interleave on the same handlers.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

LOGGER_NAME = "bridgepay"

_HUMAN_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"
_JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
    '"name": "%(name)s", "message": "%(message)s"}'
)


def configure_logging(level: int | str = logging.INFO, json_format: bool = False) -> logging.Logger:
    """
    Configure the BridgePay logger.

    Args:
        level: Logging level (e.g., logging.INFO, "DEBUG")
        json_format: Emit one JSON-shaped object per line (for log shippers)

    Returns:
        The configured logger instance.
    """
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Re-configuring replaces the handler instead of stacking another
    if logger.handlers:
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if json_format:
        handler.setFormatter(logging.Formatter(_JSON_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(_HUMAN_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)

    # Host applications keep their own root configuration
    logger.propagate = False

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a child logger of bridgepay."""
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)


class AttemptLogger(logging.LoggerAdapter):
    """Prefixes messages with ``[attempt <id>]``."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        return f"[attempt {self.extra['attempt_id']}] {msg}", kwargs


def get_attempt_logger(name: str, attempt_id: str) -> AttemptLogger:
    """Get a logger that tags every line with a payment attempt id."""
    return AttemptLogger(get_logger(name), {"attempt_id": attempt_id})
