"""
Logging setup for Alexandria tools.

Library modules only create loggers with logging.getLogger(__name__);
handlers and levels are configured once by the entry point.
"""

from __future__ import annotations

import logging

import json_log_formatter

from .config import Settings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Settings) -> None:
    """Configure root logging based on settings.

    Args:
        settings: Alexandria settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]
