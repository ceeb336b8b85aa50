"""
utils/logger.py
---------------
Centralized logging configuration.
All modules should use `get_logger(__name__)` to obtain a logger instance.

Cron discards stdout unless it is redirected, so LOG_FILE can point at a
rotating file that keeps the last few runs around for operators.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from config import LOG_FILE, LOG_LEVEL

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_configured = False


def _build_handlers() -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if LOG_FILE:
        handlers.append(RotatingFileHandler(LOG_FILE, maxBytes=5_000_000, backupCount=5, encoding="utf-8"))
    return handlers


def configure_logging() -> None:
    """Attach the scheduler's handlers to the root logger (idempotent)."""
    global _configured
    if _configured:
        return
    formatter = logging.Formatter(_LOG_FORMAT, _DATE_FORMAT)
    root = logging.getLogger()
    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    for handler in _build_handlers():
        handler.setFormatter(formatter)
        root.addHandler(handler)
    # python-telegram-bot logs every HTTP call through httpx at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Named logger for a module; configures logging on first use.

    Args:
        name: Usually ``__name__`` of the calling module.
    """
    configure_logging()
    return logging.getLogger(name)
