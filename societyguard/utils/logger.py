# societyguard/utils/logger.py
"""
Logging setup shared by every module.
Console plus a rotating societyguard.log; log timestamps are IST wall time
so they line up with the event log and the dashboard.
"""

import logging
import os
import time
from logging.handlers import RotatingFileHandler

from societyguard.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
_DEFAULT_LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_DIR = _DEFAULT_LOG_DIR if settings.LOG_DIR is None else settings.LOG_DIR

_IST_SECONDS = 5 * 3600 + 30 * 60

_configured = False


def _ist_converter(seconds):
    return time.gmtime(seconds + _IST_SECONDS)


def _build_formatter() -> logging.Formatter:
    fmt = logging.Formatter(
        fmt="%(asctime)s IST | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    fmt.converter = _ist_converter
    return fmt


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    fmt = _build_formatter()
    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)

    console = logging.StreamHandler()
    console.setLevel(LOG_LEVEL)
    console.setFormatter(fmt)
    root.addHandler(console)

    if LOG_DIR:
        os.makedirs(LOG_DIR, exist_ok=True)
        # 10 × 5MB
        file_handler = RotatingFileHandler(
            filename=os.path.join(LOG_DIR, "societyguard.log"),
            maxBytes=5 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        )
        file_handler.setLevel(LOG_LEVEL)
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.LOG_SQL else logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger()
    return logging.getLogger(name)
