"""Logging setup for the zulip_client library and the zulip-events command.

The library only ever logs through ``logger``. Handlers are installed by
``setup_logging()``, which the command line entry point calls once.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from logtail import LogtailHandler

from zulip_client import settings

logger = logging.getLogger("zulip_client")

# Polls run on their own thread, so the thread name is part of every line
LOG_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_NAME = "zulip-events.log"


def _level() -> int:
    return getattr(logging, settings.LOG_LEVEL, logging.INFO)


def _betterstack_handler(formatter: logging.Formatter) -> Optional[logging.Handler]:
    """Build the BetterStack handler, or None if it cannot be created."""
    handler_kwargs = {"source_token": settings.BETTERSTACK_SOURCE_TOKEN}
    if settings.BETTERSTACK_INGEST_HOST:
        handler_kwargs["host"] = settings.BETTERSTACK_INGEST_HOST
    try:
        handler = LogtailHandler(**handler_kwargs)
    except Exception as e:
        logger.warning(f"Failed to initialize BetterStack logging: {e}")
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> logging.Logger:
    """Install console, file and BetterStack handlers on the root logger."""
    root_logger = logging.getLogger()
    root_logger.setLevel(_level())
    root_logger.handlers = []
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(_level())
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if settings.LOG_DIR:
        settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(settings.LOG_DIR / LOG_FILE_NAME, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if settings.BETTERSTACK_SOURCE_TOKEN:
        betterstack_handler = _betterstack_handler(formatter)
        if betterstack_handler is not None:
            root_logger.addHandler(betterstack_handler)
            host_info = settings.BETTERSTACK_INGEST_HOST or "default (in.logs.betterstack.com)"
            logger.info(f"BetterStack logging enabled (host: {host_info})")

    # Long-poll connections would otherwise log every reconnect
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return root_logger
