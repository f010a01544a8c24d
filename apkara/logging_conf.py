"""Logging for the bot: stdout, a rotating file and optional BetterStack shipping.

Records carry the thread name so lines from the dispatch thread, the context
sweeper and uvicorn's request workers can be told apart.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from logtail import LogtailHandler

from apkara import settings

LOG_FORMAT = "%(asctime)s - %(name)s - [%(threadName)s] - %(levelname)s - %(message)s"
LOG_FILE = "app.log"

# Chatty third-party loggers
QUIET_LOGGERS = ("urllib3", "uvicorn.access")


def _file_handler(formatter):
    handler = RotatingFileHandler(settings.LOGS_DIR / LOG_FILE, maxBytes=10 * 1024 * 1024, backupCount=5)
    handler.setLevel(logging.INFO)
    handler.setFormatter(formatter)
    return handler


def _betterstack_handler(formatter):
    """LogtailHandler for the configured source, or None when shipping is off."""
    if not settings.BETTERSTACK_SOURCE_TOKEN:
        return None

    kwargs = {"source_token": settings.BETTERSTACK_SOURCE_TOKEN}
    if settings.BETTERSTACK_INGEST_HOST:
        kwargs["host"] = settings.BETTERSTACK_INGEST_HOST
    handler = LogtailHandler(**kwargs)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging(level_name: str = None) -> logging.Logger:
    """Configure the root logger once and return the bot's logger."""
    level = getattr(logging, (level_name or settings.LOG_LEVEL).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)
    root.addHandler(_file_handler(formatter))

    try:
        betterstack = _betterstack_handler(formatter)
    except Exception as e:
        root.warning(f"Failed to initialize BetterStack logging: {e}")
    else:
        if betterstack is not None:
            root.addHandler(betterstack)
            root.info(f"BetterStack logging enabled (host: {settings.BETTERSTACK_INGEST_HOST or 'default'})")

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # uvicorn runs with log_config=None; send its records through the handlers above
    for name in ("uvicorn", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True

    return logging.getLogger("apkara")


logger = setup_logging()
