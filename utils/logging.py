import logging
import sys
from typing import Optional


REALTIME_LOGGER_PREFIX = "apps.realtime"


def setup_logging(level: Optional[str] = "INFO", realtime_level: Optional[str] = None) -> None:
    """
    Configure application-wide logging.
    Uses a concise formatter compatible with Uvicorn's style.
    The realtime package logs every notification at DEBUG, so it can be
    tuned separately from the rest of the app.
    """
    log_level = _to_level(level, logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers to avoid duplicates in reloads
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    if realtime_level:
        logging.getLogger(REALTIME_LOGGER_PREFIX).setLevel(_to_level(realtime_level, log_level))

    # psycopg logs every NOTIFY delivery at DEBUG
    logging.getLogger("psycopg").setLevel(max(log_level, logging.INFO))


def _to_level(level: Optional[str], default: int) -> int:
    return getattr(logging, str(level).upper(), default) if level else default
