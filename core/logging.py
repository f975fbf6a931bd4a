"""
Logging configuration
"""

import logging
import sys
import time
from core.config import settings

_PROCESS_START = time.monotonic()


class ElapsedFilter(logging.Filter):
    """Stamp every record with seconds since process start (``%(elapsed)s``)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.elapsed = f"{time.monotonic() - _PROCESS_START:.1f}"
        return True


def setup_logging():
    """Configure application logging"""

    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ElapsedFilter())

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | +%(elapsed)ss | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Per-request and per-statement chatter drowns the per-partition lines
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {settings.LOG_LEVEL} level")
