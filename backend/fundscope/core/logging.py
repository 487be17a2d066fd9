"""
Logging configuration for the API process and the Celery workers.
"""

import logging
import sys
from typing import Optional

from fundscope.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Library loggers and the level they run at unless DEBUG is on
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "celery": logging.INFO,
    "celery.beat": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger and library log levels."""
    root_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    logging.basicConfig(
        level=root_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for name, library_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(logging.DEBUG if settings.DEBUG else library_level)

    # SQL statements only when DB_ECHO asks for them
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DB_ECHO else logging.WARNING
    )
