"""Logging setup for the boxcloud entry points.

Library modules only create loggers; handlers are installed here, once,
by the CLI or the web app.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional


DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

MAX_BYTES = 5 * 1024 * 1024  # 5 MB
BACKUP_COUNT = 3


def setup_logging(
    level: int = logging.WARNING,
    log_file: Optional[str] = None,
    fmt: str = DEFAULT_FORMAT,
) -> None:
    """Configure the root logger with a stderr handler.

    When *log_file* is given, records are also written to a
    RotatingFileHandler capped at MAX_BYTES with BACKUP_COUNT backups.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(
            RotatingFileHandler(log_file, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT)
        )
    logging.basicConfig(level=level, format=fmt, handlers=handlers, force=True)
