"""Debug log setup.

The terminal belongs to the TUI, so logs only ever go to a rotating file.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from till.config import DEBUG_LOG_PATH

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_MAX_BYTES = 2 * 1024 * 1024
_BACKUP_COUNT = 3


class TillLogHandler(logging.handlers.RotatingFileHandler):
    """Rotating file handler that drops records it cannot write."""

    def handleError(self, record: logging.LogRecord) -> None:
        # stderr belongs to the TUI, so a failed write loses only this record.
        return None


def configure_logging(log_path: str = DEBUG_LOG_PATH, level: int = logging.DEBUG) -> logging.Handler | None:
    """Attach a rotating file handler to the ``till`` logger.

    Returns the handler, or None when the log file cannot be opened; the app
    then runs without a debug log.
    """
    logger = logging.getLogger("till")
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    try:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = TillLogHandler(
            path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
        )
    except OSError:
        logger.addHandler(logging.NullHandler())
        return None

    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    return handler
