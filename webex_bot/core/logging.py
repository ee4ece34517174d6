"""
Logging configuration for the Webex Meeting Bot.
Provides console output, optional file rotation and an in-memory tail
for the status endpoint.
"""

import logging
import sys
from collections import deque
from pathlib import Path
from logging.handlers import RotatingFileHandler
from datetime import datetime
from typing import Deque, Dict, List, Optional

from webex_bot.config.settings import settings

ROOT_LOGGER_NAME = "webex_bot"
LOG_DIR = Path("logs")
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        # Color a copy so other handlers see the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


class LogTailHandler(logging.Handler):
    """
    Keeps the most recent log records in memory.

    Each bot instance owns one so the status snapshot can show what the
    bot has been doing without reading log files.
    """

    def __init__(self, capacity: int = 100, level: int = logging.INFO):
        super().__init__(level=level)
        self._records: Deque[Dict[str, str]] = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._records.append({
                "timestamp": datetime.fromtimestamp(record.created).isoformat(),
                "type": record.levelname.lower(),
                "logger": record.name,
                "message": record.getMessage(),
            })
        except Exception:
            self.handleError(record)

    def tail(self, count: Optional[int] = None) -> List[Dict[str, str]]:
        """Return the last ``count`` records, oldest first."""
        records = list(self._records)
        if count is not None:
            records = records[-count:] if count > 0 else []
        return records

    def __len__(self) -> int:
        return len(self._records)


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(path: Path, level: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    enable_file_logging: Optional[bool] = None
) -> logging.Logger:
    """
    Configure the ``webex_bot`` logger tree.

    Console and file handlers are replaced on every call; per-bot
    ``LogTailHandler`` instances stay attached.

    Args:
        log_level: Level name, defaults to ``settings.log_level``
        log_file: File path, defaults to a dated file under ``logs/``
        enable_file_logging: Defaults to ``settings.log_to_file``

    Returns:
        The root application logger
    """
    level = logging.getLevelName((log_level or settings.log_level).upper())
    if enable_file_logging is None:
        enable_file_logging = settings.log_to_file

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    for handler in list(root.handlers):
        if not isinstance(handler, LogTailHandler):
            root.removeHandler(handler)

    root.addHandler(_console_handler(level))
    if enable_file_logging:
        path = Path(log_file) if log_file else LOG_DIR / f"webex_bot_{datetime.now():%Y%m%d}.log"
        root.addHandler(_file_handler(path, level))

    return root


def get_logger(name: str) -> logging.Logger:
    """Child logger ``webex_bot.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# Root application logger; handlers are attached by setup_logging()
logger = logging.getLogger(ROOT_LOGGER_NAME)
