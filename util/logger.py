# util/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Tuple
from config.settings import settings

logging.captureWarnings(True)

_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# Third-party loggers that flood INFO with per-request lines.
_QUIET: Tuple[str, ...] = ("httpx", "httpcore", "sentence_transformers", "filelock")


class ColoredFormatter(logging.Formatter):
    """Colors the level name of console records only; the record is restored afterwards."""

    COLORS = {
        "DEBUG": "\033[37m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        record.levelname = f"{self.COLORS.get(original, self.RESET)}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if sys.stdout.isatty():
        handler.setFormatter(ColoredFormatter(_FORMAT, datefmt=_DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def _file_handler(level: int) -> logging.Handler:
    os.makedirs(settings.LOG_DIR, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(settings.LOG_DIR, settings.LOG_FILE_NAME),
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def init_logger() -> logging.Logger:
    """
    Configure the root logger once per process and return the engine logger.
    - stdout always, colored when attached to a terminal
    - size-rotated file under LOG_DIR when LOG_TO_FILE is set
    - level from LOG_LEVEL, unknown names fall back to INFO
    """
    root = logging.getLogger()
    if getattr(root, "_factcheck_inited", False):
        return logging.getLogger(settings.LOGGER_NAME)

    level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)

    root.addHandler(_console_handler(level))
    if settings.LOG_TO_FILE:
        root.addHandler(_file_handler(level))

    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)

    root._factcheck_inited = True  # type: ignore[attr-defined]
    logger = logging.getLogger(settings.LOGGER_NAME)
    logger.debug("logger.init level=%s file=%s", logging.getLevelName(level), settings.LOG_TO_FILE)
    return logger
