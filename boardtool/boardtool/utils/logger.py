"""
Logger utility for boardtool.

Implements rotating file logs in the data directory (<data>/logs/):
- boardtool.log: Main log with 5MB rotation, keeps 3 backups
- boardtool.errors.log: Errors only, 2MB rotation, keeps 2 backups
- boardtool.json: Structured JSON, 5MB rotation, keeps 2 backups
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "boardtool"

LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
}

_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra") and record.extra:
            log_data["extra"] = record.extra

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def parse_level(level: str) -> int:
    """Map a settings level name to a logging level.

    Raises:
        ValueError: If the level name is unknown.
    """
    try:
        return LEVELS[level.strip().lower()]
    except KeyError:
        raise ValueError(f"invalid logging level: {level}") from None


def get_logger(
    name: str,
    level: Optional[int] = None,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Get or create a logger with rotating file handlers.

    Logs to:
    - stderr (console) - warnings and errors only
    - <log_dir>/boardtool.log (rotating, 5MB max, 3 backups)
    - <log_dir>/boardtool.errors.log (errors only, 2MB max, 2 backups)
    - <log_dir>/boardtool.json (structured JSON, 5MB max, 2 backups)

    File handlers are only added when ``log_dir`` is given.

    Args:
        name: Logger name
        level: Optional logging level (defaults to DEBUG)
        log_dir: Directory for the rotating log files

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        text_formatter = logging.Formatter(_TEXT_FORMAT, datefmt=_DATE_FORMAT)

        # Console handler (stderr) - minimal output
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(text_formatter)
        logger.addHandler(console_handler)

        if log_dir is not None:
            try:
                log_dir.mkdir(parents=True, exist_ok=True)

                main_handler = RotatingFileHandler(
                    log_dir / "boardtool.log",
                    maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8",
                )
                main_handler.setLevel(logging.DEBUG)
                main_handler.setFormatter(text_formatter)
                logger.addHandler(main_handler)

                error_handler = RotatingFileHandler(
                    log_dir / "boardtool.errors.log",
                    maxBytes=2 * 1024 * 1024, backupCount=2, encoding="utf-8",
                )
                error_handler.setLevel(logging.ERROR)
                error_handler.setFormatter(text_formatter)
                logger.addHandler(error_handler)

                json_handler = RotatingFileHandler(
                    log_dir / "boardtool.json",
                    maxBytes=5 * 1024 * 1024, backupCount=2, encoding="utf-8",
                )
                json_handler.setLevel(logging.INFO)
                json_handler.setFormatter(JsonFormatter())
                logger.addHandler(json_handler)

            except OSError:
                pass  # Fail silently if file logging unavailable

    if level is not None:
        logger.setLevel(level)
    elif not logger.level:
        logger.setLevel(logging.DEBUG)

    return logger


def configure_logging(
    level: str = "info",
    fmt: str = "text",
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Apply the logging.level / logging.format settings to the root logger.

    ``fmt`` is "text" or "json" and selects the console formatter.

    Raises:
        ValueError: If the level or format is unknown.
    """
    if fmt not in ("text", "json"):
        raise ValueError(f"invalid logging format: {fmt}")

    logger = get_logger(ROOT_LOGGER, level=parse_level(level), log_dir=log_dir)
    for handler in logger.handlers:
        if not isinstance(handler, RotatingFileHandler):
            handler.setLevel(parse_level(level))
            if fmt == "json":
                handler.setFormatter(JsonFormatter())
            else:
                handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt=_DATE_FORMAT))
    return logger
