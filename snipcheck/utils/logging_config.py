"""Logging configuration."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "snipcheck"


class JsonFormatter(logging.Formatter):
    """Format log records as JSON for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_obj = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }
        snippet = getattr(record, "snippet", None)
        if snippet is not None:
            log_obj["snippet"] = snippet
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj)


def setup_logging(
    log_level: str = "WARNING",
    json_logs: bool = False,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Set up logging configuration.

    Log records always go to stderr so stdout stays reserved for the report.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to format records as JSON
        log_file: Optional extra log file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level.upper())

    # Remove existing handlers
    logger.handlers.clear()

    text_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    formatter = JsonFormatter() if json_logs else text_formatter

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def get_logger() -> logging.Logger:
    """Get the snipcheck logger instance."""
    return logging.getLogger(LOGGER_NAME)
