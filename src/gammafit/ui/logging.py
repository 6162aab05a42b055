"""Logging configuration for the gammafit UI."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from rich.logging import RichHandler

from gammafit.ui.console import VERSION, console

LOGGER_NAME = "gammafit"

# Module-level logger (configured by setup_logging)
_logger: logging.Logger | None = None


class JSONFormatter(logging.Formatter):
    """JSON lines log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as one JSON object."""
        log_record = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def setup_logging(
    log_file: Path | None = None,
    verbose: bool = False,
    level: int = logging.INFO,
    log_format: str | None = None,
) -> logging.Logger:
    """Configure the ``gammafit`` logger.

    Args:
        log_file: Log file
        verbose: Also log to the console through rich
        level: Logging level
        log_format: ``"json"`` forces JSON lines, ``"text"`` plain lines;
            by default the file suffix decides

    Returns
    -------
        The configured logger
    """
    global _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setLevel(level)
        use_json = log_format == "json" or (log_format is None and log_file.suffix == ".json")
        if use_json:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s | %(levelname)-5s | %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
        logger.addHandler(file_handler)

    if verbose:
        console_handler = RichHandler(
            console=console,
            show_time=False,
            show_path=False,
            markup=False,
        )
        console_handler.setLevel(level)
        logger.addHandler(console_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
        _logger = None
        return logger

    _logger = logger
    logger.info(f"gammafit v{VERSION} - session started")
    logger.info(f"Command: {' '.join(sys.argv)}")
    logger.info(f"Working directory: {Path.cwd()}")
    return logger


def close_logging() -> None:
    """Close logging and release the handlers."""
    global _logger

    if _logger is None:
        return
    _logger.info("gammafit session completed")
    for handler in _logger.handlers[:]:
        handler.close()
        _logger.removeHandler(handler)
    _logger = None


__all__ = ["LOGGER_NAME", "JSONFormatter", "close_logging", "setup_logging"]
