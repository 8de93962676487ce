"""Logging configuration: one log file per run, mirrored to stdout/stderr by severity."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

PACKAGE_LOGGER = "container_pipeline"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class PipelineFormatter(logging.Formatter):
    """Render ``<timestamp> - [LEVEL: ]message``; INFO and SUCCESS lines carry no level name."""

    def __init__(self) -> None:
        super().__init__(datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, self.datefmt)
        message = record.getMessage()
        if record.levelno == logging.INFO:
            line = f"{timestamp} - {message}"
        elif record.levelno == SUCCESS:
            line = f"{timestamp} - ✓ {message}"
        else:
            level = "FATAL" if record.levelno >= logging.CRITICAL else record.levelname
            line = f"{timestamp} - {level}: {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class _BelowLevelFilter(logging.Filter):
    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def configure_logging(
    log_file: str | Path,
    *,
    verbose: bool = False,
    quiet: bool = False,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach file, stdout and stderr handlers to the package logger.

    The log file is truncated and always receives DEBUG and above. Errors go
    to stderr only; everything below ERROR goes to stdout, filtered by
    ``verbose`` (DEBUG) and ``quiet`` (WARNING). Calling this again replaces
    the handlers installed by the previous call.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_pipeline_handler", False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(logging.DEBUG)

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = PipelineFormatter()

    file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)

    stdout_handler = logging.StreamHandler(stdout or sys.stdout)
    if verbose:
        stdout_handler.setLevel(logging.DEBUG)
    elif quiet:
        stdout_handler.setLevel(logging.WARNING)
    else:
        stdout_handler.setLevel(logging.INFO)
    stdout_handler.addFilter(_BelowLevelFilter(logging.ERROR))

    stderr_handler = logging.StreamHandler(stderr or sys.stderr)
    stderr_handler.setLevel(logging.ERROR)

    for handler in (file_handler, stdout_handler, stderr_handler):
        handler.setFormatter(formatter)
        handler._pipeline_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    # Set log level for specific loggers to reduce noise
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logger
