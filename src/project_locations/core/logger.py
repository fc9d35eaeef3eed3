"""
Logging configuration for the project location subsystem.

Console and file handlers on the package logger, plus an adapter that tags
records with the editing session they belong to. Background imports and
searches log from worker threads, so the session tag is what ties a record to
the project being edited.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

# HTTP libraries are chatty at DEBUG; keep them at WARNING unless asked.
NOISY_LOGGERS = ("urllib3", "requests")


def setup_logger(
    name: str = "project_locations",
    log_file: Optional[str] = None,
    log_level: str = "INFO",
    console_level: str = "INFO",
    quiet_http: bool = True
) -> logging.Logger:
    """
    Set up the package logger with console and file handlers.

    Args:
        name: Logger name
        log_file: Path to log file. If None, uses LOG_FILE env var or default
        log_level: Logging level for the logger and file handler
        console_level: Logging level for the console handler
        quiet_http: Raise urllib3/requests loggers to WARNING

    Returns:
        Configured logger instance
    """
    if log_file is None:
        log_file = os.getenv("LOG_FILE", "logs/project_locations.log")

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, console_level.upper(), logging.INFO))
    console_handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(filename)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    logger.addHandler(file_handler)

    logger.propagate = False

    if quiet_http:
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


class SessionLogAdapter(logging.LoggerAdapter):
    """Prefix records with the project and session generation they concern."""

    def __init__(self, logger: logging.Logger, project_id: Optional[str], generation: int):
        super().__init__(logger, {"project_id": project_id, "generation": generation})

    def process(self, msg, kwargs):
        return f"[project {self.extra['project_id']} #{self.extra['generation']}] {msg}", kwargs


class LoggerContext:
    """Context manager that logs the start, duration and outcome of an operation."""

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time: Optional[datetime] = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.info(f"Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = (datetime.now() - self.start_time).total_seconds()

        if exc_type is not None:
            self.logger.error(f"Failed {self.operation} after {duration:.2f}s: {exc_val}")
            return False

        self.logger.info(f"Completed {self.operation} in {duration:.2f}s")
        return False
