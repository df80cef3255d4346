"""
Centralized logging configuration for the analytical storage tool.

This module provides a consistent logging setup for the command line entry point
and the library classes. It handles both file and console output with proper
formatting and rotation. Console output goes to stderr so that stdout only
carries the operator-facing report.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import TextIO

from config.settings import config

LOGGER_NAME = "analytical_storage"


def get_logger() -> logging.Logger:
    """Return the shared tool logger without configuring handlers."""
    return logging.getLogger(LOGGER_NAME)


def setup_logging(
    log_level: str | None = None,
    log_file: str | None = None,
    logger_name: str | None = None,
    max_bytes: int | None = None,
    backup_count: int | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Configure logging for the application with both file and console output.

    This function sets up a logger with:
    - File output with rotation to prevent large log files
    - Console output (stderr by default) for real-time monitoring
    - Consistent formatting across all modules
    - Proper handler cleanup to prevent duplicates

    Args:
        log_level (str, optional): Logging level (e.g., 'INFO', 'DEBUG', 'WARNING').
                                 If None, uses config.LOG_LEVEL
        log_file (str, optional): Path to log file. If None, uses a default based on logger_name
        logger_name (str, optional): Name for the logger. If None, uses root logger
        max_bytes (int, optional): Maximum bytes before log rotation. If None, uses config.LOG_MAX_BYTES
        backup_count (int, optional): Number of backup files to keep. If None, uses config.LOG_BACKUP_COUNT
        stream (TextIO, optional): Console stream. If None, uses sys.stderr

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> from utils.logging import setup_logging
        >>> logger = setup_logging('INFO', 'logs/my_script.log', 'my_script')
        >>> logger.info("This is a test message")
    """
    # Set defaults from config
    if log_level is None:
        log_level = config.LOG_LEVEL
    if max_bytes is None:
        max_bytes = config.LOG_MAX_BYTES
    if backup_count is None:
        backup_count = config.LOG_BACKUP_COUNT
    if stream is None:
        stream = sys.stderr

    # Determine log file path
    if log_file is None:
        if logger_name == LOGGER_NAME:
            log_file = config.LOG_FILE
        else:
            log_file = f"logs/{logger_name or 'default'}.log"

    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Get logger (root logger if no name specified)
    if logger_name:
        logger = logging.getLogger(logger_name)
    else:
        logger = logging.getLogger()

    # Set level
    logger.setLevel(getattr(logging, log_level.upper()))

    # Clear existing handlers to prevent duplicates
    logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler with rotation
    try:
        # Ensure log directory exists
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        logger.debug(f"Logging configured - Level: {log_level}, File: {log_file}")
    except OSError as e:
        logger.warning(f"Failed to setup file logging to {log_file}: {e}")
        logger.info("Continuing with console logging only")

    return logger


def setup_analytical_storage_logging(log_level: str | None = None) -> logging.Logger:
    """
    Convenience function to set up logging for disable_analytical_storage.py

    Args:
        log_level (str, optional): Logging level. If None, uses config default

    Returns:
        logging.Logger: Configured logger for the analytical storage tool
    """
    return setup_logging(
        log_level=log_level, log_file=config.LOG_FILE, logger_name=LOGGER_NAME
    )
