"""Centralized logging configuration for chatsink."""

import logging
import sys
from typing import Optional


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    verbose: bool = False,
) -> logging.Logger:
    """Configure library-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        verbose: If True, sets level to DEBUG

    Returns:
        Configured ``chatsink`` logger

    Example:
        >>> logger = setup_logging(verbose=True)
        >>> logger.info("Analytics sink started")
    """
    log_level = logging.DEBUG if verbose else getattr(logging, level.upper())

    logger = logging.getLogger("chatsink")
    logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger nested under the ``chatsink`` logger

    Example:
        >>> logger = get_logger("reconciler")
        >>> logger.name
        'chatsink.reconciler'
    """
    if name == "chatsink" or name.startswith("chatsink."):
        return logging.getLogger(name)
    return logging.getLogger(f"chatsink.{name}")
