"""Logging configuration for capture-dedupe."""

import logging
import sys
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "capture_dedupe"


def setup_logger(
    name: str = PACKAGE_LOGGER,
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up a logger with console and optional file output.

    Console output goes to stderr so machine-readable reports on stdout
    stay clean.

    Args:
        name: Logger name
        level: Logging level (default: INFO)
        log_file: Optional file path for log output

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(fmt="%(levelname)s: %(message)s")
    )
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # More verbose in file
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    return logger


def set_log_level(level: int, log_file: Optional[Path] = None) -> None:
    """
    Reconfigure every capture-dedupe logger created so far.

    Args:
        level: New logging level
        log_file: Optional file to mirror log output into
    """
    names = [
        name
        for name in logging.Logger.manager.loggerDict
        if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + ".")
    ]
    for name in names:
        setup_logger(name, level=level, log_file=log_file)
