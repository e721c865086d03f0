"""Logging configuration for aztui."""

import logging
import sys
from pathlib import Path
from typing import Optional


def setup_logger(
    name: str = "aztui", level: int = logging.INFO, log_file: Optional[Path] = None
) -> logging.Logger:
    """Set up and return a logger instance.

    Logs to stderr, or to ``log_file`` when given (the TUI owns the terminal).
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    # Format
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    logger.addHandler(handler)
    return logger
