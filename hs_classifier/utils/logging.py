"""Central logging configuration for the HS code classifier.

This module handles FILE LOGGING ONLY - for terminal output, use utils.console.

Usage:
    from hs_classifier.utils.logging import get_logger, init_logging
    init_logging("classify")  # once, from the CLI entry point
    logger = get_logger(__name__)
    logger.debug("Prompt length: %d", n)  # Goes to file only

Each run writes ./logs/{name}_YYYYmmdd_HHMMSS.log at DEBUG by default;
LOG_LEVEL overrides the file level.
"""
from __future__ import annotations

import datetime
import logging
import os
from pathlib import Path
from typing import Optional

_INITIALIZED = False
LOG_DIR = Path("logs")
# Default log file, updated by init_logging
LOG_FILE = LOG_DIR / "classifier.log"
DEFAULT_FILE_LEVEL = logging.DEBUG


def _level_from_env(default: int) -> int:
    raw = os.getenv("LOG_LEVEL")
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


def init_logging(
    name: str = "classifier",
    file_level: Optional[int] = None,
    log_dir: Optional[Path] = None,
) -> Path:
    """Initialize file logging once. Safe to call multiple times.

    Args:
        name: Base name for the log file (e.g. 'classify', 'history').
              A timestamp is appended: logs/{name}_{date}.log
        file_level: Minimum level for file logging (default: LOG_LEVEL or DEBUG)
        log_dir: Directory for log files (default: ./logs)

    Returns:
        Path of the active log file.
    """
    global _INITIALIZED, LOG_FILE
    if _INITIALIZED:
        return LOG_FILE
    directory = log_dir or LOG_DIR
    directory.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    LOG_FILE = directory / f"{name}_{timestamp}.log"

    # Format: timestamp | level | module:function:line | message
    file_fmt = "%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"

    file_handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
    file_handler.setLevel(file_level if file_level is not None else _level_from_env(DEFAULT_FILE_LEVEL))
    file_handler.setFormatter(logging.Formatter(file_fmt, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(file_handler)

    # Suppress noisy third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)

    _INITIALIZED = True
    return LOG_FILE


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given module name."""
    return logging.getLogger(name)


__all__ = ["init_logging", "get_logger", "LOG_FILE"]
