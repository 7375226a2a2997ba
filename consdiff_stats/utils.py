"""
Utility helpers: logging config and progress-bar policy.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

LOG_LEVEL_ENV = "CONSDIFF_STATS_LOG_LEVEL"
_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def init_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the package logger with a single stderr handler."""
    name = level or os.getenv(LOG_LEVEL_ENV, "INFO")
    log_level = getattr(logging, name.upper(), logging.INFO)
    logger = logging.getLogger("consdiff_stats")
    logger.setLevel(log_level)
    logger.propagate = False  # avoid duplicate logs if root has handlers

    # Re-running main() in one process must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(log_level)
    ch.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(ch)
    return logger


def progress_enabled(requested: bool) -> bool:
    """Show progress bars only when asked for and stderr is a terminal."""
    return requested and sys.stderr.isatty()
