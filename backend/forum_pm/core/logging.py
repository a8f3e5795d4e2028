# backend/forum_pm/core/logging.py
from __future__ import annotations

import logging
import sys
from typing import Optional

from forum_pm.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    console: bool = True,
) -> logging.Logger:
    """Configures and returns a logger instance."""
    logger = logging.getLogger(name)
    logger.setLevel((level or settings.log_level).upper())

    # Called once per module at import time; don't stack handlers on reload
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    log_file = log_file or settings.log_file
    if log_file:
        try:
            fh = logging.FileHandler(log_file)
            fh.setFormatter(formatter)
            logger.addHandler(fh)
        except OSError as e:
            print(f"Warning: Could not set up file logging to {log_file}: {e}", file=sys.stderr)

    if console:
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(formatter)
        logger.addHandler(ch)

    return logger
