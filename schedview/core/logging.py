"""
Logging setup for the "schedview" logger tree.

Modules log through logging.getLogger(__name__); setup_logging() attaches
a terse console handler and a per-day file handler to the package root.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

ROOT_LOGGER = "schedview"

CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def log_file_for(log_dir: Path, day: date | None = None) -> Path:
    """Path of the log file for `day` (today by default)."""
    day = day or date.today()
    return log_dir / f"schedview_{day:%Y%m%d}.log"


def setup_logging(
    log_dir: Path | None = None,
    console_level: int | str = logging.WARNING,
    file_level: int | str = logging.DEBUG,
) -> logging.Logger:
    """
    Configure the package logger and return it.

    Calling it again replaces the handlers from the previous call.
    Levels are logging constants or upper-case level names.
    """
    log_dir = (log_dir or Path.home() / ".schedview" / "logs").expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_file_for(log_dir)

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    to_file = logging.FileHandler(log_file, encoding="utf-8")
    to_file.setLevel(file_level)
    to_file.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger = logging.getLogger(ROOT_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.setLevel(logging.DEBUG)
    logger.addHandler(console)
    logger.addHandler(to_file)

    logger.debug(f"Logging to {log_file}")
    return logger
