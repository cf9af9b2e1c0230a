"""
Logging configuration shared by the API server and the scripts.

Importing ``blog_api.app`` builds the application, which already calls
``setup_logging`` with the level from settings.  Scripts such as
``seed_posts.py`` call it again with their own level, so a repeated
call must take effect: the level is always reapplied, while handlers
are only attached once.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level_from_name(level: str) -> int:
    """Map a level name such as ``"debug"`` to its number, defaulting to INFO."""
    numeric_level = logging.getLevelName(level.upper())
    return numeric_level if isinstance(numeric_level, int) else logging.INFO


def _has_file_handler(logger: logging.Logger, log_path: Path) -> bool:
    return any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == str(log_path)
        for handler in logger.handlers
    )


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``, ``"INFO"``).  Case
        insensitive; unknown names fall back to ``INFO``.  Applied on
        every call.
    logfile : Optional[str]
        Path of a file to also log to, resolved relative to the current
        working directory.  Each distinct file gets one handler no
        matter how often it is requested.

    A console handler is attached only if the root logger has no
    handlers yet, so test runners and embedding applications keep
    their own.
    """
    logger = logging.getLogger()
    logger.setLevel(_level_from_name(level))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if logfile:
        log_path = Path(logfile).resolve()
        if not _has_file_handler(logger, log_path):
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
