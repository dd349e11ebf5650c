"""
Logging configuration for the whole service.

Logs to the console and, when LOG_FILE is set, to a rotating file.
Modules keep using ``logging.getLogger(__name__)``.
"""
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Install console (and optional rotating file) handlers on the root logger.

    Safe to call more than once; only the first call has an effect.
    """
    global _configured
    if _configured:
        return
    _configured = True

    level = level.upper()
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)
    root.addHandler(console)

    if log_file:
        directory = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(directory, exist_ok=True)

        # Keeps the last 10 x 5MB files
        file_handler = RotatingFileHandler(
            filename=log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)


def reset_logging() -> None:
    """Allow configure_logging() to run again (for testing)."""
    global _configured
    _configured = False
