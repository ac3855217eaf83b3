# ttboard/core/logging.py
import logging
import sys
from pathlib import Path

from ttboard.core.config import settings

logger = logging.getLogger("ttboard")


def configure_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """Attach stdout (and optional file) handlers to the ``ttboard`` logger."""
    logger.setLevel((level or settings.log_level).upper())

    # Prevent duplicate handlers if called multiple times (reload, tests)
    if logger.handlers:
        return logger

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(stream_handler)

    path = log_file or settings.log_file
    if path:
        log_path = Path(path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the ``ttboard`` logger, e.g. ``ttboard.services.assignment``."""
    return logger.getChild(name)
