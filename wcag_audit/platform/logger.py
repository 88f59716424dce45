import logging
import os
from logging.handlers import RotatingFileHandler

from wcag_audit.platform.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

log_dir = os.path.abspath(settings.LOG_DIR)
os.makedirs(log_dir, exist_ok=True)
log_file_path = os.path.join(log_dir, "wcag_audit.log")


def get_logger(name: str) -> logging.Logger:
    """
    Logger writing to the console and to logs/wcag_audit.log.

    The web app and the Celery worker share the same file; both rotate it.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    logger.setLevel(level)
    # uvicorn and celery install root handlers of their own
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(
        log_file_path,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    console_handler = logging.StreamHandler()

    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        handler.setLevel(level)
        logger.addHandler(handler)

    return logger
