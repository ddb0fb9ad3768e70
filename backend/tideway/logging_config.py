"""Logging setup for the API, the worker and the CLI."""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from tideway.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty per-request or per-task loggers
QUIET_LOGGERS = ("uvicorn.access", "multipart", "celery", "sqlalchemy.engine")


def setup_logging():
    """Configure root logging from settings."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    handlers = [console_handler]

    if settings.log_path:
        log_file = Path(settings.log_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
