# ipgate/core/logging.py
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from schemas.config import AppConfig

APP_LOGGER_NAME = "ipgate"


def setup_logging(config: AppConfig) -> logging.Logger:
    """
    Configures the application logger from the `server.log_level` and `logging` sections.
    Safe to call more than once; handlers are replaced, not stacked.
    """
    log_level_str = config.server.log_level.upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    log_format = config.logging.format
    date_format = config.logging.date_format

    root_logger = logging.getLogger(APP_LOGGER_NAME) # Base logger for the app
    root_logger.setLevel(log_level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    # Console Handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    root_logger.addHandler(console_handler)

    # File Handler (optional)
    file_config = config.logging.file
    if file_config.path:
        log_file_path = Path(file_config.path)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file_path,
            maxBytes=file_config.max_bytes,
            backupCount=file_config.backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        root_logger.addHandler(file_handler)
        root_logger.info(f"File logging configured at: {log_file_path}")

    logging.getLogger("uvicorn.error").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING if log_level > logging.INFO else log_level)

    root_logger.info(f"Logging setup complete. Application log level set to {log_level_str}.")
    return root_logger
