"""
Centralized logging configuration.
Console output always; rotating file output when LOG_FILE is set.
"""
from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path


def setup_logging(settings) -> logging.Logger:
    """
    Configure the root logger from settings.

    Args:
        settings: Settings instance (LOG_LEVEL, LOG_FORMAT, LOG_FILE)

    Returns:
        The configured root logger
    """
    log_level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    formatter = logging.Formatter(settings.LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers (create_application may run more than once in tests)
    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Third-party loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    root_logger.info("Logging initialized at %s level", logging.getLevelName(log_level))
    return root_logger
