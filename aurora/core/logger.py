"""
Centralized logging configuration for the Aurora student records client.

This module provides a consistent logging setup with rotating file handlers
and configurable log levels.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

def setup_logging(log_level=None, log_file='aurora.log'):
    """
    Set up the ``aurora`` logger with rotating file and console handlers.

    Modules call this without a level to fetch the shared logger; only an
    explicit ``log_level`` changes the level, including on handlers that
    already exist.

    Args:
        log_level: The logging level, or None to keep the current one
            (INFO on first setup)
        log_file: The log file name (default: aurora.log)

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger('aurora')

    if logger.handlers:
        if log_level is not None:
            logger.setLevel(log_level)
            for handler in logger.handlers:
                handler.setLevel(log_level)
        return logger

    level = logging.INFO if log_level is None else log_level
    logger.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Rotating file handler (10MB max, 5 backup files)
    log_dir = Path(os.getenv('LOG_DIR', Path(__file__).parent.parent))
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_dir / log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )

    console_handler = logging.StreamHandler()

    for handler in (file_handler, console_handler):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
