"""
Global error handler for the Aurora student records client.

This module provides centralized error handling including:
- Unhandled exception logging
- Installation of the process-wide exception hook
"""

import sys

from .logger import setup_logging

logger = setup_logging()

def handle_exception(exc_type, exc_value, exc_traceback):
    """
    Global exception handler that logs unhandled exceptions.

    Args:
        exc_type: Exception type
        exc_value: Exception value
        exc_traceback: Exception traceback
    """
    if issubclass(exc_type, KeyboardInterrupt):
        # Don't log keyboard interrupts
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    logger.error(
        "Unhandled exception",
        exc_info=(exc_type, exc_value, exc_traceback)
    )

def setup_global_exception_handler():
    """Set up the global exception handler."""
    sys.excepthook = handle_exception
    logger.info("Global exception handler installed")
