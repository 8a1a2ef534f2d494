"""
Logging Setup Module

This module provides a centralized logging configuration for the Waveform Metadata API.
Everything goes to standard error; nothing is written to a durable store.
"""

import logging
import sys

from .config import LOG_LEVEL

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(name="waveform_api", level=None):
    """
    Set up the service logger with a single stderr handler

    Args:
        name (str): Logger name. Child loggers created with getLogger(__name__)
            inside the package propagate to it.
        level (int or str, optional): Logging level. Defaults to LOG_LEVEL from config.

    Returns:
        logging.Logger: Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level or LOG_LEVEL)

    # Prevent propagation to avoid duplicate messages under uvicorn's root handlers
    logger.propagate = False

    # Remove existing handlers to avoid duplicates
    if logger.handlers:
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    return logger
