"""
Logging configuration for the article_intel pipeline.
"""

import logging
import sys
from typing import Optional, Union


def setup_logger(
    name: str = "article_intel",
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up and return a logger instance.

    Calling this again on an already configured logger only updates its
    level, so the CLI can raise verbosity after import time.

    Args:
        name: Logger name
        level: Logging level, as an int or a name such as "DEBUG"
        log_file: Optional file path for logging

    Returns:
        Configured logger instance
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


logger = setup_logger()


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get a child logger for a pipeline module, e.g. "article_intel.dates".

    Args:
        module_name: Name of the module (e.g., 'orchestrator', 'threats')

    Returns:
        Child logger instance
    """
    return logging.getLogger(f"article_intel.{module_name}")
