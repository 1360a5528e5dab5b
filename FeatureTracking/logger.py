"""
Logging for FeatureTracking.

Every module logs through a child of the "FeatureTracking" logger obtained
with get_logger(). Entry points (the CLI, scripts, notebooks) call
configure_logging() once to decide where those records go; without it the
package stays silent apart from Python's last-resort warnings.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .exceptions import ConfigurationError

ROOT_LOGGER_NAME = "FeatureTracking"

# [2025-10-31 10:15:30] [INFO] [FeatureTracking.pipeline] Run FAST+BRISK: frames 0-9
LOG_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def get_logger(name: str) -> logging.Logger:
    """
    Get logger for a module of the package

    Args:
        name: Module name (e.g., 'pipeline', 'statistics', 'frame_buffer')
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(level: str = "INFO",
                      log_file: Optional[str] = None,
                      console: bool = True) -> logging.Logger:
    """
    Configure the package logger

    Handlers installed by an earlier call are closed and replaced, so an
    evaluation plan running many pipelines in one process logs every line once.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Also append records to this file
        console: Write records to stdout

    Returns:
        The "FeatureTracking" logger

    Raises:
        ConfigurationError: If level is not a logging level name
    """
    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        raise ConfigurationError(f"Unknown logging level: {level}")

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
