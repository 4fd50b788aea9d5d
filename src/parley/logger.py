"""
Centralized logging for Parley.

Everything logs through the 'parley' logger tree. setup_logging() attaches a
file handler (errors always land in logs/parley.log) and, optionally, a
console handler for interactive runs.
"""

import logging
from pathlib import Path
from typing import Optional

LOGGER_NAME = "parley"

# Log directory used when none is configured, relative to the working directory
LOGS_DIR_NAME = "logs"

# Format: [2024-01-15 14:30:25] ERROR - message
_FORMAT = '[%(asctime)s] %(levelname)s - %(message)s'
_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(level: str = "INFO", log_to_file: bool = True,
                  log_dir: Optional[str] = None, console: bool = True) -> logging.Logger:
    """
    Configure the 'parley' logger.

    Args:
        level: Level name for the console handler ("DEBUG", "INFO", ...)
        log_to_file: Whether to keep an error log file
        log_dir: Directory for the log file (defaults to ./logs)
        console: Whether to also log to stderr

    Returns:
        The configured 'parley' logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Remove any existing handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)

    if log_to_file:
        logs_dir = Path(log_dir) if log_dir else Path.cwd() / LOGS_DIR_NAME
        logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(logs_dir / "parley.log", mode='a', encoding='utf-8')
        file_handler.setLevel(logging.ERROR)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(getattr(logging, str(level).upper(), logging.INFO))
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get the 'parley' logger or one of its children."""
    if not name:
        return logging.getLogger(LOGGER_NAME)
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


# Convenience functions for logging
def log_error(message, exception=None):
    """
    Log an error message.

    Args:
        message: Error message string
        exception: Optional exception object to include traceback
    """
    logger = get_logger()
    if exception:
        logger.error(f"{message}: {str(exception)}", exc_info=exception)
    else:
        logger.error(message)


def log_exception(exception, context=""):
    """
    Log an exception with full traceback.

    Args:
        exception: Exception object
        context: Optional context string (e.g., "in on_final listener")
    """
    logger = get_logger()
    if context:
        logger.error(f"Exception {context}", exc_info=exception)
    else:
        logger.error("Exception occurred", exc_info=exception)
