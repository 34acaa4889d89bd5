import logging
import os
import sys
from typing import Optional


SHARED_LOGGER_NAME = 'common'


def _build_formatter(request_id: Optional[str] = None) -> logging.Formatter:
    if request_id:
        return logging.Formatter(
            f'%(asctime)s - %(name)s - %(levelname)s - [{request_id}] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    return logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    request_id: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Module loggers named under the component package (e.g. 'chunker.chunker')
    propagate to the component logger. The shared 'common' package logs
    through the same handler.

    Args:
        component_name: Name of the component (e.g., 'chunker', 'reconstructor', 'cli')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO
        request_id: Optional request ID to include in log format

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')

    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_build_formatter(request_id))

    logger.addHandler(handler)
    logger.propagate = False

    shared = logging.getLogger(SHARED_LOGGER_NAME)
    if not shared.handlers:
        shared.setLevel(level)
        shared.addHandler(handler)
        shared.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
