"""
Logging configuration utilities for the AFK client.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple


PACKAGE_LOGGERS = ['src.afkbot', 'src.utils']


class EditionLogAdapter(logging.LoggerAdapter):
    """
    Prefix every message with an edition tag, e.g. ``[JAVA] Logged in``.
    """

    def __init__(self, logger: logging.Logger, tag: str):
        super().__init__(logger, {"edition": tag})
        self.tag = tag

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.tag}] {msg}", kwargs


def edition_logger(name: str, tag: str) -> EditionLogAdapter:
    """Get an edition-tagged adapter around the named logger."""
    return EditionLogAdapter(logging.getLogger(name), tag)


def setup_logger(
    name: str,
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    include_timestamp: bool = True
) -> logging.Logger:
    """
    Set up a logger with consistent formatting.
    
    Args:
        name: Logger name
        level: Logging level
        format_string: Custom format string
        include_timestamp: Whether to include timestamp in logs
        
    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    
    # Avoid adding multiple handlers
    if logger.handlers:
        return logger
    
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    
    if format_string is None:
        if include_timestamp:
            format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        else:
            format_string = '%(name)s - %(levelname)s - %(message)s'
    
    formatter = logging.Formatter(format_string)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    
    return logger


def set_global_log_level(level: int) -> None:
    """
    Set the global logging level for all loggers.
    
    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO)
    """
    logging.getLogger().setLevel(level)
    
    for logger_name in PACKAGE_LOGGERS:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)


def configure_debug_logging() -> None:
    """Configure debug-level logging for development."""
    set_global_log_level(logging.DEBUG)
    
    debug_format = '%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s'
    
    for logger_name in [''] + PACKAGE_LOGGERS:
        for handler in logging.getLogger(logger_name).handlers:
            handler.setFormatter(logging.Formatter(debug_format))


def silence_external_loggers() -> None:
    """Silence noisy external library loggers."""
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('dotenv').setLevel(logging.WARNING)
    logging.getLogger('rich').setLevel(logging.WARNING)
