"""
Logging configuration for the ai-i18n pipeline.

This module provides centralized logging setup used across all pipeline
components. It configures consistent log formatting, log levels, and
handlers for the entire application.

Usage:
    from ai_i18n.config.logging_config import setup_logging, get_logger

    # At application startup
    setup_logging()

    # In each module
    logger = get_logger(__name__)
    logger.info("Processing started")

Author: ai-i18n contributors
License: MIT
"""

import logging
import sys
from typing import Optional


# =============================================================================
# DEFAULT CONFIGURATION
# =============================================================================

# Default log format string.
# Includes: timestamp, logger name, log level, and the actual message.
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Default date format for timestamps in log messages.
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Default logging level for the application.
DEFAULT_LOG_LEVEL = logging.INFO

# Mapping of the configuration file's verbosity names to logging levels.
LOG_LEVELS_BY_NAME = {
    "minimal": logging.WARNING,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
}


# =============================================================================
# FUNCTION DEFINITIONS
# =============================================================================

def setup_logging(
    level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    suppress_third_party: bool = True
) -> None:
    """
    Configure logging for the entire application.

    This function sets up the root logger with consistent formatting and
    optionally suppresses verbose logging from third-party libraries.
    It should be called once at application startup, before any pipeline
    component is created. Subsequent calls replace the configuration.

    Args:
        level: The logging level threshold. Messages below this level will
            not be logged. Defaults to INFO.
        log_format: The format string for log messages.
        date_format: The strftime format string for timestamps.
        suppress_third_party: If True, sets third-party library loggers to
            WARNING level to reduce noise (aiohttp, asyncio, urllib3).

    Example:
        >>> setup_logging(level=logging.DEBUG)
        >>> logger = get_logger(__name__)
        >>> logger.debug("Debug message will now be shown")
    """
    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    if suppress_third_party:
        _suppress_third_party_logging()


def _suppress_third_party_logging() -> None:
    """
    Suppress verbose logging from third-party libraries.

    The HTTP client and the event loop log connection pool and scheduling
    details at INFO/DEBUG level; these are raised to WARNING.
    """
    loggers_to_suppress = [
        # HTTP libraries can be very chatty
        "aiohttp",
        "aiohttp.client",
        "aiohttp.access",
        "urllib3",

        # Async event loop debugging
        "asyncio",

        # Rich live display internals
        "rich",
    ]

    for logger_name in loggers_to_suppress:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def level_from_name(name: str) -> int:
    """
    Translate a configuration verbosity name into a logging level.

    Args:
        name: One of "minimal", "normal" or "verbose".

    Returns:
        int: The matching logging level, INFO for unknown names.
    """
    return LOG_LEVELS_BY_NAME.get(name, DEFAULT_LOG_LEVEL)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    The returned logger inherits settings from the root logger configured
    by setup_logging(). It should be called at module level with __name__.

    Args:
        name: The name of the logger, typically the module's __name__.
            If None, returns the root logger.

    Returns:
        logging.Logger: A logger instance for the specified name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Processing %s", "src/App.tsx")
        2024-01-15 10:30:45 - ai_i18n.processing.orchestrator - INFO - Processing src/App.tsx
    """
    return logging.getLogger(name)


def set_log_level(level: int, logger_name: Optional[str] = None) -> None:
    """
    Dynamically change the log level for a specific logger or the root logger.

    Args:
        level: The new logging level to set.
        logger_name: The name of the logger to modify. If None, modifies
            the root logger which affects all loggers.

    Example:
        >>> # Enable debug logging for the LLM client only
        >>> set_log_level(logging.DEBUG, "ai_i18n.llm")
    """
    logging.getLogger(logger_name).setLevel(level)
