"""Logging configuration for the AgentFlow client.

The library never configures logging on import. Applications (or the
client itself when ``debug=True``) call :func:`configure_logging` to get
a console handler on the package logger with third-party HTTP chatter
suppressed.
"""

import logging
import sys
from typing import Literal

PACKAGE_LOGGER = "agentflow_client"

# Transport libraries that log every connection at DEBUG
NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "httpcore.connection",
    "httpcore.http11",
    "asyncio",
]


def suppress_noisy_loggers() -> None:
    """Quiet third-party loggers to WARNING."""
    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
) -> None:
    """Configure the package logger.

    Sets up:
    - A stderr handler with a compact ``LEVEL | logger | message`` format
    - The package logger at the requested level
    - Third-party transport logs suppressed to WARNING+

    Calling it again replaces the handler rather than stacking a second one.

    Args:
        level: Log level (defaults to settings.log_level)
    """
    if level is None:
        from agentflow_client.settings import get_settings

        level = get_settings().log_level

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(getattr(logging, level))

    for handler in list(package_logger.handlers):
        if getattr(handler, "_agentflow_handler", False):
            package_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, level))
    console_handler.setFormatter(
        logging.Formatter(
            "%(levelname)s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    console_handler._agentflow_handler = True  # type: ignore[attr-defined]
    package_logger.addHandler(console_handler)

    suppress_noisy_loggers()
