"""zkmodexp logging.

Configuration of the ``zkmodexp`` logger hierarchy with JSON or text output.
"""

from .core import (
    ROOT_LOGGER_NAME,
    LogConfig,
    LogContext,
    LogLevel,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from .formatters import JSONFormatter, TextFormatter

__all__ = [
    "ROOT_LOGGER_NAME",
    "LogLevel",
    "LogConfig",
    "LogContext",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
    "JSONFormatter",
    "TextFormatter",
]
