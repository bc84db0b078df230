"""Core logging configuration for zkmodexp.

Every zkmodexp module logs through ``logging.getLogger(__name__)``, so all
records flow through the ``zkmodexp`` logger hierarchy. This module
configures that hierarchy: level, formatter and handler selection.
"""

import logging
import sys
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

ROOT_LOGGER_NAME = "zkmodexp"


class LogLevel(Enum):
    """Log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_stdlib(self) -> int:
        """Map to the numeric level used by :mod:`logging`."""
        return getattr(logging, self.name)


@dataclass
class LogContext:
    """Context fields attached to every record emitted under a config."""

    component: Optional[str] = None
    circuit_id: Optional[str] = None
    verifier_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "component": self.component,
            "circuit_id": self.circuit_id,
            "verifier_id": self.verifier_id,
            "metadata": self.metadata,
        }


class LogConfig:
    """Log configuration."""

    def __init__(
        self,
        name: str = ROOT_LOGGER_NAME,
        level: LogLevel = LogLevel.INFO,
        format_type: str = "json",
        handlers: List[str] = None,
        file_path: Optional[str] = None,
        propagate: bool = False,
        context: Optional[LogContext] = None,
    ):
        self.name = name
        self.level = level
        self.format_type = format_type
        self.handlers = handlers or ["console"]
        self.file_path = file_path
        self.propagate = propagate
        self.context = context or LogContext()

    def validate(self) -> None:
        """Validate configuration."""
        if self.format_type not in ("json", "text"):
            raise ValueError(f"Unsupported format type: {self.format_type}")
        for handler in self.handlers:
            if handler not in ("console", "file"):
                raise ValueError(f"Unsupported handler: {handler}")
        if "file" in self.handlers and not self.file_path:
            raise ValueError("file handler requires file_path")


class _ContextFilter(logging.Filter):
    """Attaches a LogContext to each record as ``record.context``."""

    def __init__(self, context: LogContext):
        super().__init__()
        self.context = context

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "context"):
            record.context = self.context.to_dict()
        return True


_lock = threading.RLock()
_installed_handlers: List[logging.Handler] = []


def _create_formatter(config: LogConfig) -> logging.Formatter:
    from .formatters import JSONFormatter, TextFormatter

    if config.format_type == "json":
        return JSONFormatter()
    return TextFormatter()


def _create_handler(name: str, config: LogConfig) -> logging.Handler:
    if name == "console":
        return logging.StreamHandler(sys.stderr)
    return logging.FileHandler(config.file_path, encoding="utf-8")


def setup_logging(config: Optional[LogConfig] = None) -> logging.Logger:
    """Configure the zkmodexp logger hierarchy and return its root logger.

    Calling this again replaces the handlers installed by the previous call.
    """
    config = config or LogConfig()
    config.validate()

    with _lock:
        logger = logging.getLogger(config.name)
        _remove_handlers(logger)

        formatter = _create_formatter(config)
        context_filter = _ContextFilter(config.context)
        for handler_name in config.handlers:
            handler = _create_handler(handler_name, config)
            handler.setFormatter(formatter)
            handler.addFilter(context_filter)
            logger.addHandler(handler)
            _installed_handlers.append(handler)

        logger.setLevel(config.level.to_stdlib())
        logger.propagate = config.propagate
        return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger inside the zkmodexp hierarchy."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def shutdown_logging(name: str = ROOT_LOGGER_NAME) -> None:
    """Remove and close the handlers installed by :func:`setup_logging`."""
    with _lock:
        _remove_handlers(logging.getLogger(name))


def _remove_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if handler in _installed_handlers:
            logger.removeHandler(handler)
            handler.close()
            _installed_handlers.remove(handler)
