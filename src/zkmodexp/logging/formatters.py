"""Log formatters for zkmodexp.

Provides JSON and plain-text formatting of standard library log records.
"""

import json
import logging
import time
from typing import Optional

# Attributes every LogRecord carries; anything else was passed via ``extra``.
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "context"}


class JSONFormatter(logging.Formatter):
    """JSON log formatter."""

    def __init__(
        self,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        include_context: bool = True,
        include_exception: bool = True,
        include_extra: bool = True,
        include_thread: bool = False,
        include_process: bool = False,
        timestamp_format: str = "iso",
        indent: Optional[int] = None,
        ensure_ascii: bool = False,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        self.include_context = include_context
        self.include_exception = include_exception
        self.include_extra = include_extra
        self.include_thread = include_thread
        self.include_process = include_process
        self.timestamp_format = timestamp_format
        self.indent = indent
        self.ensure_ascii = ensure_ascii

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        data = {}

        if self.include_timestamp:
            data["timestamp"] = self._format_timestamp(record.created)

        if self.include_level:
            data["level"] = record.levelname.lower()

        if self.include_logger:
            data["logger"] = record.name

        if self.include_context and getattr(record, "context", None):
            data["context"] = record.context

        if self.include_exception and record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            data["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        if self.include_extra:
            extra = {
                key: value
                for key, value in vars(record).items()
                if key not in _RECORD_ATTRIBUTES
            }
            if extra:
                data["extra"] = extra

        if self.include_thread:
            data["thread_id"] = record.thread

        if self.include_process:
            data["process_id"] = record.process

        data["message"] = record.getMessage()

        return json.dumps(
            data, indent=self.indent, ensure_ascii=self.ensure_ascii, default=str
        )

    def _format_timestamp(self, timestamp: float) -> str:
        """Format timestamp."""
        if self.timestamp_format == "iso":
            return (
                time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(timestamp))
                + f".{int((timestamp % 1) * 1000000):06d}Z"
            )
        elif self.timestamp_format == "unix":
            return str(timestamp)
        else:
            return time.strftime(self.timestamp_format, time.gmtime(timestamp))


class TextFormatter(logging.Formatter):
    """Text log formatter."""

    def __init__(
        self,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        timestamp_format: str = "%Y-%m-%d %H:%M:%S",
    ):
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        super().__init__(fmt=self._get_default_format(), datefmt=timestamp_format)

    def _get_default_format(self) -> str:
        """Get default format string."""
        parts = []

        if self.include_timestamp:
            parts.append("%(asctime)s")

        if self.include_level:
            parts.append("[%(levelname)s]")

        if self.include_logger:
            parts.append("%(name)s:")

        parts.append("%(message)s")

        return " ".join(parts)
