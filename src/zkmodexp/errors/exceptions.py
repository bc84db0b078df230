"""Exception hierarchy for zkmodexp.

Every zkmodexp error carries a severity, a category and an optional context
naming the component and circuit involved. Proof-specific exceptions live in
:mod:`zkmodexp.crypto.zkp.core` and derive from :class:`CryptographicError`.
"""

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """How badly an error affects the caller."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Which stage of proving or verifying an error belongs to."""

    VALIDATION = "validation"
    WITNESS = "witness"
    VERIFICATION = "verification"
    CRYPTOGRAPHIC = "cryptographic"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


@dataclass
class ErrorContext:
    """Where an error happened."""

    component: Optional[str] = None
    operation: Optional[str] = None
    circuit_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class ZKModExpError(Exception):
    """Base exception for all zkmodexp errors."""

    default_severity = ErrorSeverity.MEDIUM
    default_category = ErrorCategory.SYSTEM

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: Optional[ErrorSeverity] = None,
        category: Optional[ErrorCategory] = None,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity or self.default_severity
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause
        self.metadata = metadata or {}
        self.timestamp = time.time()

    def _fields(self) -> Dict[str, Any]:
        """Subclass-specific fields added to :meth:`to_dict`."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for structured logs."""
        data = {
            "type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.to_dict(),
            "cause": _text(self.cause),
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }
        data.update(self._fields())
        return data

    def __str__(self) -> str:
        parts = [f"{type(self).__name__}: {self.message}"]
        if self.error_code:
            parts.append(f"Code: {self.error_code}")
        # only non-default levels are worth printing
        if self.severity is not ErrorSeverity.MEDIUM:
            parts.append(f"Severity: {self.severity.value}")
        if self.category is not ErrorCategory.SYSTEM:
            parts.append(f"Category: {self.category.value}")
        return " | ".join(parts)


class ValidationError(ZKModExpError):
    """A value failed an input check."""

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.expected = expected

    def _fields(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "value": _text(self.value),
            "expected": _text(self.expected),
        }


class CryptographicError(ZKModExpError):
    """A key, signature or proof operation failed."""

    default_category = ErrorCategory.CRYPTOGRAPHIC
    default_severity = ErrorSeverity.HIGH

    def __init__(
        self,
        message: str,
        algorithm: Optional[str] = None,
        key_type: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.algorithm = algorithm
        self.key_type = key_type

    def _fields(self) -> Dict[str, Any]:
        return {"algorithm": self.algorithm, "key_type": self.key_type}


class ConfigurationError(ZKModExpError):
    """A configuration value or environment override is invalid."""

    default_category = ErrorCategory.CONFIGURATION

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.config_key = config_key
        self.config_value = config_value

    def _fields(self) -> Dict[str, Any]:
        return {"config_key": self.config_key, "config_value": _text(self.config_value)}


def create_validation_error(
    field: str, value: Any, expected: Any, message: Optional[str] = None
) -> ValidationError:
    """Build a ValidationError with a standard message."""
    if message is None:
        message = f"Invalid value for {field}: expected {expected}, got {value}"
    return ValidationError(message, field=field, value=value, expected=expected)
