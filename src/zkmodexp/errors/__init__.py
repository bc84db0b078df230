"""zkmodexp error handling.

This module provides the exception hierarchy shared by the relation,
prover and verifier components.
"""

from .exceptions import (
    ConfigurationError,
    CryptographicError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    ValidationError,
    ZKModExpError,
    create_validation_error,
)

__all__ = [
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorContext",
    "ZKModExpError",
    "ValidationError",
    "CryptographicError",
    "ConfigurationError",
    "create_validation_error",
]
