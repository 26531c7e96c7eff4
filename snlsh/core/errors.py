"""
Error types for the signature index.

Two failure kinds exist, both caller misuse detected before any mutation:
a bad band count at construction and a bad ``k``/``radius`` at query time.
"""

from typing import Any, Dict, Optional


class SNLSHError(Exception):
    """
    Base exception for all snlsh errors.

    Provides common functionality for error tracking and reporting.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize snlsh error.

        Args:
            message: Error message
            details: Optional detailed error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidConfigurationError(SNLSHError, ValueError):
    """Raised when an index or config file is given unusable parameters."""

    def __init__(self, message: str,
                 parameter: Optional[str] = None,
                 value: Any = None,
                 details: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration error.

        Args:
            message: Error message
            parameter: Name of the offending parameter ('bands', 'default_k', ...)
            value: The rejected value
            details: Additional error context
        """
        super().__init__(message, details)
        self.parameter = parameter
        self.value = value

        self.details.update({
            'parameter': parameter,
            'value': value
        })


class InvalidArgumentError(SNLSHError, ValueError):
    """Raised when a query is called with an out-of-range argument."""

    def __init__(self, message: str,
                 argument: Optional[str] = None,
                 value: Any = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.argument = argument
        self.value = value

        self.details.update({
            'argument': argument,
            'value': value
        })
