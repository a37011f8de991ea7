# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Filterbox Exception Hierarchy

Exception Hierarchy:
    FilterBoxError (base)
    ├── ConfigError
    │   ├── ConfigValidationError
    │   └── ConfigFileError
    ├── ResolutionError
    ├── FilterNotFoundError
    ├── InvalidFilterError
    └── SerializationError

Errors raised by individual filters while a chain runs are never wrapped
in these classes; they reach the caller unchanged.
"""

from typing import Any, Dict, List, Optional

# ============================================================================
# Base Exceptions
# ============================================================================


class FilterBoxError(Exception):
    """Base exception for all filterbox errors"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        result = {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }

        if self.cause:
            result["cause"] = {
                "type": self.cause.__class__.__name__,
                "message": str(self.cause),
            }

        return result

    def __str__(self):
        base = self.message
        if self.details:
            base += f" | Details: {self.details}"
        if self.cause:
            base += f" | Caused by: {self.cause}"
        return base


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigError(FilterBoxError):
    """Configuration-related errors"""


class ConfigValidationError(ConfigError):
    """Configuration structure failed validation"""

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["errors"] = self.errors
        return result


class ConfigFileError(ConfigError):
    """Configuration file could not be read or parsed"""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = path

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["path"] = self.path
        return result


# ============================================================================
# Chain Errors
# ============================================================================


class ResolutionError(FilterBoxError):
    """A filter name could not be mapped to a filter instance"""

    def __init__(self, message: str, name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.name = name

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["name"] = self.name
        return result


class FilterNotFoundError(FilterBoxError):
    """Detached entry is not part of the chain"""


class InvalidFilterError(FilterBoxError):
    """Attached object is neither a filter nor a callable"""


class SerializationError(FilterBoxError):
    """Chain contains entries that cannot be persisted"""

    def __init__(self, message: str, entry: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.entry = entry

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["entry"] = repr(self.entry)
        return result


__all__ = [
    "FilterBoxError",
    "ConfigError",
    "ConfigValidationError",
    "ConfigFileError",
    "ResolutionError",
    "FilterNotFoundError",
    "InvalidFilterError",
    "SerializationError",
]
