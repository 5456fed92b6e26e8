"""
Error types for gqlcache.

This module defines all exception types raised by the cache engine:
- GqlCacheError: Base exception
- InvalidDocumentError: The query document cannot be handled
- VariableError: A directive condition references an unknown variable

Missing entities or fields are not errors; they are reported through the
``partial`` flag of a denormalize result.

Invariants:
    - All errors inherit from GqlCacheError
    - Errors include context for debugging
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class GqlCacheError(Exception):
    """Base exception for all gqlcache errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "GQLCACHE_ERROR"
        self.details = details or {}


class InvalidDocumentError(GqlCacheError):
    """Query document cannot be handled.

    Raised when:
    - The source does not parse
    - No operation matches (none, several unnamed, unknown name)
    - A fragment spread names an unknown fragment
    - A @skip/@include condition is missing or not a boolean
    """

    def __init__(
        self,
        message: str,
        operation_name: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="INVALID_DOCUMENT",
            details={"operation_name": operation_name},
        )
        self.operation_name = operation_name


class VariableError(GqlCacheError):
    """Variable referenced by the document has no value.

    Attributes:
        variable_name: Name of the missing variable (without ``$``)
    """

    def __init__(self, variable_name: str) -> None:
        super().__init__(
            f"Variable '${variable_name}' is not defined and has no default",
            code="VARIABLE_ERROR",
            details={"variable_name": variable_name},
        )
        self.variable_name = variable_name
