"""
Error types for Alexandria CMDB.

This module defines all exception types raised by the schema engine:
- AlexandriaError: Base exception
- SchemaError: Structural problems in a CI Type definition
- UnsupportedFormatError: Attribute declares an unknown format
- ValidationError: A value fails its attribute's constraints
- UnknownAttributeError: Record contains an attribute the CI Type lacks
- NotFoundError: CI Type does not exist in a catalog
- DuplicateCITypeError: CI Type short name already taken

Invariants:
    - All errors inherit from AlexandriaError
    - Messages are client-facing and reported verbatim by callers
    - Schema errors carry the dotted path of the offending attribute
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class AlexandriaError(Exception):
    """Base exception for all Alexandria errors.

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
        self.code = code or "ALEXANDRIA_ERROR"
        self.details = details or {}


class SchemaError(AlexandriaError):
    """CI Type definition is structurally invalid.

    Raised when:
    - CI Type or attribute name is missing
    - A name yields an invalid short name
    - An attribute has no type, or children while not being a group
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        code: str = "SCHEMA_ERROR",
    ) -> None:
        super().__init__(message, code=code, details={"path": path})
        self.path = path


class UnsupportedFormatError(SchemaError):
    """Attribute declares a format that is not registered."""

    def __init__(self, format_name: str, path: str) -> None:
        super().__init__(
            f"Unsupported attribute format '{format_name}' for CI Attribute '{path}'",
            path=path,
            code="UNSUPPORTED_FORMAT",
        )
        self.format_name = format_name


class ValidationError(AlexandriaError):
    """A value failed validation.

    Raised when:
    - Required value is missing
    - Value has the wrong type or cannot be coerced
    - Length, range or pattern constraints are violated
    """

    def __init__(
        self,
        message: str,
        attribute: Optional[str] = None,
        errors: Optional[List[str]] = None,
    ) -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"attribute": attribute, "errors": errors or [message]},
        )
        self.attribute = attribute
        self.errors = errors or [message]


class UnknownAttributeError(ValidationError):
    """Unknown attribute in a CI record.

    Includes suggestions for similar attribute short names.

    Attributes:
        attribute: The unknown attribute key
        type_name: The CI Type (or group path) being validated
        suggestions: Similar short names
    """

    def __init__(
        self,
        attribute: str,
        type_name: str,
        suggestions: Optional[List[str]] = None,
    ) -> None:
        suggestions = suggestions or []
        msg = f"Unknown attribute '{attribute}' in '{type_name}'"
        if suggestions:
            msg += f". Did you mean: {', '.join(suggestions)}?"
        super().__init__(msg, attribute=attribute)
        self.code = "UNKNOWN_ATTRIBUTE"
        self.details["suggestions"] = suggestions
        self.type_name = type_name
        self.suggestions = suggestions


class NotFoundError(AlexandriaError):
    """Resource not found.

    Raised when:
    - CI Type doesn't exist in the catalog
    """

    def __init__(
        self,
        message: str,
        resource_type: str,
        resource_id: str,
    ) -> None:
        super().__init__(
            message,
            code="NOT_FOUND",
            details={
                "resource_type": resource_type,
                "resource_id": resource_id,
            },
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class DuplicateCITypeError(AlexandriaError):
    """A CI Type with the same short name already exists."""

    def __init__(self, short_name: str) -> None:
        super().__init__(
            f"CI Type '{short_name}' already exists",
            code="DUPLICATE_CITYPE",
            details={"short_name": short_name},
        )
        self.short_name = short_name
