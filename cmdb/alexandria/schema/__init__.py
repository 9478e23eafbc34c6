"""
Schema module for Alexandria.

This module provides the CI Type schema engine, including:
- Type definitions (CIType, AttributeDef)
- Short name derivation (get_short_name, is_valid_short_name)
- Attribute formats and the FormatRegistry
- CI record validation against a CI Type

Invariants:
    - Schema validation returns normalized copies and never mutates input
    - Every attribute type must be registered before validation
    - The global registry is frozen once built
    - Short names are lower-case and alphabet-restricted

How to change safely:
    - Add new formats by subclassing AttributeFormat and registering them
    - Keep short name rules stable; they are the lookup keys of stored CIs
    - Keep the to_dict()/from_dict() keys stable
"""

from .formats import (
    AttributeFormat,
    BooleanFormat,
    GroupFormat,
    NumberFormat,
    StringFormat,
    TimestampFormat,
)
from .names import SHORT_NAME_ALPHABET, get_short_name, is_valid_short_name
from .registry import (
    DuplicateRegistrationError,
    FormatRegistry,
    RegistryFrozenError,
    create_default_registry,
    get_attribute_format,
    get_registry,
    reset_registry,
)
from .types import AttributeDef, CIType, find_attribute, validate_attributes
from .validate import is_valid_record, validate_record, validate_value

__all__ = [
    # Types
    "AttributeDef",
    "CIType",
    "find_attribute",
    "validate_attributes",
    # Names
    "SHORT_NAME_ALPHABET",
    "get_short_name",
    "is_valid_short_name",
    # Formats
    "AttributeFormat",
    "StringFormat",
    "NumberFormat",
    "BooleanFormat",
    "TimestampFormat",
    "GroupFormat",
    # Registry
    "FormatRegistry",
    "RegistryFrozenError",
    "DuplicateRegistrationError",
    "create_default_registry",
    "get_registry",
    "get_attribute_format",
    "reset_registry",
    # Records
    "validate_record",
    "validate_value",
    "is_valid_record",
]
