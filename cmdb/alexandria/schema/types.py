"""
Core type definitions for Alexandria CI Types.

This module defines the recursive schema model:
- AttributeDef: One typed attribute, possibly a group with children
- CIType: A named CI Type and its root attribute tree

Schema validation is a pure transform: CIType.validate() and
validate_attributes() return a normalized copy with derived short names
and never modify their input.

Invariants:
    - Only group attributes have children
    - Every attribute type resolves in the FormatRegistry
    - Sibling attributes have distinct short names
    - Attribute order is display and serialization order
    - Trees are strict forests (no sharing, no back-references)

How to change safely:
    - Add new attribute options with defaults that mean "unset"
    - Keep to_dict()/from_dict() keys stable (they are the wire format)
    - Add new formats through the registry, not here

Example:
    >>> server = CIType(
    ...     name="Server",
    ...     attributes=(
    ...         AttributeDef(name="Hostname", type="string", required=True),
    ...         AttributeDef(
    ...             name="Network Interfaces",
    ...             type="group",
    ...             is_array=True,
    ...             children=(AttributeDef(name="MAC Address", type="string"),),
    ...         ),
    ...     ),
    ... ).validate()
    >>> server.short_name
    'server'
    >>> server.get_attribute("network-interfaces").children[0].short_name
    'mac-address'
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from dataclasses import field as dataclass_field
from functools import cached_property
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from ..errors import SchemaError, UnsupportedFormatError
from .formats import GroupFormat, StringFormat
from .names import get_short_name, is_valid_short_name
from .registry import FormatRegistry, get_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttributeDef:
    """Definition of a single attribute within a CI Type.

    Attributes:
        name: Human-readable name
        type: Format name (string, number, boolean, timestamp, group, ...)
        short_name: Derived lookup key (recomputed on validation)
        description: Human-readable description
        children: Child attributes (group attributes only)
        required: Whether a value must be supplied
        is_array: Whether the value is a list of values
        min_count: Minimum number of array elements (0 = unbounded)
        max_count: Maximum number of array elements (0 = unbounded)
        singular: Display name of one element of a group array
        min_length: Minimum string length in characters (0 = unbounded)
        max_length: Maximum string length in characters (0 = unbounded)
        filters: Regular expressions a string must fully match (all of them)
        units: Display units for numbers
        min_value: Lower bound for numbers (None = unbounded)
        max_value: Upper bound for numbers (None = unbounded)
    """

    name: str
    type: str = ""
    short_name: str = ""
    description: str = ""
    children: tuple[AttributeDef, ...] = dataclass_field(default_factory=tuple)

    # Common options
    required: bool = False
    is_array: bool = False
    min_count: int = 0
    max_count: int = 0

    # Group options
    singular: str = ""

    # String options
    min_length: int = 0
    max_length: int = 0
    filters: tuple[str, ...] = dataclass_field(default_factory=tuple)

    # Number options
    units: str = ""
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    def __post_init__(self) -> None:
        """Normalize sequence options to tuples."""
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        if not isinstance(self.filters, tuple):
            object.__setattr__(self, "filters", tuple(self.filters))

    @property
    def is_group(self) -> bool:
        return self.type == GroupFormat.name

    @cached_property
    def compiled_filters(self) -> tuple[re.Pattern[str], ...]:
        """Compiled filters, built once per definition.

        Raises:
            re.error: If a filter is not a valid regular expression
        """
        return tuple(re.compile(pattern) for pattern in self.filters)

    def get_child(self, name: str) -> Optional[AttributeDef]:
        """Get a child attribute by short name (case-insensitive)."""
        return find_attribute(self.children, name)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation for serialization."""
        result: dict[str, Any] = {
            "name": self.name,
            "shortName": self.short_name,
            "type": self.type,
        }
        if self.description:
            result["description"] = self.description
        if self.children:
            result["children"] = [c.to_dict() for c in self.children]
        if self.required:
            result["required"] = True
        if self.is_array:
            result["isArray"] = True
        if self.min_count:
            result["minCount"] = self.min_count
        if self.max_count:
            result["maxCount"] = self.max_count
        if self.singular:
            result["singular"] = self.singular
        if self.min_length:
            result["minLength"] = self.min_length
        if self.max_length:
            result["maxLength"] = self.max_length
        if self.filters:
            result["filters"] = list(self.filters)
        if self.units:
            result["units"] = self.units
        if self.min_value is not None:
            result["minValue"] = self.min_value
        if self.max_value is not None:
            result["maxValue"] = self.max_value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AttributeDef:
        """Create from dictionary representation.

        Raises:
            SchemaError: If a field has the wrong shape (e.g. a numeric name)
        """
        if not isinstance(data, Mapping):
            raise SchemaError(f"CI Attribute must be a mapping, got {type(data).__name__}")
        owner = f"CI Attribute '{data.get('name')}'"
        return cls(
            name=_get_str(data, "name", owner),
            type=_get_str(data, "type", owner),
            short_name=_get_str(data, "shortName", owner),
            description=_get_str(data, "description", owner),
            children=tuple(cls.from_dict(c) for c in _get_list(data, "children", owner)),
            required=bool(data.get("required", False)),
            is_array=bool(data.get("isArray", False)),
            min_count=int(data.get("minCount") or 0),
            max_count=int(data.get("maxCount") or 0),
            singular=_get_str(data, "singular", owner),
            min_length=int(data.get("minLength") or 0),
            max_length=int(data.get("maxLength") or 0),
            filters=_get_filters(data, owner),
            units=_get_str(data, "units", owner),
            min_value=_optional_float(data.get("minValue")),
            max_value=_optional_float(data.get("maxValue")),
        )


@dataclass(frozen=True)
class CIType:
    """Definition of a CI Type.

    Attributes:
        name: Human-readable name
        short_name: Derived identifier, unique within a CMDB
        description: Human-readable description
        attributes: Root attribute tree
        id: Catalog identifier (assigned on creation)
        created: Creation time in epoch milliseconds
        modified: Last modification time in epoch milliseconds
    """

    name: str
    short_name: str = ""
    description: str = ""
    attributes: tuple[AttributeDef, ...] = dataclass_field(default_factory=tuple)
    id: Optional[str] = None
    created: Optional[int] = None
    modified: Optional[int] = None

    def __post_init__(self) -> None:
        if not isinstance(self.attributes, tuple):
            object.__setattr__(self, "attributes", tuple(self.attributes))

    def validate(self, registry: Optional[FormatRegistry] = None) -> CIType:
        """Validate the CI Type and return a normalized copy.

        The short name is derived from the name when absent; every
        attribute short name is recomputed from its name.

        Args:
            registry: Format registry (defaults to the global registry)

        Returns:
            Normalized CIType

        Raises:
            SchemaError: On the first structural problem found
        """
        if not self.name:
            raise SchemaError("No CI Type name specified")

        short_name = self.short_name or get_short_name(self.name)
        if not is_valid_short_name(short_name):
            raise SchemaError("Invalid characters in CI Type name", path=short_name)

        attributes = validate_attributes(self.attributes, registry)
        logger.debug(f"Validated CI Type '{short_name}' with {len(attributes)} root attributes")
        return replace(self, short_name=short_name, attributes=attributes)

    def get_attribute(self, name: str) -> Optional[AttributeDef]:
        """Get a root attribute by short name (case-insensitive)."""
        return find_attribute(self.attributes, name)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {}
        if self.id is not None:
            result["id"] = self.id
        result["name"] = self.name
        result["shortName"] = self.short_name
        if self.description:
            result["description"] = self.description
        if self.attributes:
            result["attributes"] = [a.to_dict() for a in self.attributes]
        if self.created is not None:
            result["created"] = self.created
        if self.modified is not None:
            result["modified"] = self.modified
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CIType:
        """Create from dictionary representation.

        Raises:
            SchemaError: If a field has the wrong shape
        """
        if not isinstance(data, Mapping):
            raise SchemaError(f"CI Type must be a mapping, got {type(data).__name__}")
        owner = f"CI Type '{data.get('name')}'"
        return cls(
            name=_get_str(data, "name", owner),
            short_name=_get_str(data, "shortName", owner),
            description=_get_str(data, "description", owner),
            attributes=tuple(
                AttributeDef.from_dict(a) for a in _get_list(data, "attributes", owner)
            ),
            id=data.get("id"),
            created=data.get("created"),
            modified=data.get("modified"),
        )


def find_attribute(attributes: Iterable[AttributeDef], name: str) -> Optional[AttributeDef]:
    """Find an attribute by short name.

    Args:
        attributes: Sibling attributes to search
        name: Short name, compared case-insensitively

    Returns:
        AttributeDef if found, None otherwise
    """
    name = name.lower()
    for attribute in attributes:
        if attribute.short_name == name:
            return attribute
    return None


def validate_attributes(
    attributes: Iterable[AttributeDef],
    registry: Optional[FormatRegistry] = None,
    path: str = "",
) -> tuple[AttributeDef, ...]:
    """Validate an attribute tree and return a normalized copy.

    Args:
        attributes: Sibling attributes, in order
        registry: Format registry (defaults to the global registry)
        path: Dotted short-name prefix of the parent, e.g. "nics."

    Returns:
        Tuple of attributes with short names derived and children validated

    Raises:
        SchemaError: On the first invalid attribute
        UnsupportedFormatError: If an attribute type is not registered
    """
    registry = registry or get_registry()
    validated: list[AttributeDef] = []
    seen: set[str] = set()

    for attribute in attributes:
        if not attribute.name:
            raise SchemaError("No attribute name specified", path=path.rstrip(".") or None)

        short_name = get_short_name(attribute.name)
        attribute_path = f"{path}{short_name}"
        if not is_valid_short_name(short_name):
            raise SchemaError(
                f"Invalid characters in CI Attribute '{attribute_path}'", path=attribute_path
            )

        if short_name in seen:
            raise SchemaError(f"Duplicate CI Attribute '{attribute_path}'", path=attribute_path)
        seen.add(short_name)

        if not attribute.type:
            raise SchemaError(
                f"No type specified for CI Attribute '{attribute_path}'", path=attribute_path
            )

        if registry.get(attribute.type) is None:
            raise UnsupportedFormatError(attribute.type, attribute_path)

        children = attribute.children
        if attribute.is_group:
            children = validate_attributes(children, registry, f"{attribute_path}.")
        elif children:
            raise SchemaError(
                f"CI Attribute '{attribute_path}' has children but is not a group attribute",
                path=attribute_path,
            )

        if attribute.type == StringFormat.name:
            for pattern in attribute.filters:
                try:
                    re.compile(pattern)
                except re.error:
                    raise SchemaError(
                        f"Invalid filter pattern '{pattern}' for CI Attribute '{attribute_path}'",
                        path=attribute_path,
                    ) from None

        validated.append(replace(attribute, short_name=short_name, children=children))

    return tuple(validated)


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def _get_str(data: Mapping[str, Any], key: str, owner: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise SchemaError(f"'{key}' of {owner} must be a string, got {type(value).__name__}")
    return value


def _get_list(data: Mapping[str, Any], key: str, owner: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise SchemaError(f"'{key}' of {owner} must be a list, got {type(value).__name__}")
    return list(value)


def _get_filters(data: Mapping[str, Any], owner: str) -> tuple[str, ...]:
    filters = _get_list(data, "filters", owner)
    for pattern in filters:
        if not isinstance(pattern, str):
            raise SchemaError(
                f"'filters' of {owner} must hold strings, got {type(pattern).__name__}"
            )
    return tuple(filters)
