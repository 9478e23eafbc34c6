"""
CI record validation for Alexandria.

This module walks a CI Type's attribute tree against a submitted record:
- Attribute keys are matched by short name (case-insensitive)
- Each value is checked and coerced by the format of its attribute
- Array attributes are checked element by element with count bounds
- Group values recurse into the group's child attributes
- Unknown keys are reported with suggestions for similar names

Invariants:
    - Validation is all-or-nothing: a new record is returned or an error raised
    - The submitted record is never modified
    - Output keys are short names, in schema order
    - Errors name the dotted path of the offending value
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from difflib import get_close_matches
from typing import Any, Iterable, Optional, Union

from ..errors import ValidationError, UnknownAttributeError
from .formats import AttributeFormat
from .registry import FormatRegistry, get_registry
from .types import AttributeDef, CIType, find_attribute

logger = logging.getLogger(__name__)


def validate_record(
    schema: Union[CIType, Iterable[AttributeDef]],
    record: Mapping[str, Any],
    registry: Optional[FormatRegistry] = None,
    *,
    strict: bool = True,
    path: str = "",
) -> dict[str, Any]:
    """Validate a CI record against a CI Type or attribute list.

    Args:
        schema: Validated CIType, or the child attributes of a group
        record: Submitted values keyed by attribute short name
        registry: Format registry (defaults to the global registry)
        strict: Reject unknown attributes instead of dropping them
        path: Dotted prefix of the enclosing group, e.g. "nics[0]."

    Returns:
        New dict of canonical values keyed by short name

    Raises:
        ValidationError: On the first invalid value
        UnknownAttributeError: If strict and the record has an unknown key
    """
    if isinstance(schema, CIType):
        attributes = schema.attributes
        type_name = schema.short_name or schema.name
    else:
        attributes = tuple(schema)
        type_name = path.rstrip(".") or "record"

    if not isinstance(record, Mapping):
        raise ValidationError(
            f"Record for '{type_name}' must be a mapping, got {type(record).__name__}",
            attribute=path.rstrip(".") or None,
        )

    registry = registry or get_registry()
    known = [a.short_name for a in attributes]

    values: dict[str, Any] = {}
    for key, value in record.items():
        attribute = find_attribute(attributes, str(key))
        if attribute is None:
            suggestions = get_close_matches(str(key).lower(), known, n=3)
            if strict:
                raise UnknownAttributeError(f"{path}{key}", type_name, suggestions)
            logger.warning(f"Dropping unknown attribute '{path}{key}' from '{type_name}' record")
            continue
        if attribute.short_name in values:
            raise ValidationError(
                f"Attribute '{path}{attribute.short_name}' is specified more than once",
                attribute=f"{path}{attribute.short_name}",
            )
        values[attribute.short_name] = value

    result: dict[str, Any] = {}
    for attribute in attributes:
        if attribute.short_name not in values:
            # Reports missing required attributes
            validate_value(attribute, None, registry, path=path, strict=strict)
            continue
        value = validate_value(
            attribute, values[attribute.short_name], registry, path=path, strict=strict
        )
        # Absent optional values are omitted
        fmt = registry.get(attribute.type)
        if value is None or (not attribute.is_array and fmt.is_absent(value)):
            continue
        result[attribute.short_name] = value

    return result


def validate_value(
    attribute: AttributeDef,
    value: Any,
    registry: Optional[FormatRegistry] = None,
    *,
    strict: bool = True,
    path: str = "",
) -> Any:
    """Validate one attribute value, including arrays and nested groups.

    Returns:
        The canonical value

    Raises:
        ValidationError: If the value or any nested value is invalid
    """
    registry = registry or get_registry()
    attribute_path = f"{path}{attribute.short_name or attribute.name}"

    fmt = registry.get(attribute.type)
    if fmt is None:
        raise ValidationError(
            f"Unsupported attribute format '{attribute.type}' for CI Attribute '{attribute_path}'",
            attribute=attribute_path,
        )

    if not attribute.is_array:
        return _validate_single(attribute, fmt, value, registry, attribute_path, strict)

    if value is None:
        if attribute.required:
            raise ValidationError(
                f"{attribute_path}: A value is required for attribute '{attribute.name}'",
                attribute=attribute_path,
            )
        return None

    if not isinstance(value, (list, tuple)):
        raise ValidationError(
            f"{attribute_path}: Attribute '{attribute.name}' must be a list, "
            f"got {type(value).__name__}",
            attribute=attribute_path,
        )

    count = len(value)
    if attribute.min_count and count < attribute.min_count:
        raise ValidationError(
            f"{attribute_path}: Attribute '{attribute.name}' requires at least "
            f"{attribute.min_count} values, got {count}",
            attribute=attribute_path,
        )
    if attribute.max_count and count > attribute.max_count:
        raise ValidationError(
            f"{attribute_path}: Attribute '{attribute.name}' allows at most "
            f"{attribute.max_count} values, got {count}",
            attribute=attribute_path,
        )

    return [
        _validate_single(attribute, fmt, item, registry, f"{attribute_path}[{index}]", strict)
        for index, item in enumerate(value)
    ]


def is_valid_record(
    schema: Union[CIType, Iterable[AttributeDef]],
    record: Mapping[str, Any],
    registry: Optional[FormatRegistry] = None,
    *,
    strict: bool = True,
) -> tuple[bool, list[str]]:
    """Validate a record without raising.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    try:
        validate_record(schema, record, registry, strict=strict)
    except ValidationError as e:
        return False, list(e.errors)
    return True, []


def _validate_single(
    attribute: AttributeDef,
    fmt: AttributeFormat,
    value: Any,
    registry: FormatRegistry,
    path: str,
    strict: bool,
) -> Any:
    try:
        value = fmt.validate(attribute, value)
    except ValidationError as e:
        raise ValidationError(f"{path}: {e.message}", attribute=path) from e

    if attribute.is_group and value is not None:
        value = validate_record(attribute.children, value, registry, strict=strict, path=f"{path}.")
    return value
