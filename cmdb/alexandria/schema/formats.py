"""
Attribute formats for Alexandria CI Types.

A format is the named rule set that validates and coerces the value of an
attribute. Each attribute declares its format in AttributeDef.type and the
FormatRegistry maps that name to one of the classes below:
- StringFormat: text with length bounds and regex filters
- NumberFormat: floats, also parsed from numeric strings
- BooleanFormat: booleans, also parsed from tokens and numbers
- TimestampFormat: epoch milliseconds, RFC 3339 or RFC 1123 text
- GroupFormat: mappings validated against child attributes

Invariants:
    - Formats are stateless and safe to share between threads
    - validate() returns the canonical value; the input is never mutated
    - A format rejects attributes whose type is not its own name
    - Absent optional values skip every other check

How to change safely:
    - Add new formats as AttributeFormat subclasses with a new name
    - Register them with FormatRegistry.register() before freezing
    - Never change the canonical representation of an existing format

Example:
    >>> fmt = BooleanFormat()
    >>> fmt.validate(AttributeDef(name="Enabled", type="boolean"), "TRUE")
    True
"""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Any, ClassVar

from ..errors import ValidationError

if TYPE_CHECKING:
    from .types import AttributeDef

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)
_EPOCH_MILLIS_RE = re.compile(r"-?\d+")

TRUE_TOKENS = frozenset({"true", "t", "1", "yes", "y", "on"})
FALSE_TOKENS = frozenset({"false", "f", "0", "no", "n", "off"})


class AttributeFormat(ABC):
    """Base class for attribute formats.

    Subclasses set `name` and implement `coerce()`. The shared validate()
    performs the type check and the required/absent handling so every
    format treats missing values the same way.
    """

    name: ClassVar[str]

    def validate(self, attribute: AttributeDef, value: Any) -> Any:
        """Validate a value against an attribute definition.

        Args:
            attribute: Attribute the value belongs to
            value: Submitted value

        Returns:
            The canonical (coerced) value

        Raises:
            ValidationError: If the value is invalid
        """
        if attribute.type != self.name:
            raise ValidationError(
                f"Attribute '{attribute.name}' has type '{attribute.type}' "
                f"and cannot be validated as '{self.name}'",
                attribute=attribute.name,
            )

        if self.is_absent(value):
            if attribute.required:
                raise ValidationError(
                    f"A value is required for attribute '{attribute.name}'",
                    attribute=attribute.name,
                )
            return value

        return self.coerce(attribute, value)

    def is_absent(self, value: Any) -> bool:
        return value is None or value == ""

    @abstractmethod
    def coerce(self, attribute: AttributeDef, value: Any) -> Any:
        """Check constraints on a present value and return its canonical form."""

    def _fail(self, attribute: AttributeDef, message: str) -> ValidationError:
        return ValidationError(f"Attribute '{attribute.name}' {message}", attribute=attribute.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class StringFormat(AttributeFormat):
    """Text values.

    Lengths are counted in characters. Every filter must match the whole
    value; the first filter that does not match is reported.
    """

    name = "string"

    def coerce(self, attribute: AttributeDef, value: Any) -> str:
        if isinstance(value, bytes):
            try:
                value = value.decode("utf-8")
            except UnicodeDecodeError:
                raise self._fail(attribute, "must be valid UTF-8 text") from None
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        elif not isinstance(value, str):
            raise self._fail(attribute, f"must be a string, got {type(value).__name__}")

        length = len(value)
        if attribute.min_length and length < attribute.min_length:
            raise self._fail(
                attribute, f"must be at least {attribute.min_length} characters long"
            )
        if attribute.max_length and length > attribute.max_length:
            raise self._fail(
                attribute, f"must be at most {attribute.max_length} characters long"
            )

        try:
            patterns = attribute.compiled_filters
        except re.error as e:
            raise self._fail(attribute, f"has an invalid filter: {e}") from None

        for index, pattern in enumerate(patterns):
            if pattern.fullmatch(value) is None:
                raise self._fail(
                    attribute, f"does not match filter {index} ('{pattern.pattern}')"
                )

        return value


class NumberFormat(AttributeFormat):
    """Floating point values, from native numbers or numeric strings."""

    name = "number"

    def coerce(self, attribute: AttributeDef, value: Any) -> float:
        if isinstance(value, bool):
            raise self._fail(attribute, "must be a number, got bool")

        if isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                raise self._fail(attribute, f"is not a valid number: '{value}'") from None
        elif isinstance(value, (int, float)):
            try:
                number = float(value)
            except OverflowError:
                raise self._fail(attribute, "is out of range") from None
        else:
            raise self._fail(attribute, f"must be a number, got {type(value).__name__}")

        if not math.isfinite(number):
            raise self._fail(attribute, f"must be a finite number, got {value!r}")

        if attribute.min_value is not None and number < attribute.min_value:
            raise self._fail(attribute, f"must be greater than or equal to {attribute.min_value:g}")
        if attribute.max_value is not None and number > attribute.max_value:
            raise self._fail(attribute, f"must be less than or equal to {attribute.max_value:g}")

        return number


class BooleanFormat(AttributeFormat):
    """Boolean values.

    Strings must be one of TRUE_TOKENS or FALSE_TOKENS (case-insensitive).
    Numbers greater than zero are true, everything else is false.
    """

    name = "boolean"

    def coerce(self, attribute: AttributeDef, value: Any) -> bool:
        if isinstance(value, bool):
            return value

        if isinstance(value, str):
            token = value.strip().lower()
            if token in TRUE_TOKENS:
                return True
            if token in FALSE_TOKENS:
                return False
            raise self._fail(attribute, f"is not a valid boolean: '{value}'")

        if isinstance(value, (int, float)):
            if isinstance(value, float) and math.isnan(value):
                raise self._fail(attribute, "is not a valid boolean: nan")
            return value > 0

        raise self._fail(attribute, f"must be a boolean, got {type(value).__name__}")


class TimestampFormat(AttributeFormat):
    """Points in time, stored as milliseconds since the Unix epoch.

    Input forms are tried in order: epoch milliseconds, RFC 3339 /
    ISO 8601, RFC 1123. Timestamps without an offset are taken as UTC.
    """

    name = "timestamp"

    def coerce(self, attribute: AttributeDef, value: Any) -> int:
        if isinstance(value, bool):
            raise self._fail(attribute, "must be a timestamp, got bool")
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            if not value.is_integer():
                raise self._fail(attribute, f"must be whole milliseconds, got {value!r}")
            return int(value)
        if isinstance(value, datetime):
            return _to_epoch_millis(value)
        if not isinstance(value, str):
            raise self._fail(attribute, f"must be a timestamp, got {type(value).__name__}")

        text = value.strip()
        if _EPOCH_MILLIS_RE.fullmatch(text):
            return int(text)

        for parse in (_parse_rfc3339, _parse_rfc1123):
            try:
                return _to_epoch_millis(parse(text))
            except (TypeError, ValueError, OverflowError):
                continue

        raise self._fail(attribute, f"is not a valid timestamp: '{value}'")


class GroupFormat(AttributeFormat):
    """Mappings of child attribute values.

    Only the shape of the value is checked here. Child values are
    validated by validate_record(), which walks the attribute's children.
    """

    name = "group"

    def is_absent(self, value: Any) -> bool:
        return value is None

    def coerce(self, attribute: AttributeDef, value: Any) -> Mapping[str, Any]:
        if not isinstance(value, Mapping):
            raise self._fail(attribute, f"must be a group of values, got {type(value).__name__}")
        return value


BUILTIN_FORMATS: tuple[type[AttributeFormat], ...] = (
    StringFormat,
    NumberFormat,
    BooleanFormat,
    TimestampFormat,
    GroupFormat,
)


def _parse_rfc3339(text: str) -> datetime:
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _parse_rfc1123(text: str) -> datetime:
    return parsedate_to_datetime(text)


def _to_epoch_millis(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // _MILLISECOND
