"""
Short name derivation for CI Types and attributes.

A short name is the stable, case-insensitive lookup key derived from a
human-readable name. It is used in CI record keys, attribute paths and
catalog lookups.

Invariants:
    - Short names only contain characters from SHORT_NAME_ALPHABET
    - get_short_name is idempotent
    - '.' never appears in a short name (it separates attribute paths)

Example:
    >>> get_short_name("  Operating System ")
    'operating-system'
    >>> is_valid_short_name("operating-system")
    True
"""

from __future__ import annotations

import re
import string

SHORT_NAME_SEPARATORS = "_-"
SHORT_NAME_ALPHABET = frozenset(string.ascii_lowercase + string.digits + SHORT_NAME_SEPARATORS)

_WHITESPACE_RE = re.compile(r"\s+")


def get_short_name(name: str) -> str:
    """Derive a short name from a human-readable name.

    The name is trimmed and lower-cased, runs of whitespace become a
    single '-', and anything outside the alphabet is dropped. The result
    may be empty; callers check it with is_valid_short_name().

    Args:
        name: Human-readable name

    Returns:
        Derived short name
    """
    short_name = _WHITESPACE_RE.sub("-", name.strip().lower())
    return "".join(c for c in short_name if c in SHORT_NAME_ALPHABET)


def is_valid_short_name(short_name: str) -> bool:
    """Check that a short name is non-empty and alphabet-valid."""
    return bool(short_name) and all(c in SHORT_NAME_ALPHABET for c in short_name)
