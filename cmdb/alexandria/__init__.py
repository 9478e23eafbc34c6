"""
Alexandria - CI Type schema and validation engine for a configuration management database.

Operators define CI Types: named schemas of typed, possibly nested,
attributes. CI records (servers, applications, ...) are validated and
coerced against those schemas before they are stored.

Architecture:
    ┌─────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │   CIType    │────▶│ validate_        │────▶│  FormatRegistry  │
    │  .validate()│     │ attributes()     │     │ (type -> format) │
    └─────────────┘     └──────────────────┘     └────────┬─────────┘
                                                          │
    ┌─────────────┐     ┌──────────────────┐              ▼
    │  CI record  │────▶│ validate_record()│────▶ string | number | boolean
    └─────────────┘     └──────────────────┘      timestamp | group | ...

Invariants:
    - Short names are derived from names and are the lookup keys
    - Schema and record validation are fail-fast and all-or-nothing
    - Validation never mutates its input; it returns normalized copies
    - The format registry is frozen before validation starts

How to change safely:
    - Add formats through the registry, never by special-casing types
    - Keep short name rules and wire keys stable

Version: see _version.py.
"""

from ._version import __version__

__all__ = ["__version__"]
