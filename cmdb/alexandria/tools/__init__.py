"""
CLI tools for Alexandria.

This module provides command-line tools for:
- schema: Validate CI Type definitions and CI records

Invariants:
    - Tools work offline (no running CMDB required)
    - Tools never modify their input files
"""

from .schema_cli import SchemaCLI

__all__ = ["SchemaCLI"]
