"""
Alexandria Test Suite.

This package contains:
- unit/: Unit tests (no external services; files under tmp_path)
"""
