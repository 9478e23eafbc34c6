"""
Unit tests for short name derivation.

Tests cover:
- Lower-casing and whitespace handling
- Dropping characters outside the alphabet
- Idempotency
- Short name validation
"""

import pytest

from cmdb.alexandria.schema.names import get_short_name, is_valid_short_name


class TestGetShortName:
    """Tests for get_short_name."""

    def test_lower_cases(self):
        """Names are lower-cased."""
        assert get_short_name("Server") == "server"

    def test_whitespace_becomes_dash(self):
        """Runs of whitespace become a single dash."""
        assert get_short_name("Operating   System") == "operating-system"

    def test_surrounding_whitespace_trimmed(self):
        """Leading and trailing whitespace is dropped."""
        assert get_short_name("  Server \t") == "server"

    def test_invalid_characters_dropped(self):
        """Characters outside the alphabet are dropped."""
        assert get_short_name("IP/Address (v4)!") == "ipaddress-v4"

    def test_separators_kept(self):
        """Underscore and dash survive."""
        assert get_short_name("mac_address-1") == "mac_address-1"

    def test_dot_dropped(self):
        """Dots are reserved for attribute paths."""
        assert get_short_name("os.version") == "osversion"

    def test_only_invalid_characters_gives_empty(self):
        """A name without valid characters derives an empty short name."""
        assert get_short_name("!!!") == ""

    @pytest.mark.parametrize(
        "name", ["Server", "abc123", "XYZ", "7Layers", "hostName2", "A B C", "Ünïcode Näme"]
    )
    def test_idempotent(self, name):
        """Deriving twice gives the same result as deriving once."""
        once = get_short_name(name)
        assert get_short_name(once) == once


class TestIsValidShortName:
    """Tests for is_valid_short_name."""

    @pytest.mark.parametrize("short_name", ["server", "os-version", "mac_address", "v4"])
    def test_valid(self, short_name):
        """Alphabet-only short names are valid."""
        assert is_valid_short_name(short_name)

    @pytest.mark.parametrize("short_name", ["", "Server", "os.version", "ip address", "héllo"])
    def test_invalid(self, short_name):
        """Empty, upper-case or out-of-alphabet short names are invalid."""
        assert not is_valid_short_name(short_name)

    def test_derived_short_names_are_valid(self):
        """Any non-empty derived short name is valid."""
        assert is_valid_short_name(get_short_name("Network Interface #2"))
