"""
Unit tests for CI record validation.

Tests cover:
- Key matching by short name
- Required attribute checking
- Unknown attribute detection with suggestions
- Coercion of nested group and array values
- Array count bounds
"""

import pytest

from cmdb.alexandria.errors import UnknownAttributeError, ValidationError
from cmdb.alexandria.schema.types import AttributeDef, CIType
from cmdb.alexandria.schema.validate import is_valid_record, validate_record, validate_value


def att(name: str, type_: str = "string", **kwargs) -> AttributeDef:
    """Helper to create attribute definitions."""
    return AttributeDef(name=name, type=type_, **kwargs)


@pytest.fixture
def server_type():
    """Validated Server CI Type."""
    return CIType(
        name="Server",
        attributes=(
            att("Hostname", required=True),
            att("Memory", "number", min_value=0),
            att("Virtual", "boolean"),
            att("Installed", "timestamp"),
            att("Tags", is_array=True, max_count=3),
            att(
                "Network Interfaces",
                "group",
                is_array=True,
                min_count=1,
                children=(
                    att("Name", required=True),
                    att("Speed", "number"),
                    att("Address", "group", children=(att("IPv4", filters=(r"[\d.]+",)),)),
                ),
            ),
        ),
    ).validate()


@pytest.fixture
def web01():
    """A valid server record in submitted form."""
    return {
        "hostname": "web01",
        "Memory": "4096",
        "virtual": "yes",
        "installed": "2014-05-01T12:00:00Z",
        "tags": ["web", "prod"],
        "network-interfaces": [
            {"name": "eth0", "speed": "1e9", "address": {"ipv4": "10.0.0.1"}},
        ],
    }


class TestValidateRecord:
    """Tests for validate_record."""

    def test_valid_record_coerced(self, server_type, web01):
        """Values are coerced to canonical form throughout the tree."""
        record = validate_record(server_type, web01)

        assert record == {
            "hostname": "web01",
            "memory": 4096.0,
            "virtual": True,
            "installed": 1398945600000,
            "tags": ["web", "prod"],
            "network-interfaces": [
                {"name": "eth0", "speed": 1e9, "address": {"ipv4": "10.0.0.1"}},
            ],
        }

    def test_output_in_schema_order(self, server_type, web01):
        """Output keys follow attribute order."""
        reordered = dict(reversed(list(web01.items())))
        assert list(validate_record(server_type, reordered)) == [
            "hostname",
            "memory",
            "virtual",
            "installed",
            "tags",
            "network-interfaces",
        ]

    def test_input_not_modified(self, server_type, web01):
        """The submitted record is left untouched."""
        validate_record(server_type, web01)
        assert web01["Memory"] == "4096"
        assert web01["network-interfaces"][0]["speed"] == "1e9"

    def test_optional_absent_omitted(self, server_type):
        """Absent optional attributes are not added."""
        record = validate_record(
            server_type, {"hostname": "db01", "network-interfaces": [{"name": "eth0"}]}
        )
        assert record == {"hostname": "db01", "network-interfaces": [{"name": "eth0"}]}

    def test_empty_optional_values_omitted(self, server_type):
        """Optional attributes submitted empty are left out of the result."""
        record = validate_record(
            server_type,
            {
                "hostname": "db01",
                "memory": "",
                "virtual": None,
                "network-interfaces": [{"name": "eth0"}],
            },
        )
        assert record == {"hostname": "db01", "network-interfaces": [{"name": "eth0"}]}

    def test_required_missing(self, server_type):
        """Missing required attribute fails."""
        with pytest.raises(ValidationError, match="hostname: A value is required"):
            validate_record(server_type, {"network-interfaces": [{"name": "eth0"}]})

    def test_nested_required_missing(self, server_type, web01):
        """Required attributes inside groups are checked with their path."""
        web01["network-interfaces"] = [{"speed": 100}]
        with pytest.raises(ValidationError) as exc_info:
            validate_record(server_type, web01)
        assert exc_info.value.attribute == "network-interfaces[0].name"

    def test_nested_value_error_path(self, server_type, web01):
        """Errors deep in the tree name the full path."""
        web01["network-interfaces"][0]["address"] = {"ipv4": "not-an-ip"}
        with pytest.raises(ValidationError, match=r"network-interfaces\[0\]\.address\.ipv4"):
            validate_record(server_type, web01)

    def test_unknown_attribute(self, server_type, web01):
        """Unknown attributes are rejected with suggestions."""
        web01["hostnme"] = "typo"
        with pytest.raises(UnknownAttributeError) as exc_info:
            validate_record(server_type, web01)
        assert "hostname" in exc_info.value.suggestions

    def test_unknown_attribute_dropped_when_not_strict(self, server_type, web01):
        """Non-strict validation drops unknown attributes."""
        web01["extra"] = "ignored"
        assert "extra" not in validate_record(server_type, web01, strict=False)

    def test_duplicate_keys_by_case(self, server_type, web01):
        """Keys that differ only in case collide."""
        web01["HOSTNAME"] = "web02"
        with pytest.raises(ValidationError, match="specified more than once"):
            validate_record(server_type, web01)

    def test_record_must_be_mapping(self, server_type):
        """Records must be mappings."""
        with pytest.raises(ValidationError, match="must be a mapping"):
            validate_record(server_type, ["web01"])

    def test_group_must_be_mapping(self, server_type, web01):
        """Group values must be mappings."""
        web01["network-interfaces"] = ["eth0"]
        with pytest.raises(ValidationError, match="must be a group"):
            validate_record(server_type, web01)


class TestArrays:
    """Tests for array attributes."""

    def test_array_requires_list(self, server_type, web01):
        """Array attributes need a list."""
        web01["tags"] = "web"
        with pytest.raises(ValidationError, match="must be a list"):
            validate_record(server_type, web01)

    def test_max_count(self, server_type, web01):
        """Arrays longer than max_count fail."""
        web01["tags"] = ["a", "b", "c", "d"]
        with pytest.raises(ValidationError, match="at most 3 values"):
            validate_record(server_type, web01)

    def test_min_count(self, server_type, web01):
        """Arrays shorter than min_count fail."""
        web01["network-interfaces"] = []
        with pytest.raises(ValidationError, match="at least 1 values"):
            validate_record(server_type, web01)

    def test_element_errors_indexed(self, server_type, web01):
        """Element errors carry the element index."""
        web01["tags"] = ["ok", ["nested"]]
        with pytest.raises(ValidationError) as exc_info:
            validate_record(server_type, web01)
        assert exc_info.value.attribute == "tags[1]"


class TestValidateValue:
    """Tests for validate_value and is_valid_record."""

    def test_single_value(self):
        """A single value is validated by its format."""
        assert validate_value(att("Enabled", "boolean"), "TRUE") is True

    def test_unknown_format(self):
        """Values of unregistered formats cannot be validated."""
        with pytest.raises(ValidationError, match="Unsupported attribute format 'bogus'"):
            validate_value(att("Thing", "bogus"), "x")

    def test_is_valid_record(self, server_type, web01):
        """is_valid_record reports instead of raising."""
        assert is_valid_record(server_type, web01) == (True, [])

        web01["memory"] = -1
        web01.pop("Memory")
        is_valid, errors = is_valid_record(server_type, web01)
        assert not is_valid
        assert any("memory" in e for e in errors)
