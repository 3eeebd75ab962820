"""
Unit tests for schema versions.

Tests parsing, ordering and the VersionSet collection.
"""

import pytest

from vschema.core.exceptions import InvalidVersionFormat
from vschema.core.version import Version, VersionSet, compare, parse


class TestParse:
    """Test Version.parse() and parse()."""

    def test_bare_and_prefixed_decimal_are_equal(self):
        """Test that "0.001" and "v0.001" parse to equal versions."""
        assert parse("0.001") == parse("v0.001")
        assert hash(parse("0.001")) == hash(parse("v0.001"))

    def test_decimal_fraction_is_read_in_groups_of_three(self):
        """Test decimal fractions split into three-digit components."""
        assert parse("0.001").parts == (0, 1)
        assert parse("0.3").parts == (0, 300)
        assert parse("0.401").parts == (0, 401)
        assert parse("2.001002").parts == (2, 1, 2)

    def test_dotted_form(self):
        """Test dotted versions keep each component as written."""
        assert parse("2.001.001").parts == (2, 1, 1)
        assert parse("v1.2.3").parts == (1, 2, 3)

    def test_decimal_and_dotted_forms_agree(self):
        """Test that "0.001" equals the dotted "0.1.0"."""
        assert parse("0.001") == parse("0.1.0")
        assert parse("0.001").normal == "v0.1.0"

    def test_trailing_zeros_are_ignored(self):
        """Test that trailing zero components do not affect equality."""
        assert parse("2") == parse("2.0") == parse("2.000.000")

    def test_numbers_are_accepted(self):
        """Test parsing numbers read from YAML."""
        assert parse(0.3) == parse("0.3")
        assert parse(2) == parse("2.0")

    def test_version_passes_through(self):
        """Test parsing an existing Version returns it unchanged."""
        version = parse("0.002")
        assert Version.parse(version) is version

    def test_original_text_is_kept(self):
        """Test that str() returns the literal as written."""
        assert str(parse("v0.001")) == "v0.001"
        assert repr(parse("0.3")) == "Version('0.3')"

    @pytest.mark.parametrize("value", ["xyz", "", "1.", ".1", "v", "1.a", "1..2", None, True])
    def test_invalid_formats(self, value):
        """Test that unrecognized values raise InvalidVersionFormat."""
        with pytest.raises(InvalidVersionFormat) as exc_info:
            parse(value)

        assert exc_info.value.value == value

    def test_invalid_format_is_value_error(self):
        """Test InvalidVersionFormat can be caught as ValueError."""
        with pytest.raises(ValueError):
            parse("xyz")


class TestOrdering:
    """Test version comparison."""

    def test_dotted_triplet_ordering(self):
        """Test 2.001.001 > 2.001 > 2.0."""
        assert parse("2.001.001") > parse("2.001") > parse("2.0")

    def test_fraction_ordering(self):
        """Test that 0.3 sorts after 0.003 and before 0.4."""
        assert parse("0.003") < parse("0.3") < parse("0.4") < parse("0.401")

    def test_compare(self):
        """Test the two-argument comparator."""
        assert compare("0.001", "0.002") == -1
        assert compare("0.002", "0.001") == 1
        assert compare("0.001", "v0.001") == 0

    def test_sorting(self):
        """Test that ordinary sorted() orders versions numerically."""
        versions = [parse(v) for v in ["0.4", "0.003", "1.0", "0.3", "0.001"]]
        assert [str(v) for v in sorted(versions)] == ["0.001", "0.003", "0.3", "0.4", "1.0"]

    def test_comparison_with_other_types(self):
        """Test versions are never equal to plain strings."""
        assert parse("0.001") != "0.001"


class TestVersionSet:
    """Test VersionSet."""

    def test_add_is_idempotent(self):
        """Test adding equal versions stores one entry."""
        versions = VersionSet()
        first = versions.add("0.001")
        second = versions.add("v0.001")

        assert len(versions) == 1
        assert second is first

    def test_sorted(self):
        """Test sorted() returns ascending, deduplicated versions."""
        versions = VersionSet(["0.3", "0.001", "0.003", "0.3"])
        assert [str(v) for v in versions.sorted()] == ["0.001", "0.003", "0.3"]

    def test_contains(self):
        """Test membership accepts literals and Versions."""
        versions = VersionSet(["0.002"])

        assert "0.002" in versions
        assert parse("v0.002") in versions
        assert "0.003" not in versions
        assert "garbage" not in versions

    def test_update_and_iterate(self):
        """Test update() and iteration in ascending order."""
        versions = VersionSet()
        versions.update(["0.4", "0.1"])

        assert list(versions) == [parse("0.1"), parse("0.4")]

    def test_equality(self):
        """Test two sets with the same versions are equal."""
        assert VersionSet(["0.001", "0.3"]) == VersionSet(["0.3", "v0.001"])
        assert VersionSet(["0.001"]) != VersionSet(["0.002"])

    def test_invalid_version_rejected(self):
        """Test that add() validates the literal."""
        with pytest.raises(InvalidVersionFormat):
            VersionSet().add("not-a-version")
