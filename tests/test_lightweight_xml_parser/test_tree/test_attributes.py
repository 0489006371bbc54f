"""Tests for attribute string coercion."""

import pytest

from lightweight_xml_parser.tree.attributes import (
    expand_color,
    format_value,
    parse_bool,
    parse_float,
    parse_long,
    parse_ulong,
)


class TestParseLong:
    """Test integer literal forms."""

    @pytest.mark.parametrize("text,expected", [
        ("42", 42),
        ("-5", -5),
        ("+7", 7),
        ("12px", 12),
        ("0x1F", 31),
        ("0xff", 255),
        ("U+0041", 65),
        ("U+20AC", 0x20AC),
        ("abc", 0),
        ("", 0),
    ])
    def test_literal_forms(self, text, expected):
        """Test decimal, hex and code point literals."""
        assert parse_long(text) == expected

    def test_hex_stops_at_first_non_hex_digit(self):
        """Test that hex accumulation ends at the first non-hex character."""
        assert parse_long("0x1Fzz") == 31


class TestColors:
    """Test packed colour expansion."""

    @pytest.mark.parametrize("text,expected", [
        ("#FFF", 0xFFFFFFFF),
        ("#F00", 0xFFFF0000),
        ("#1234", 0x11223344),
        ("#123456", 0xFF123456),
        ("#FF000080", 0xFF000080),
    ])
    def test_color_literals(self, text, expected):
        """Test each colour literal length."""
        assert parse_long(text) == expected

    def test_other_lengths_unchanged(self):
        """Test that unusual digit counts are not expanded."""
        assert expand_color(0x12, 2) == 0x12
        assert expand_color(0x12345, 5) == 0x12345


class TestOtherCoercions:
    """Test unsigned, float and bool readers."""

    def test_parse_ulong_wraps(self):
        """Test wrapping to 32 bits."""
        assert parse_ulong("-1") == 0xFFFFFFFF
        assert parse_ulong("#FFF") == 0xFFFFFFFF
        assert parse_ulong("10") == 10

    @pytest.mark.parametrize("text,expected", [
        ("1.5", 1.5),
        ("-2", -2.0),
        (".5", 0.5),
        ("1.5e2x", 150.0),
        ("abc", 0.0),
        ("", 0.0),
    ])
    def test_parse_float(self, text, expected):
        """Test lenient float parsing."""
        assert parse_float(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("1", True),
        ("true", True),
        ("TRUE", True),
        ("Yes", True),
        ("0", False),
        ("no", False),
        ("", False),
    ])
    def test_parse_bool(self, text, expected):
        """Test boolean spellings."""
        assert parse_bool(text) is expected


class TestFormatValue:
    """Test rendering values for the attribute map."""

    def test_supported_types(self):
        """Test str, int, float and bool rendering."""
        assert format_value("x") == "x"
        assert format_value(7) == "7"
        assert format_value(1.5) == "1.5"
        assert format_value(True) == "true"
        assert format_value(False) == "false"

    def test_unsupported_type(self):
        """Test that other types are rejected."""
        with pytest.raises(TypeError, match="Attribute values must be"):
            format_value([1, 2])
