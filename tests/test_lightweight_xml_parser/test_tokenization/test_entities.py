"""Tests for the fixed entity table."""

from lightweight_xml_parser.character import ByteReader
from lightweight_xml_parser.tokenization import (
    DEFAULT_ENTITIES,
    EntityResolver,
    default_resolver,
)


class TestEntityResolver:
    """Test entity lookup and escaping."""

    def test_default_table(self):
        """Test the built-in entity names."""
        assert set(DEFAULT_ENTITIES) == {"quot", "amp", "apos", "lt", "gt", "#163", "euro"}
        assert default_resolver.resolve("amp") == 0x26
        assert default_resolver.resolve("euro") == 0x80

    def test_unknown_name(self):
        """Test that unknown names resolve to zero."""
        assert default_resolver.resolve("nbsp") == 0
        assert default_resolver.resolve("") == 0

    def test_custom_table(self):
        """Test a resolver with its own table."""
        resolver = EntityResolver({"nbsp": 0xA0})

        assert resolver.resolve("nbsp") == 0xA0
        assert resolver.resolve("amp") == 0
        assert resolver.escape("\u00a0") == "&nbsp;"

    def test_entities_is_a_copy(self):
        """Test that the exposed table cannot modify the resolver."""
        resolver = EntityResolver()
        resolver.entities["amp"] = 0

        assert resolver.resolve("amp") == 0x26


class TestReadReference:
    """Test consuming references from a reader."""

    def test_named_reference(self):
        """Test that the terminating semicolon is consumed."""
        reader = ByteReader(b"lt;rest")

        assert default_resolver.read_reference(reader) == 0x3C
        assert reader.peek() == ord("r")

    def test_pound_reference(self):
        """Test the one numeric reference in the table."""
        assert default_resolver.read_reference(ByteReader(b"#163;")) == 0xA3

    def test_numeric_reference_not_decoded(self):
        """Test that general numeric references resolve to zero."""
        assert default_resolver.read_reference(ByteReader(b"#65;")) == 0

    def test_missing_semicolon(self):
        """Test that the name ends at the first non-alphanumeric unit."""
        reader = ByteReader(b"gt x")

        assert default_resolver.read_reference(reader) == 0x3E
        assert reader.peek() == ord(" ")


class TestEscape:
    """Test escaping text for output."""

    def test_markup_characters(self):
        """Test escaping of reserved markup characters."""
        assert default_resolver.escape("<a & b>") == "&lt;a &amp; b&gt;"
        assert default_resolver.escape("\"'") == "&quot;&apos;"

    def test_pound_sign(self):
        """Test that the pound sign is written as a numeric reference."""
        assert default_resolver.escape("\u00a3") == "&#163;"

    def test_plain_text(self):
        """Test that text without entities is unchanged."""
        assert default_resolver.escape("plain text") == "plain text"
        assert default_resolver.escape("") == ""
