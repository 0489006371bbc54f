"""Tests for the stand-alone DTD parser."""

from lightweight_xml_parser.tokenization import TokenPosition, TokenType, tokenize
from lightweight_xml_parser.tree import DocType, DTDParser, Modifier, StructureError, TokenCursor

FONT_DTD = b"""<?xml version="1.0" encoding="UTF-8"?>
<!-- font description -->
<!ELEMENT font (font-face?, (glyph|missing-glyph)+, hkern*)>
<!ATTLIST font id ID #IMPLIED>
<!ELEMENT glyph EMPTY>
<!ELEMENT font-face ANY>
<!ELEMENT hkern (#PCDATA)>
"""


class TestDTDParser:
    """Test reading element declarations."""

    def test_font_dtd(self):
        """Test a DTD with comments, PIs and other declarations."""
        parser = DTDParser()

        assert parser.parse(FONT_DTD) is True
        doctype = parser.doctype
        assert sorted(doctype.element_names()) == ["font", "font-face", "glyph", "hkern"]
        assert parser.declarations_read == 5
        assert doctype.is_element_an_array("font", "glyph") is True
        assert doctype.is_element_an_array("font", "missing-glyph") is True
        assert doctype.is_element_an_array("font", "hkern") is True
        assert doctype.is_element_an_array("font", "font-face") is False

    def test_fills_given_doctype(self):
        """Test that declarations are added to an existing DocType."""
        doctype = DocType(name="font")
        DTDParser(doctype).parse(b"<!ELEMENT font (glyph*)>")

        assert doctype.name == "font"
        assert "font" in doctype

    def test_optional_model_before_close(self):
        """Test a model whose '?' is directly followed by '>'."""
        parser = DTDParser()

        assert parser.parse(b"<!ELEMENT list (item)?>\n<!ELEMENT item EMPTY>") is True
        assert parser.doctype.get_element("list").model.modifier == Modifier.OPTIONAL
        assert "item" in parser.doctype

    def test_invalid_content_model(self):
        """Test that a grammar error fails the parse and keeps earlier declarations."""
        parser = DTDParser()

        assert parser.parse(b"<!ELEMENT a (b*)>\n<!ELEMENT c (d>") is False
        assert parser.errors[0].startswith("Invalid content model for element 'c'")
        assert "a" in parser.doctype
        assert "c" not in parser.doctype

    def test_element_markup_rejected(self):
        """Test that elements are not allowed in a DTD."""
        parser = DTDParser()

        assert parser.parse(b"<!ELEMENT a (b)>\n<a/>") is False
        assert parser.errors == ["Element markup is not allowed in a DTD at line 2, column 1"]

    def test_unterminated_declaration(self):
        """Test a declaration without its closing '>'."""
        parser = DTDParser()

        assert parser.parse(b"<!ELEMENT a (b)") is False
        assert parser.errors[0].startswith("Unterminated declaration")

    def test_unterminated_processing_instruction(self):
        """Test a PI without its closing '?>'."""
        parser = DTDParser()

        assert parser.parse(b"<?xml version='1.0'") is False
        assert parser.errors[0].startswith("Unterminated processing instruction")

    def test_tokenizer_error(self):
        """Test that tokenizer errors are reported."""
        parser = DTDParser()

        assert parser.parse(b'<!ELEMENT a "never closed') is False
        assert parser.errors[0].startswith("Unterminated quoted string")

    def test_missing_element_name(self):
        """Test an ELEMENT declaration without a name."""
        parser = DTDParser()

        assert parser.parse(b"<!ELEMENT >") is False
        assert parser.errors[0].startswith("Expected element name")


class TestTokenCursor:
    """Test the token cursor used by the DTD parser and builder."""

    def test_check_and_advance(self):
        """Test type lookahead."""
        cursor = TokenCursor(tokenize(b'<a x="1"/>').tokens)

        assert cursor.check(TokenType.TAG_START, TokenType.STRING)
        assert not cursor.check(TokenType.STRING)
        cursor.advance(2)
        cursor.skip_whitespace()
        assert cursor.check(TokenType.STRING, TokenType.EQUALS, TokenType.STRING)
        assert cursor.remaining == 4

    def test_peek_out_of_range(self):
        """Test lookahead past the end."""
        cursor = TokenCursor(tokenize(b"<a/>").tokens)

        assert cursor.peek(10) is None
        assert cursor.peek(-1) is None

    def test_skip_until(self):
        """Test skipping to a token type."""
        cursor = TokenCursor(tokenize(b"<a/>").tokens)

        assert cursor.skip_until(TokenType.SELF_CLOSE) is True
        assert cursor.skip_until(TokenType.PI_END) is False
        assert cursor.at_end

    def test_structure_error_position(self):
        """Test error formatting and position export."""
        error = StructureError("Unterminated declaration", TokenPosition(3, 2, 20))

        assert str(error) == "Unterminated declaration at line 3, column 2"
        assert error.position_dict() == {"line": 3, "column": 2, "offset": 20}
        assert StructureError("x").position_dict() is None
