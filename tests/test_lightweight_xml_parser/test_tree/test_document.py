"""Tests for the document container."""

import pytest

from lightweight_xml_parser.api import MappingResourceLoader
from lightweight_xml_parser.shared import ParserConfig
from lightweight_xml_parser.tree import XMLDocument, XMLElement, XMLText


class TestDocumentParse:
    """Test parsing through the document."""

    def test_parse(self):
        """Test a successful parse."""
        document = XMLDocument()

        assert document.parse(b'<font id="F1"><glyph/><glyph/></font>') is True
        assert document.get_root_element().name == "font"
        assert document.root is document.get_root_element()
        assert document.element_count() == 3
        assert not document.has_errors

    def test_failed_parse(self):
        """Test that a failure leaves errors and no children."""
        document = XMLDocument()

        assert document.parse("<a><b></a></b>") is False
        assert document.children == []
        assert document.get_root_element() is None
        assert document.has_errors
        assert document.get_error_string().startswith("Mismatched closing tag")

    def test_failed_parse_drops_prolog(self):
        """Test that declaration and DOCTYPE values from failed input are not kept."""
        document = XMLDocument()
        data = (
            b'<?xml version="1.0" encoding="UTF-8"?>\n'
            b'<!DOCTYPE font SYSTEM "font.dtd">\n'
            b"<font><glyph></font>"
        )

        assert document.parse(data) is False
        assert document.version == ""
        assert document.encoding == ""
        assert document.doctype.name == ""
        assert document.doctype.system_id == ""
        assert document.get_error_string().startswith("Mismatched closing tag")

    def test_reparse_clears_errors(self):
        """Test that a new parse starts from a clean state."""
        document = XMLDocument()
        document.parse("<a>")

        assert document.parse("<b/>") is True
        assert document.errors == []
        assert [c.name for c in document.children] == ["b"]

    def test_config_is_used(self):
        """Test that the document configuration reaches the builder."""
        document = XMLDocument(config=ParserConfig(keep_whitespace_text=True))
        document.parse("<a> <b/> </a>\n")

        assert len(document.children) == 1
        assert document.get_root_element().text_count() == 2

    def test_resource_loader(self):
        """Test external subset loading through the document."""
        document = XMLDocument()
        document.set_resource_loader(
            MappingResourceLoader(system={"font.dtd": b"<!ELEMENT font (glyph)+>"})
        )

        assert document.parse(b'<!DOCTYPE font SYSTEM "font.dtd"><font/>')
        assert document.is_element_an_array("font", "glyph") is True

    def test_parse_dtd(self):
        """Test registering declarations directly."""
        document = XMLDocument()

        assert document.parse_dtd(b"<!ELEMENT font (font-face,glyph*)>") is True
        assert document.is_element_an_array("font", "glyph") is True
        assert document.is_element_an_array("font", "font-face") is False

    def test_parse_dtd_failure(self):
        """Test that DTD errors are added to the document errors."""
        document = XMLDocument()

        assert document.parse_dtd(b"<!ELEMENT font (glyph>") is False
        assert document.get_error_string().startswith("Invalid content model for element 'font'")

    def test_named_document_rejected(self):
        """Test that the container cannot be named."""
        with pytest.raises(ValueError, match="no name"):
            XMLDocument(name="root")


class TestDocumentState:
    """Test clearing and serialising documents."""

    def test_clear(self):
        """Test that clear resets every field."""
        document = XMLDocument()
        document.parse(b'<?xml version="1.0" encoding="UTF-8"?><!DOCTYPE a SYSTEM "a.dtd"><a/>')
        document.error("manual")
        document.clear()

        assert document.children == []
        assert document.errors == []
        assert document.version == ""
        assert document.encoding == ""
        assert document.doctype.name == ""

    def test_clear_detaches_children(self):
        """Test that cleared children can be appended elsewhere."""
        document = XMLDocument()
        child = document.append(XMLElement("a"))
        document.clear()

        assert child.parent is None
        XMLElement("b").append(child)

    def test_to_string(self):
        """Test that only the top-level nodes are written."""
        document = XMLDocument()
        root = document.append(XMLElement("a"))
        root.append(XMLText("x"))

        assert document.to_string() == "<a>\nx\n</a>\n"

    def test_to_string_with_declaration(self):
        """Test the optional XML declaration line."""
        document = XMLDocument()
        document.append(XMLElement("a"))

        assert document.to_string(declaration=True) == (
            '<?xml version="1.0" encoding="utf-8"?>\n<a/>\n'
        )

        document.parse(b'<?xml version="1.1" encoding="UTF-8"?><b/>')
        assert document.to_string(declaration=True) == (
            '<?xml version="1.1" encoding="UTF-8"?>\n<b/>\n'
        )

    def test_to_dict(self):
        """Test dictionary conversion."""
        document = XMLDocument()
        document.parse(b'<?xml version="1.0"?><a x="1"/>')

        assert document.to_dict() == {
            "version": "1.0",
            "encoding": "",
            "doctype": {"name": "", "public_id": "", "system_id": "", "elements": {}},
            "children": [{"name": "a", "attributes": {"x": "1"}}],
        }

    def test_to_dict_with_errors(self):
        """Test that errors appear in the dictionary."""
        document = XMLDocument()
        document.parse("<a>")

        assert "errors" in document.to_dict()
