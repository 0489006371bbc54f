"""Tests for the lxml adapter."""

import pytest

from lightweight_xml_parser import parse
from lightweight_xml_parser.api import LxmlAdapter
from lightweight_xml_parser.tree import XMLComment, XMLDocument, XMLText

etree = pytest.importorskip("lxml.etree")


class TestLxmlAdapter:
    """Test conversion to and from lxml."""

    def setup_method(self):
        """Set up test fixtures."""
        self.adapter = LxmlAdapter()

    def test_is_available(self):
        """Test availability check."""
        assert LxmlAdapter.is_available() is True

    def test_to_lxml(self):
        """Test converting a document to an lxml element."""
        document = parse('<font id="F1">head<glyph unicode="A"/>tail<!--c--></font>').document
        element = self.adapter.to_lxml(document)

        assert element.tag == "font"
        assert element.get("id") == "F1"
        assert element.text == "head"
        assert element[0].tag == "glyph"
        assert element[0].tail == "tail"
        assert element[1].tag is etree.Comment
        assert element[1].text == "c"

    def test_to_lxml_empty_document(self):
        """Test that a document without a root cannot be converted."""
        with pytest.raises(ValueError, match="no root element"):
            self.adapter.to_lxml(XMLDocument())

    def test_from_lxml(self):
        """Test converting an lxml tree to a document."""
        element = etree.fromstring('<font id="F1">head<glyph/>tail<!--c--><?pi x?></font>')
        document = self.adapter.from_lxml(etree.ElementTree(element))
        root = document.get_root_element()

        assert root.name == "font"
        assert root.get_attribute("id") == "F1"
        assert [type(c) for c in root.children] == [XMLText, type(root), XMLText, XMLComment]
        assert root.get_text() == "headtail"

    def test_from_lxml_rejects_other_types(self):
        """Test that non-elements are rejected."""
        with pytest.raises(TypeError, match="Expected an lxml element"):
            self.adapter.from_lxml("<a/>")

    def test_to_target(self):
        """Test the ConversionResult wrapper."""
        result = self.adapter.to_target(parse("<a><b/></a>"))

        assert result.success
        assert result.metadata == {"root_tag": "a"}

    def test_to_target_failed_parse(self):
        """Test converting a failed parse."""
        result = self.adapter.to_target(parse("<a>"))

        assert result.success is False
        assert result.converted_data is None

    def test_from_target(self):
        """Test the reverse wrapper."""
        result = self.adapter.from_target(etree.fromstring("<a><b/><c/></a>"))

        assert result.success
        assert result.metadata == {"element_count": 3}

    def test_from_target_error(self):
        """Test a failing reverse conversion."""
        result = self.adapter.from_target(42)

        assert result.success is False
        assert result.errors[0].startswith("Failed to convert from lxml")
