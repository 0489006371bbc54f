"""Tests for tree nodes and the element query API."""

import io

import pytest

from lightweight_xml_parser.tree import (
    NodeType,
    XMLComment,
    XMLElement,
    XMLText,
)
from lightweight_xml_parser.tree.nodes import count_elements, element_depths


@pytest.fixture
def font():
    """A small font element with glyph children."""
    root = XMLElement("font", {"name": "Sans", "size": "12"})
    root.append(XMLText("Fallback"))
    for code in ("0x41", "0x42", "0x43"):
        root.append(XMLElement("glyph", {"code": code}))
    root.append(XMLComment(" kerning "))
    root.append(XMLElement("kerning"))
    return root


class TestNodeBasics:
    """Test node types, values and parent links."""

    def test_types_and_values(self):
        """Test the node discriminant and value."""
        assert XMLElement("a").type == NodeType.ELEMENT
        assert XMLElement("a").value == "a"
        assert XMLText("hi").type == NodeType.TEXT
        assert XMLText("hi").value == "hi"
        assert XMLComment("c").type == NodeType.COMMENT
        assert XMLComment("c").value == "c"

    def test_empty_name(self):
        """Test that elements need a name."""
        with pytest.raises(ValueError, match="Element name cannot be empty"):
            XMLElement("")

    def test_append_sets_parent(self):
        """Test that appended nodes point at their parent."""
        parent = XMLElement("a")
        child = parent.append(XMLText("x"))

        assert child.parent is parent
        assert parent.children == [child]

    def test_constructor_children_adopted(self):
        """Test that children passed to the constructor are adopted."""
        child = XMLElement("b")
        parent = XMLElement("a", children=[child])

        assert child.parent is parent

    def test_append_already_parented(self):
        """Test that a node cannot have two parents."""
        child = XMLElement("b")
        XMLElement("a").append(child)

        with pytest.raises(ValueError, match="already belongs"):
            XMLElement("c").append(child)

    def test_append_self(self):
        """Test that an element cannot contain itself."""
        element = XMLElement("a")

        with pytest.raises(ValueError, match="cannot contain itself"):
            element.append(element)

    def test_append_non_node(self):
        """Test that only nodes can be appended."""
        with pytest.raises(TypeError):
            XMLElement("a").append("text")

    def test_leaf_find_is_noop(self):
        """Test that leaves have no children to visit."""
        visited = []
        XMLText("x").find_children("", visited.append)

        assert visited == []


class TestChildQueries:
    """Test child lookup and visitor iteration."""

    def test_find_elements_visits_in_order(self, font):
        """Test that every matching element is visited in document order."""
        codes = []
        font.find_elements("glyph", lambda e: codes.append(e.get_attribute("code")))

        assert codes == ["0x41", "0x42", "0x43"]

    def test_find_elements_stops_on_true(self, font):
        """Test early exit when the visitor returns True."""
        visited = []

        def visitor(element):
            visited.append(element)
            return len(visited) == 2

        font.find_elements("glyph", visitor)

        assert len(visited) == 2

    def test_find_elements_empty_name(self, font):
        """Test that an empty name matches all element children."""
        names = []
        font.find_elements("", lambda e: names.append(e.name))

        assert names == ["glyph", "glyph", "glyph", "kerning"]

    def test_find_children_matches_value(self, font):
        """Test that find_children compares node values."""
        found = []
        font.find_children("Fallback", found.append)

        assert len(found) == 1
        assert isinstance(found[0], XMLText)

    def test_find_children_all(self, font):
        """Test visiting every child."""
        found = []
        font.find_children("", found.append)

        assert len(found) == 6

    def test_get_first_and_element(self, font):
        """Test first-of-type lookups."""
        assert font.get_first(NodeType.COMMENT).text == " kerning "
        assert font.get_first(NodeType.DECLARATION) is None
        assert font.get_element("glyph").get_attribute("code") == "0x41"
        assert font.get_element("missing") is None

    def test_counts(self, font):
        """Test child element counts and emptiness."""
        assert font.child_element_count() == 4
        assert font.non_empty_child_element_count() == 3
        assert font.get_element("kerning").is_empty()
        assert not font.is_empty()

    def test_text(self, font):
        """Test direct text access."""
        assert font.get_text() == "Fallback"
        assert font.text_count() == 1

    def test_get_element_text(self):
        """Test reading text of a named child."""
        root = XMLElement("r")
        title = root.append(XMLElement("title"))
        title.append(XMLText("Hello"))

        assert root.get_element_text("title") == "Hello"
        assert root.get_element_text("missing") == ""

    def test_count_and_depths(self, font):
        """Test whole-subtree helpers."""
        inner = font.get_element("kerning").append(XMLElement("pair"))

        assert count_elements(font) == 5
        depths = list(element_depths(font))
        assert depths[-1] == (inner, 2)
        assert [d for _, d in depths] == [1, 1, 1, 1, 2]


class TestAttributes:
    """Test attribute access and typed readers."""

    def test_get_attribute_default(self):
        """Test attribute lookup with a default."""
        element = XMLElement("a", {"x": "1"})

        assert element.get_attribute("x") == "1"
        assert element.get_attribute("y") is None
        assert element.get_attribute("y", "d") == "d"
        assert element.has_attribute("x")
        assert element.attribute_count() == 1

    def test_set_attribute(self):
        """Test storing typed values as strings."""
        element = XMLElement("a")
        element.set_attribute("flag", True)
        element.set_attribute("size", 12)
        element.set_attribute("scale", 0.5)

        assert element.attributes == {"flag": "true", "size": "12", "scale": "0.5"}

    def test_set_attribute_bad_name(self):
        """Test that attribute names must be non-empty strings."""
        with pytest.raises(TypeError, match="Attribute name"):
            XMLElement("a").set_attribute("", "x")

    def test_get_attributes_sorted(self):
        """Test visiting attributes in name order with early exit."""
        element = XMLElement("a", {"c": "3", "a": "1", "b": "2"})
        seen = []
        element.get_attributes(lambda k, v: seen.append((k, v)))

        assert seen == [("a", "1"), ("b", "2"), ("c", "3")]

        first = []
        element.get_attributes(lambda k, v: first.append(k) or True)
        assert first == ["a"]

    def test_typed_readers(self):
        """Test integer, unsigned, float and bool readers."""
        element = XMLElement("glyph", {
            "code": "0x1F",
            "cp": "U+0041",
            "color": "#FFF",
            "neg": "-1",
            "advance": "7.5",
            "visible": "yes",
        })

        assert element.get_int("code") == 31
        assert element.get_int("cp") == 65
        assert element.get_uint("color") == 0xFFFFFFFF
        assert element.get_uint("neg") == 0xFFFFFFFF
        assert element.get_float("advance") == 7.5
        assert element.get_bool("visible") is True
        assert element.get_int("missing") is None
        assert element.get_bool("missing") is None

    def test_get_attribute_as(self):
        """Test the type-dispatching reader."""
        element = XMLElement("a", {"n": "3", "f": "true"})

        assert element.get_attribute_as("n", int) == 3
        assert element.get_attribute_as("n", float) == 3.0
        assert element.get_attribute_as("f", bool) is True
        assert element.get_attribute_as("n", str) == "3"
        with pytest.raises(TypeError, match="Unsupported attribute type"):
            element.get_attribute_as("n", list)


class TestSerialization:
    """Test writing nodes back out."""

    def _element(self):
        root = XMLElement("a", {"z": "1", "b": "<"})
        root.append(XMLText("hi & bye"))
        child = root.append(XMLElement("c"))
        child.append(XMLComment("note"))
        return root

    def test_pretty_output(self):
        """Test tab-indented output with sorted, escaped attributes."""
        assert self._element().to_string() == (
            '<a b="&lt;" z="1">\n'
            "hi &amp; bye\n"
            "\t<c>\n"
            "\t\t<!--note-->\n"
            "\t</c>\n"
            "</a>\n"
        )

    def test_negative_indent(self):
        """Test that a negative indent writes no tabs."""
        assert self._element().to_string(-1) == (
            '<a b="&lt;" z="1">\n'
            "hi &amp; bye\n"
            "<c>\n"
            "<!--note-->\n"
            "</c>\n"
            "</a>\n"
        )

    def test_write_to_stream(self):
        """Test writing an empty element to a stream at an indent."""
        buffer = io.StringIO()
        XMLElement("e").write(buffer, 2)

        assert buffer.getvalue() == "\t\t<e/>\n"

    def test_to_dict(self):
        """Test dictionary conversion."""
        assert self._element().to_dict() == {
            "name": "a",
            "attributes": {"z": "1", "b": "<"},
            "children": [
                {"text": "hi & bye"},
                {"name": "c", "attributes": {}, "children": [{"comment": "note"}]},
            ],
        }
