"""Document tree nodes and the element query API.

Every node shares the small :class:`XMLNode` interface (``type``, ``value``,
``find_children``, ``find_elements``, ``write``). Text and comment nodes are
leaves; :class:`XMLElement` owns an ordered list of children and a map of
attributes.
"""

import io
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, Iterator, List, Optional, TextIO, Tuple, Type

from lightweight_xml_parser.tokenization import default_resolver

from .attributes import (
    format_value,
    parse_bool,
    parse_float,
    parse_long,
    parse_ulong,
)


class NodeType(Enum):
    """Node discriminant."""

    DECLARATION = auto()  # <?xml ...?> (not materialised as a node)
    ELEMENT = auto()      # <name ...>
    TEXT = auto()         # Character content
    COMMENT = auto()      # <!-- ... -->


NodeVisitor = Callable[["XMLNode"], Optional[bool]]
ElementVisitor = Callable[["XMLElement"], Optional[bool]]
AttributeVisitor = Callable[[str, str], Optional[bool]]


class XMLNode:
    """Shared interface of all tree nodes."""

    node_type: NodeType = NodeType.DECLARATION
    parent: Optional["XMLElement"]

    @property
    def type(self) -> NodeType:
        return self.node_type

    @property
    def value(self) -> str:
        """Element name, text content or comment text."""
        raise NotImplementedError

    def find_children(self, name: str, visitor: NodeVisitor) -> None:
        """Leaves have no children."""

    def find_elements(self, name: str, visitor: ElementVisitor) -> None:
        """Leaves have no child elements."""

    def write(self, stream: TextIO, indent: int = 0) -> None:
        """Serialize this node to ``stream``."""
        self._write(stream, max(indent, 0), pretty=indent >= 0)

    def _write(self, stream: TextIO, depth: int, pretty: bool) -> None:
        raise NotImplementedError

    def to_string(self, indent: int = 0) -> str:
        """Serialize to a string."""
        buffer = io.StringIO()
        self.write(buffer, indent)
        return buffer.getvalue()

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(eq=False)
class XMLText(XMLNode):
    """Character content."""

    text: str
    parent: Optional["XMLElement"] = field(default=None, repr=False)

    node_type = NodeType.TEXT

    @property
    def value(self) -> str:
        return self.text

    def _write(self, stream: TextIO, depth: int, pretty: bool) -> None:
        stream.write(default_resolver.escape(self.text))
        stream.write("\n")

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass(eq=False)
class XMLComment(XMLNode):
    """Comment content, without the ``<!--``/``-->`` delimiters."""

    text: str
    parent: Optional["XMLElement"] = field(default=None, repr=False)

    node_type = NodeType.COMMENT

    @property
    def value(self) -> str:
        return self.text

    def _write(self, stream: TextIO, depth: int, pretty: bool) -> None:
        if pretty:
            stream.write("\t" * depth)
        stream.write(f"<!--{self.text}-->\n")

    def to_dict(self) -> Dict[str, Any]:
        return {"comment": self.text}


@dataclass(eq=False)
class XMLElement(XMLNode):
    """A named element with attributes and ordered children.

    Children are owned: a node can only be appended to one element. Use
    :meth:`append` (or the ``children`` constructor argument) rather than
    mutating the list directly so the parent link stays correct.
    """

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List[XMLNode] = field(default_factory=list)
    parent: Optional["XMLElement"] = field(default=None, repr=False)

    node_type = NodeType.ELEMENT

    def __post_init__(self) -> None:
        """Validate the name and establish parent links."""
        if not self.name:
            raise ValueError("Element name cannot be empty")
        self._adopt_children()

    def _adopt_children(self) -> None:
        for child in self.children:
            if child.parent is not None and child.parent is not self:
                raise ValueError("Node already belongs to another element")
            child.parent = self

    @property
    def value(self) -> str:
        return self.name

    # Children

    def append(self, node: XMLNode) -> XMLNode:
        """Append ``node`` as the last child and return it."""
        if not isinstance(node, XMLNode):
            raise TypeError("Child must be an XMLNode instance")
        if node.parent is not None:
            raise ValueError("Node already belongs to another element")
        if node is self:
            raise ValueError("An element cannot contain itself")
        node.parent = self
        self.children.append(node)
        return node

    def iter_children(self) -> Iterator[XMLNode]:
        return iter(tuple(self.children))

    def iter_elements(self) -> Iterator["XMLElement"]:
        """Child elements in document order."""
        for child in self.children:
            if isinstance(child, XMLElement):
                yield child

    def find_children(self, name: str, visitor: NodeVisitor) -> None:
        """Visit direct children whose value equals ``name`` (all when empty).

        Iteration stops as soon as the visitor returns True.
        """
        for child in tuple(self.children):
            if name and child.value != name:
                continue
            if visitor(child):
                return

    def find_elements(self, name: str, visitor: ElementVisitor) -> None:
        """Like :meth:`find_children`, restricted to element children."""
        for child in tuple(self.iter_elements()):
            if name and child.name != name:
                continue
            if visitor(child):
                return

    def get_first(self, node_type: NodeType) -> Optional[XMLNode]:
        """First direct child of the given node type."""
        for child in self.children:
            if child.type == node_type:
                return child
        return None

    def get_element(self, name: str) -> Optional["XMLElement"]:
        """First direct child element named ``name``."""
        for child in self.iter_elements():
            if child.name == name:
                return child
        return None

    def child_element_count(self) -> int:
        return sum(1 for _ in self.iter_elements())

    def non_empty_child_element_count(self) -> int:
        """Child elements carrying attributes or non-empty child elements."""
        return sum(1 for child in self.iter_elements() if not child.is_empty())

    def is_empty(self) -> bool:
        if self.attributes:
            return False
        return self.non_empty_child_element_count() == 0

    # Text

    def get_text(self) -> str:
        """Concatenation of the direct text children."""
        return "".join(
            child.text for child in self.children if isinstance(child, XMLText)
        )

    def text_count(self) -> int:
        """Number of direct text children."""
        return sum(1 for child in self.children if isinstance(child, XMLText))

    def get_element_text(self, name: str) -> str:
        """Text of the first child element named ``name``, or ``""``."""
        element = self.get_element(name)
        return element.get_text() if element is not None else ""

    # Attributes

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get attribute value with optional default."""
        return self.attributes.get(name, default)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def attribute_count(self) -> int:
        return len(self.attributes)

    def set_attribute(self, name: str, value: Any) -> None:
        """Set an attribute from a str, int, float or bool value."""
        if not isinstance(name, str) or not name:
            raise TypeError("Attribute name must be a non-empty string")
        self.attributes[name] = format_value(value)

    def get_attributes(self, visitor: AttributeVisitor) -> None:
        """Visit ``(name, value)`` pairs in name order until the visitor returns True."""
        for key in sorted(self.attributes):
            if visitor(key, self.attributes[key]):
                return

    def get_int(self, name: str) -> Optional[int]:
        raw = self.attributes.get(name)
        return None if raw is None else parse_long(raw)

    def get_uint(self, name: str) -> Optional[int]:
        raw = self.attributes.get(name)
        return None if raw is None else parse_ulong(raw)

    def get_float(self, name: str) -> Optional[float]:
        raw = self.attributes.get(name)
        return None if raw is None else parse_float(raw)

    def get_bool(self, name: str) -> Optional[bool]:
        raw = self.attributes.get(name)
        return None if raw is None else parse_bool(raw)

    def get_attribute_as(self, name: str, type_: Type[Any]) -> Any:
        """Typed attribute read dispatching on ``int``, ``float``, ``bool`` or ``str``.

        Returns:
            The coerced value, or None when the attribute is absent
        """
        readers = {
            bool: self.get_bool,
            int: self.get_int,
            float: self.get_float,
            str: self.get_attribute,
        }
        try:
            reader = readers[type_]
        except KeyError:
            raise TypeError(f"Unsupported attribute type: {type_!r}") from None
        return reader(name)

    # Serialization

    def _write(self, stream: TextIO, depth: int, pretty: bool) -> None:
        escape = default_resolver.escape
        pad = "\t" * depth if pretty else ""

        stream.write(f"{pad}<{escape(self.name)}")
        for key in sorted(self.attributes):
            stream.write(f' {escape(key)}="{escape(self.attributes[key])}"')

        if not self.children:
            stream.write("/>\n")
            return

        stream.write(">\n")
        child_depth = depth + 1 if pretty else 0
        for child in self.children:
            child._write(stream, child_depth, pretty)
        stream.write(f"{pad}</{escape(self.name)}>\n")

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result: Dict[str, Any] = {
            "name": self.name,
            "attributes": dict(self.attributes),
        }
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


def count_elements(root: XMLElement) -> int:
    """Number of elements below ``root`` (not counting ``root`` itself)."""
    total = 0
    stack: List[XMLElement] = [root]
    while stack:
        element = stack.pop()
        for child in element.iter_elements():
            total += 1
            stack.append(child)
    return total


def element_depths(root: XMLElement) -> Iterator[Tuple[XMLElement, int]]:
    """Yield ``(element, depth)`` in document order; ``root`` children are depth 1."""
    stack: List[Tuple[XMLElement, int]] = [(root, 0)]
    while stack:
        element, depth = stack.pop()
        if depth:
            yield element, depth
        children = list(element.iter_elements())
        for child in reversed(children):
            stack.append((child, depth + 1))
