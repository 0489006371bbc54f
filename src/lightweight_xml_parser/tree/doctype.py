"""DOCTYPE information and the element content-model subset.

A content model such as ``(a,b*,(c|d)+)`` is parsed into a tree of
:class:`ContentModelNode`. Leaves carry an element name; groups carry the
separator that joined their children. Both may carry a cardinality
modifier. The model answers one question for the tree builder's callers:
may a given child element repeat inside its parent (:meth:`is_array`)?
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional

MODIFIER_CHARS = "?*+"
SEPARATOR_CHARS = ",|"
MIN_MODEL_LENGTH = 3


class ContentModelError(ValueError):
    """Raised when a content model string does not follow the grammar."""


class Modifier(Enum):
    """Cardinality suffix on a content particle."""

    NONE = ""
    OPTIONAL = "?"
    ZERO_OR_MORE = "*"
    ONE_OR_MORE = "+"

    @property
    def is_repeating(self) -> bool:
        return self in (Modifier.ZERO_OR_MORE, Modifier.ONE_OR_MORE)


class SequenceType(Enum):
    """How a group joins its children."""

    NONE = ""
    SEQUENCE = ","
    CHOICE = "|"


class ContentType(Enum):
    """Declared content category of an element."""

    MODEL = "model"   # Parenthesised content model
    EMPTY = "EMPTY"
    ANY = "ANY"


@dataclass(eq=False)
class ContentModelNode:
    """Leaf (named particle) or group in a content model."""

    name: str = ""
    modifier: Modifier = Modifier.NONE
    sequence_type: SequenceType = SequenceType.NONE
    children: List["ContentModelNode"] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return bool(self.name)

    def get_modifier(self, name: str) -> Optional[Modifier]:
        """Modifier of the first leaf named ``name`` (depth first), None if absent."""
        if self.name and self.name == name:
            return self.modifier
        for child in self.children:
            modifier = child.get_modifier(name)
            if modifier is not None:
                return modifier
        return None

    def is_array(self, name: str) -> bool:
        """Whether ``name`` may occur more than once at this point in the model.

        A repeating leaf is an array. Inside a repeating group every leaf is
        an array, whatever its own modifier.
        """
        if self.name and self.name == name:
            return self.modifier.is_repeating

        if self.modifier.is_repeating:
            return any(child.get_modifier(name) is not None for child in self.children)

        return any(child.is_array(name) for child in self.children)

    def iter_leaves(self) -> Iterator["ContentModelNode"]:
        if self.is_leaf:
            yield self
        for child in self.children:
            yield from child.iter_leaves()

    def names(self) -> List[str]:
        """Leaf names in model order."""
        return [leaf.name for leaf in self.iter_leaves()]

    def to_string(self) -> str:
        """Render the model back to DTD syntax."""
        if self.is_leaf:
            return self.name + self.modifier.value
        separator = self.sequence_type.value or ","
        inner = separator.join(child.to_string() for child in self.children)
        return f"({inner}){self.modifier.value}"

    def __str__(self) -> str:
        return self.to_string()


def _parse_group(model: str, index: int, group: ContentModelNode) -> int:
    """Fill ``group`` from ``model`` starting just after its ``(``.

    Returns:
        Index just past the group's closing ``)``
    """
    length = len(model)
    while index < length:
        if model[index] == "(":
            child = ContentModelNode()
            index = _parse_group(model, index + 1, child)
            if index < length and model[index] in MODIFIER_CHARS:
                child.modifier = Modifier(model[index])
                index += 1
            group.children.append(child)
            continue

        name: List[str] = []
        modifier = ""
        while index < length:
            char = model[index]
            index += 1
            if char in MODIFIER_CHARS:
                modifier = char
                continue
            if char in SEPARATOR_CHARS or char == ")":
                if char in SEPARATOR_CHARS:
                    group.sequence_type = SequenceType(char)
                if name:
                    group.children.append(
                        ContentModelNode(name="".join(name), modifier=Modifier(modifier))
                    )
                if char == ")":
                    return index
                break
            if char == "(":
                raise ContentModelError(
                    f"Unexpected '(' inside particle name at position {index - 1}"
                )
            if modifier:
                # A modifier followed by more characters is part of the name
                name.append(modifier)
                modifier = ""
            name.append(char)

    raise ContentModelError("Unbalanced parentheses in content model")


def parse_content_model(text: str) -> ContentModelNode:
    """Parse a content model string into its root group.

    Whitespace is ignored. The model must start with ``(`` and close its
    outermost group exactly once; a single modifier may follow the closing
    ``)`` and applies to the root group.

    Raises:
        ContentModelError: If the text does not follow the grammar
    """
    model = "".join((text or "").split())
    if len(model) < MIN_MODEL_LENGTH or not model.startswith("("):
        raise ContentModelError(f"Content model must be a parenthesised group: {text!r}")

    root = ContentModelNode()
    body = model
    if body[-1] in MODIFIER_CHARS:
        root.modifier = Modifier(body[-1])
        body = body[:-1]
    if not body.endswith(")"):
        raise ContentModelError(f"Content model must end with ')': {text!r}")

    end = _parse_group(body, 1, root)
    if end != len(body):
        raise ContentModelError(
            f"Unexpected characters after content model group: {body[end:]!r}"
        )
    return root


@dataclass
class DocTypeElement:
    """An ``<!ELEMENT name model>`` declaration."""

    name: str
    model: ContentModelNode = field(default_factory=ContentModelNode)
    content_type: ContentType = ContentType.MODEL

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Declared element name cannot be empty")

    @classmethod
    def from_declaration(cls, name: str, content: str) -> "DocTypeElement":
        """Build a declaration from its raw content text.

        ``EMPTY`` and ``ANY`` give an empty model; anything else must parse
        as a content model.

        Raises:
            ContentModelError: If the content is not a valid model
        """
        keyword = (content or "").strip()
        if keyword in (ContentType.EMPTY.value, ContentType.ANY.value):
            return cls(name=name, content_type=ContentType(keyword))
        return cls(name=name, model=parse_content_model(content))

    def parse_content_model(self, text: str) -> bool:
        """Replace the model from ``text``; False (model unchanged) when invalid."""
        try:
            self.model = parse_content_model(text)
        except ContentModelError:
            return False
        self.content_type = ContentType.MODEL
        return True

    def is_array(self, child: str) -> bool:
        return self.model.is_array(child)

    def get_modifier(self, child: str) -> Optional[Modifier]:
        return self.model.get_modifier(child)


@dataclass
class DocType:
    """Root name, external identifiers and declared elements of a document."""

    name: str = ""
    public_id: str = ""
    system_id: str = ""
    elements: Dict[str, DocTypeElement] = field(default_factory=dict)

    def add_element(self, element: DocTypeElement) -> None:
        """Register a declaration, replacing one with the same name."""
        self.elements[element.name] = element

    def get_element(self, name: str) -> Optional[DocTypeElement]:
        return self.elements.get(name)

    def element_names(self) -> List[str]:
        return list(self.elements)

    def is_element_an_array(self, parent: str, child: str) -> bool:
        """Whether ``child`` may repeat inside ``parent``; False if ``parent`` is undeclared."""
        element = self.elements.get(parent)
        return element.is_array(child) if element is not None else False

    def clear(self) -> None:
        self.name = ""
        self.public_id = ""
        self.system_id = ""
        self.elements.clear()

    def __contains__(self, name: object) -> bool:
        return name in self.elements

    def __len__(self) -> int:
        return len(self.elements)

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "public_id": self.public_id,
            "system_id": self.system_id,
            "elements": {
                name: (
                    element.model.to_string()
                    if element.content_type is ContentType.MODEL
                    else element.content_type.value
                )
                for name, element in self.elements.items()
            },
        }
