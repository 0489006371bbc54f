"""Tree building layer for the lightweight XML parser.

Builds the document tree from the token stream, reads DTD element
declarations and exposes the node query API.
"""

from .attributes import parse_bool, parse_float, parse_long, parse_ulong
from .builder import ParseResult, XMLTreeBuilder
from .cursor import StructureError, TokenCursor
from .doctype import (
    ContentModelError,
    ContentModelNode,
    ContentType,
    DocType,
    DocTypeElement,
    Modifier,
    SequenceType,
    parse_content_model,
)
from .document import XMLDocument
from .dtd import DTDParser
from .nodes import NodeType, XMLComment, XMLElement, XMLNode, XMLText

__all__ = [
    "parse_bool",
    "parse_float",
    "parse_long",
    "parse_ulong",
    "ParseResult",
    "XMLTreeBuilder",
    "StructureError",
    "TokenCursor",
    "ContentModelError",
    "ContentModelNode",
    "ContentType",
    "DocType",
    "DocTypeElement",
    "Modifier",
    "SequenceType",
    "parse_content_model",
    "XMLDocument",
    "DTDParser",
    "NodeType",
    "XMLComment",
    "XMLElement",
    "XMLNode",
    "XMLText",
]
