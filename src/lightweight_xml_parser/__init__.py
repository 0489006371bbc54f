"""Lightweight XML Parser.

A small, strict markup parser: BOM-aware byte reader, single-pass tokenizer
with a fixed entity table, recursive-descent document builder and a DTD
content-model subset for asking whether a child element may repeat.

API levels:
- Simple functions: parse(), parse_string(), parse_file(), parse_dtd()
- Configured parser: XMLParser with a ParserConfig and a resource loader
- Direct tree use: XMLDocument.parse() and the element query API
"""

__version__ = "0.1.0"
__author__ = "Lightweight XML Parser Team"

from .api import (
    DTDResult,
    FileResourceLoader,
    MappingResourceLoader,
    ResourceLoader,
    XMLParser,
    parse,
    parse_dtd,
    parse_file,
    parse_string,
)
from .character import Encoding
from .shared.config import ConfigError, ConfigValidationError, ParserConfig
from .tree import (
    ContentModelNode,
    DocType,
    DocTypeElement,
    Modifier,
    NodeType,
    ParseResult,
    XMLComment,
    XMLDocument,
    XMLElement,
    XMLNode,
    XMLText,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Simple parsing functions
    "parse",
    "parse_string",
    "parse_file",
    "parse_dtd",

    # Configured parser and collaborators
    "XMLParser",
    "ResourceLoader",
    "FileResourceLoader",
    "MappingResourceLoader",

    # Result objects and data structures
    "ParseResult",
    "DTDResult",
    "XMLDocument",
    "XMLElement",
    "XMLNode",
    "XMLText",
    "XMLComment",
    "NodeType",
    "DocType",
    "DocTypeElement",
    "ContentModelNode",
    "Modifier",
    "Encoding",

    # Configuration
    "ParserConfig",
    "ConfigError",
    "ConfigValidationError",
]
