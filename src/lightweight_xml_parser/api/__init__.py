"""Public parsing API: entry points, resource loaders and adapters."""

from .adapters import ConversionResult, LxmlAdapter
from .parser import (
    DTDResult,
    XMLParser,
    parse,
    parse_dtd,
    parse_file,
    parse_string,
)
from .resources import FileResourceLoader, MappingResourceLoader, ResourceLoader

__all__ = [
    "ConversionResult",
    "LxmlAdapter",
    "DTDResult",
    "XMLParser",
    "parse",
    "parse_dtd",
    "parse_file",
    "parse_string",
    "FileResourceLoader",
    "MappingResourceLoader",
    "ResourceLoader",
]
