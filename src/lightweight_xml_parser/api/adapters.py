"""Conversion between document trees and ``lxml.etree``.

lxml is an optional dependency (``pip install lightweight-xml-parser[adapters]``).
:meth:`LxmlAdapter.is_available` reports whether it can be imported; the
direct conversion methods raise ``ImportError`` when it cannot.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from lightweight_xml_parser.shared import get_logger
from lightweight_xml_parser.tree import (
    XMLComment,
    XMLDocument,
    XMLElement,
    XMLText,
)
from lightweight_xml_parser.tree.builder import ParseResult


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


def _import_etree() -> Any:
    try:
        from lxml import etree
    except ImportError as e:
        raise ImportError(
            "lxml is required for LxmlAdapter; install the 'adapters' extra"
        ) from e
    return etree


class LxmlAdapter:
    """Bidirectional conversion with ``lxml.etree`` elements.

    Text children map to ``.text`` (before the first child element) and
    ``.tail`` (after a child element); comments map to lxml comment nodes.
    Processing instructions in an lxml tree are dropped.
    """

    name = "lxml"

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "lxml_adapter")

    @staticmethod
    def is_available() -> bool:
        """Check if lxml is available."""
        try:
            _import_etree()
        except ImportError:
            return False
        return True

    # Direct conversion

    def to_lxml(self, node: Union[XMLDocument, XMLElement]) -> Any:
        """Convert an element, or a document's root element, to an lxml element.

        Raises:
            ImportError: If lxml is not installed
            ValueError: If a document has no root element, or lxml rejects
                a name or comment
        """
        etree = _import_etree()
        if isinstance(node, XMLDocument):
            root = node.get_root_element()
            if root is None:
                raise ValueError("Document has no root element")
            node = root
        return self._element_to_lxml(node, etree)

    def from_lxml(self, element: Any) -> XMLDocument:
        """Convert an lxml element (or element tree) to a new document.

        Raises:
            ImportError: If lxml is not installed
            TypeError: If ``element`` is not an lxml element
        """
        etree = _import_etree()
        if hasattr(element, "getroot"):
            element = element.getroot()
        if not isinstance(element, etree._Element):
            raise TypeError(f"Expected an lxml element, got {type(element).__name__}")

        document = XMLDocument()
        document.append(self._element_from_lxml(element, etree))
        return document

    # ConversionResult wrappers

    def to_target(self, parse_result: ParseResult) -> ConversionResult:
        """Convert a successful ParseResult to an lxml element."""
        start_time = time.time()
        if not parse_result.success or parse_result.document is None:
            return self._error_result(
                "ParseResult is not successful or has no document", parse_result, start_time
            )
        try:
            converted = self.to_lxml(parse_result.document)
        except (ImportError, ValueError, TypeError) as e:
            return self._error_result(f"Failed to convert to lxml: {e}", parse_result, start_time)

        return ConversionResult(
            success=True,
            converted_data=converted,
            original_data=parse_result,
            conversion_time_ms=(time.time() - start_time) * 1000,
            metadata={"root_tag": converted.tag},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert an lxml element to an XMLDocument."""
        start_time = time.time()
        try:
            document = self.from_lxml(target_data)
        except (ImportError, ValueError, TypeError) as e:
            return self._error_result(f"Failed to convert from lxml: {e}", target_data, start_time)

        return ConversionResult(
            success=True,
            converted_data=document,
            original_data=target_data,
            conversion_time_ms=(time.time() - start_time) * 1000,
            metadata={"element_count": document.element_count()},
        )

    def _error_result(self, message: str, original: Any, start_time: float) -> ConversionResult:
        self.logger.warning("Conversion failed", extra={"error": message})
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original,
            conversion_time_ms=(time.time() - start_time) * 1000,
            errors=[message],
        )

    # Tree walking

    def _element_to_lxml(self, element: XMLElement, etree: Any) -> Any:
        lxml_element = etree.Element(element.name)
        for key in sorted(element.attributes):
            lxml_element.set(key, element.attributes[key])

        last = None
        for child in element.children:
            if isinstance(child, XMLText):
                if last is None:
                    lxml_element.text = (lxml_element.text or "") + child.text
                else:
                    last.tail = (last.tail or "") + child.text
                continue
            if isinstance(child, XMLComment):
                last = etree.Comment(child.text)
            elif isinstance(child, XMLElement):
                last = self._element_to_lxml(child, etree)
            else:
                continue
            lxml_element.append(last)
        return lxml_element

    def _element_from_lxml(self, lxml_element: Any, etree: Any) -> XMLElement:
        element = XMLElement(lxml_element.tag)
        for key, value in lxml_element.attrib.items():
            element.attributes[key] = value
        if lxml_element.text:
            element.append(XMLText(lxml_element.text))

        for child in lxml_element:
            if child.tag is etree.Comment:
                element.append(XMLComment(child.text or ""))
            elif isinstance(child.tag, str):
                element.append(self._element_from_lxml(child, etree))
            if child.tail:
                element.append(XMLText(child.tail))
        return element
