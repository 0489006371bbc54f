"""Parsing entry points.

Module-level functions cover one-off parses; :class:`XMLParser` holds a
configuration and a resource loader for repeated use. Malformed markup
never raises: the returned :class:`ParseResult` carries the errors.

Examples:
    >>> result = parse('<font id="F1"><glyph unicode="A"/></font>')
    >>> result.success
    True
    >>> result.tree.get_root_element().get_attribute("id")
    'F1'
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from lightweight_xml_parser.shared import (
    DiagnosticSeverity,
    ParserConfig,
    get_logger,
)
from lightweight_xml_parser.tree import DocType, DTDParser, XMLDocument, XMLTreeBuilder
from lightweight_xml_parser.tree.builder import ParseResult

from .resources import ResourceLoader

# Type definitions for input data
InputType = Union[str, bytes, bytearray, Path, BinaryIO]

MS_PER_SECOND = 1000


@dataclass
class DTDResult:
    """Outcome of parsing a stand-alone DTD stream."""

    doctype: DocType = field(default_factory=DocType)
    success: bool = True
    errors: List[str] = field(default_factory=list)

    @property
    def error_string(self) -> str:
        return "\n".join(self.errors)


def parse(
    input_data: InputType,
    resource_loader: Optional[ResourceLoader] = None,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse markup from bytes, a string, a path or a binary file object.

    Args:
        input_data: Markup as bytes (optionally with a byte-order mark),
            ``str`` (encoded as UTF-8), a ``Path`` or a binary file-like object
        resource_loader: Source of external DTD subsets named by a DOCTYPE
        config: Parser configuration (defaults to :meth:`ParserConfig.default`)
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult with the document, or ``document=None`` and errors on failure

    Raises:
        TypeError: If ``input_data`` is none of the supported input types
    """
    if isinstance(input_data, Path):
        return parse_file(input_data, resource_loader, config, correlation_id)
    if isinstance(input_data, (str, bytes, bytearray)):
        return _parse_content(input_data, resource_loader, config, correlation_id)
    if hasattr(input_data, "read"):
        return _parse_file_like_object(input_data, resource_loader, config, correlation_id)
    raise TypeError(f"Unsupported input type: {type(input_data).__name__}")


def parse_string(
    xml_string: str,
    resource_loader: Optional[ResourceLoader] = None,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse markup held in a string.

    Examples:
        >>> parse_string('<a><b></a></b>').success
        False
    """
    if not isinstance(xml_string, str):
        raise TypeError(f"Expected str, got {type(xml_string).__name__}")
    return _parse_content(xml_string, resource_loader, config, correlation_id)


def parse_file(
    file_path: Union[str, Path],
    resource_loader: Optional[ResourceLoader] = None,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse a markup file.

    A missing file, a directory or an unreadable file gives a failed
    result rather than an exception.

    Examples:
        >>> result = parse_file('missing.xml')
        >>> result.success
        False
        >>> 'not found' in result.error_string.lower()
        True
    """
    start_time = time.time()
    path_obj = Path(file_path)
    logger = get_logger(__name__, correlation_id, "parse_file").bind(source=str(path_obj))

    logger.debug("Starting file parse operation")

    if not path_obj.exists():
        return _create_error_result(f"File not found: {path_obj}", correlation_id, start_time)
    if not path_obj.is_file():
        return _create_error_result(f"Path is not a file: {path_obj}", correlation_id, start_time)

    try:
        data = path_obj.read_bytes()
    except PermissionError:
        return _create_error_result(
            f"Permission denied accessing file: {path_obj}", correlation_id, start_time
        )
    except OSError as e:
        return _create_error_result(
            f"Could not read file {path_obj}: {e}", correlation_id, start_time
        )

    return _parse_content(data, resource_loader, config, correlation_id)


def parse_dtd(
    data: Union[bytes, bytearray, str],
    doctype: Optional[DocType] = None,
    correlation_id: Optional[str] = None
) -> DTDResult:
    """Parse a stand-alone DTD stream into a :class:`DocType`.

    Examples:
        >>> result = parse_dtd(b"<!ELEMENT font (font-face,glyph*)>")
        >>> result.doctype.is_element_an_array("font", "glyph")
        True
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    parser = DTDParser(doctype, correlation_id)
    success = parser.parse(data)
    return DTDResult(doctype=parser.doctype, success=success, errors=list(parser.errors))


def _parse_content(
    content: Union[str, bytes, bytearray],
    resource_loader: Optional[ResourceLoader],
    config: Optional[ParserConfig],
    correlation_id: Optional[str]
) -> ParseResult:
    """Run the tokenizer and tree builder over in-memory content."""
    config = config or ParserConfig.default()
    correlation_id = correlation_id or config.correlation_id
    logger = get_logger(__name__, correlation_id, "parse")

    document = XMLDocument(config=config, resource_loader=resource_loader)
    builder = XMLTreeBuilder(
        document,
        config=config,
        resource_loader=resource_loader,
        correlation_id=correlation_id
    )
    result = builder.parse(content)

    logger.info(
        "Parse completed",
        extra={
            "success": result.success,
            "element_count": result.element_count,
            "error_count": len(result.errors),
            "processing_time_ms": result.processing_time_ms,
        }
    )
    return result


def _parse_file_like_object(
    file_obj: BinaryIO,
    resource_loader: Optional[ResourceLoader],
    config: Optional[ParserConfig],
    correlation_id: Optional[str]
) -> ParseResult:
    start_time = time.time()
    try:
        content = file_obj.read()
    except OSError as e:
        return _create_error_result(f"Could not read input: {e}", correlation_id, start_time)
    if not isinstance(content, (bytes, bytearray, str)):
        raise TypeError(f"File object returned {type(content).__name__}, expected bytes")
    return _parse_content(content, resource_loader, config, correlation_id)


def _create_error_result(
    error_message: str,
    correlation_id: Optional[str],
    start_time: float
) -> ParseResult:
    """Build a failed result for errors found before tokenization."""
    result = ParseResult(success=False, correlation_id=correlation_id)
    result.errors.append(error_message)
    result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
    result.add_diagnostic(DiagnosticSeverity.ERROR, error_message, "api_parser")
    get_logger(__name__, correlation_id, "parse").error(
        "Parse failed", extra={"error": error_message}
    )
    return result


class XMLParser:
    """Reusable parser bound to a configuration and a resource loader.

    Examples:
        >>> parser = XMLParser(config=ParserConfig.strict())
        >>> results = [parser.parse(xml) for xml in ('<a/>', '<b/>')]
        >>> all(r.success for r in results)
        True
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        resource_loader: Optional[ResourceLoader] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ParserConfig.default()
        self.resource_loader = resource_loader
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "xml_parser")

        self._parse_count = 0
        self._successful_parses = 0

    @property
    def parse_count(self) -> int:
        return self._parse_count

    @property
    def success_rate(self) -> float:
        if not self._parse_count:
            return 0.0
        return self._successful_parses / self._parse_count

    def _record(self, result: ParseResult) -> ParseResult:
        self._parse_count += 1
        if result.success:
            self._successful_parses += 1
        return result

    def parse(self, input_data: InputType) -> ParseResult:
        return self._record(
            parse(input_data, self.resource_loader, self.config, self.correlation_id)
        )

    def parse_string(self, xml_string: str) -> ParseResult:
        return self._record(
            parse_string(xml_string, self.resource_loader, self.config, self.correlation_id)
        )

    def parse_file(self, file_path: Union[str, Path]) -> ParseResult:
        return self._record(
            parse_file(file_path, self.resource_loader, self.config, self.correlation_id)
        )

    def parse_dtd(self, data: Union[bytes, bytearray, str],
                  doctype: Optional[DocType] = None) -> DTDResult:
        return parse_dtd(data, doctype, self.correlation_id)

    def reset_statistics(self) -> None:
        self._parse_count = 0
        self._successful_parses = 0
