"""Recursive-descent document builder.

This module turns the token stream into a :class:`XMLDocument`. Element
structure is checked strictly: a closing tag must name the element it
closes, an element must be closed before the input ends, and attributes
must be ``name = value`` triples. The first structural error stops the
build; the document is then left empty with the error recorded.
"""

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

from lightweight_xml_parser.character import Encoding
from lightweight_xml_parser.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ParserConfig,
    PerformanceMetrics,
    get_logger,
)
from lightweight_xml_parser.tokenization import (
    Token,
    TokenizationResult,
    TokenType,
    XMLTokenizer,
)

from .cursor import StructureError, TokenCursor
from .document import XMLDocument
from .dtd import DTDParser
from .nodes import XMLComment, XMLElement, XMLText

if TYPE_CHECKING:
    from lightweight_xml_parser.api.resources import ResourceLoader

XML_DECLARATION_TARGET = "xml"
DOCTYPE_KEYWORD = "DOCTYPE"
PUBLIC_KEYWORD = "PUBLIC"
SYSTEM_KEYWORD = "SYSTEM"


@dataclass
class ParseResult:
    """Outcome of one parse.

    ``document`` is None when the parse failed; ``errors`` then holds the
    hard error(s). Lenient skips, such as an external DTD that could not be
    loaded, are reported as WARNING diagnostics on a successful result.
    """

    document: Optional[XMLDocument] = None
    success: bool = True
    errors: List[str] = field(default_factory=list)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    encoding: Optional[Encoding] = None
    tokenization_result: Optional[TokenizationResult] = field(default=None, repr=False)
    correlation_id: Optional[str] = None

    @property
    def tree(self) -> Optional[XMLDocument]:
        """Direct access to the parsed document.

        Examples:
            >>> result = parse('<root><item>value</item></root>')
            >>> result.tree.get_root_element().name
            'root'
        """
        return self.document

    @property
    def error_string(self) -> str:
        return "\n".join(self.errors)

    @property
    def element_count(self) -> int:
        """Get total number of elements in document."""
        return self.document.element_count() if self.document else 0

    @property
    def processing_time_ms(self) -> float:
        return self.performance.processing_time_ms

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id
        ))

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        return any(diag.is_error for diag in self.diagnostics)

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the parse result."""
        return {
            "success": self.success,
            "element_count": self.element_count,
            "errors": list(self.errors),
            "warnings": [
                diag.message
                for diag in self.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)
            ],
            "encoding": self.encoding.label if self.encoding else None,
            "performance": self.performance.to_dict(),
        }


class XMLTreeBuilder:
    """Builds a document tree from a token stream.

    One builder fills one :class:`XMLDocument`; calling :meth:`parse` again
    replaces the document content.
    """

    def __init__(
        self,
        document: Optional[XMLDocument] = None,
        config: Optional[ParserConfig] = None,
        resource_loader: Optional["ResourceLoader"] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize tree builder.

        Args:
            document: Document to fill; a new one is created when omitted
            config: Parser configuration
            resource_loader: Source of external DTD subsets
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or (document.config if document is not None else ParserConfig())
        self.document = document if document is not None else XMLDocument(config=self.config)
        self.resource_loader = resource_loader
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "xml_tree_builder")

        self._result = ParseResult(correlation_id=self.correlation_id)
        self._elements_created = 0

    # Entry points

    def parse(self, data: Union[bytes, bytearray, str]) -> ParseResult:
        """Tokenize ``data`` and build the document.

        ``str`` input is encoded as UTF-8 first.
        """
        start_time = time.time()
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError(f"Expected bytes or str, got {type(data).__name__}")

        self._start()
        result = self._result
        result.performance.bytes_processed = len(data)

        limit = self.config.max_input_bytes
        if limit is not None and len(data) > limit:
            self._fail(
                f"Input of {len(data)} bytes exceeds the limit of {limit} bytes",
                "xml_tree_builder"
            )
            return self._finish(start_time)

        tokenization = XMLTokenizer(correlation_id=self.correlation_id).tokenize(data)
        result.tokenization_result = tokenization
        result.encoding = tokenization.encoding
        result.performance.characters_processed = tokenization.character_count
        result.performance.tokens_generated = tokenization.token_count

        if not tokenization.success:
            for message in tokenization.errors:
                self._fail(message, "xml_tokenizer")
            return self._finish(start_time)

        self._build_tokens(tokenization.tokens)
        return self._finish(start_time)

    def build(self, tokens: Union[TokenizationResult, Sequence[Token]]) -> ParseResult:
        """Build the document from already tokenized input."""
        start_time = time.time()
        self._start()
        if isinstance(tokens, TokenizationResult):
            self._result.tokenization_result = tokens
            self._result.encoding = tokens.encoding
            tokens = tokens.tokens
        self._result.performance.tokens_generated = len(tokens)
        self._build_tokens(tokens)
        return self._finish(start_time)

    # Pipeline state

    def _start(self) -> None:
        self.document.clear()
        self._result = ParseResult(correlation_id=self.correlation_id)
        self._elements_created = 0

    def _build_tokens(self, tokens: Sequence[Token]) -> None:
        self.logger.debug("Starting tree building", extra={"token_count": len(tokens)})
        cursor = TokenCursor(tokens)
        try:
            self._parse_content(cursor, self.document, 0)
        except StructureError as e:
            self._fail(str(e), "xml_tree_builder", e.position_dict())
        except RecursionError:
            self._fail(
                f"Maximum nesting depth exceeded (max_depth={self.config.max_depth})",
                "xml_tree_builder"
            )

    def _fail(self, message: str, component: str,
              position: Optional[Dict[str, int]] = None) -> None:
        result = self._result
        result.success = False
        result.errors.append(message)
        result.add_diagnostic(DiagnosticSeverity.ERROR, message, component, position=position)
        self.document.error(message)

    def _warn(self, message: str, details: Optional[Dict[str, Any]] = None,
              exc_info: bool = False) -> None:
        self._result.add_diagnostic(
            DiagnosticSeverity.WARNING, message, "xml_tree_builder", details=details
        )
        self.logger.warning(message, extra=details or {}, exc_info=exc_info)

    def _finish(self, start_time: float) -> ParseResult:
        result = self._result
        result.performance.processing_time_ms = (time.time() - start_time) * 1000
        result.performance.elements_created = self._elements_created

        if result.success:
            result.document = self.document
            self.logger.debug(
                "Tree building completed",
                extra={
                    "element_count": self._elements_created,
                    "processing_time_ms": result.performance.processing_time_ms,
                }
            )
        else:
            self.document.discard_content()
            result.document = None
            self.logger.error("Parse failed", extra={"errors": list(result.errors)})
        return result

    # Content

    def _parse_content(self, cursor: TokenCursor, parent: XMLElement, depth: int) -> None:
        """Parse nodes into ``parent`` until its closing tag (or the input end at top level)."""
        document = self.document

        while not cursor.at_end:
            token = cursor.current
            token_type = token.type

            if token_type == TokenType.TAG_START:
                if self._parse_tag(cursor, parent, depth):
                    return
            elif token_type == TokenType.PI_START:
                self._parse_processing_instruction(cursor)
            elif token_type == TokenType.COMMENT_START:
                self._parse_comment(cursor, parent)
            elif token_type == TokenType.DECLARATION_START:
                self._parse_declaration(cursor)
            elif token_type == TokenType.TEXT:
                parent.append(XMLText(token.value))
                cursor.advance()
            elif token_type == TokenType.WHITESPACE:
                if self.config.keep_whitespace_text and parent is not document:
                    parent.append(XMLText(token.value))
                cursor.advance()
            else:
                cursor.advance()

        if parent is not document:
            raise StructureError(
                f"Unexpected end of input: element <{parent.name}> is not closed",
                cursor.last_position()
            )

    def _parse_tag(self, cursor: TokenCursor, parent: XMLElement, depth: int) -> bool:
        """Parse markup starting at ``<``.

        Returns:
            True when the markup was the closing tag of ``parent``
        """
        start = cursor.current
        cursor.advance()
        if cursor.remaining < 2:
            raise StructureError("Truncated tag", start.position)

        token = cursor.current
        if token.type == TokenType.STRING:
            self._parse_element(cursor, parent, depth + 1, start)
            return False
        if token.type == TokenType.FORWARD_SLASH:
            self._parse_closing_tag(cursor, parent, start)
            return True
        raise StructureError(f"Unexpected {token.type.name} after '<'", token.position)

    def _parse_closing_tag(self, cursor: TokenCursor, parent: XMLElement, start: Token) -> None:
        cursor.advance()
        if not cursor.check(TokenType.STRING):
            raise StructureError("Malformed closing tag", start.position)

        name = cursor.current.value
        if parent is self.document:
            raise StructureError(f"Unexpected closing tag </{name}>", start.position)
        if name != parent.name:
            raise StructureError(
                f"Mismatched closing tag: expected </{parent.name}>, found </{name}>",
                start.position
            )

        cursor.advance()
        if not cursor.check(TokenType.TAG_END):
            raise StructureError(f"Malformed closing tag </{name}>", start.position)
        cursor.advance()

    def _parse_element(self, cursor: TokenCursor, parent: XMLElement,
                       depth: int, start: Token) -> None:
        name = cursor.current.value
        if not name:
            raise StructureError("Empty element name", start.position)
        if depth > self.config.max_depth:
            raise StructureError(
                f"Maximum nesting depth of {self.config.max_depth} exceeded at <{name}>",
                start.position
            )

        element = XMLElement(name)
        self._elements_created += 1
        cursor.advance()

        while True:
            cursor.skip_whitespace()
            if cursor.at_end:
                raise StructureError(f"Unexpected end of input in tag <{name}>", start.position)

            token = cursor.current
            if token.type in (TokenType.TAG_END, TokenType.SELF_CLOSE):
                break
            if cursor.check(TokenType.STRING, TokenType.EQUALS, TokenType.STRING):
                element.attributes[token.value] = cursor.peek(2).value
                cursor.advance(3)
                continue
            raise StructureError(f"Malformed attribute in <{name}>", token.position)

        if cursor.current.type == TokenType.SELF_CLOSE:
            cursor.advance()
        else:
            cursor.advance()
            self._parse_content(cursor, element, depth)
        parent.append(element)

    # Markup other than elements

    def _parse_processing_instruction(self, cursor: TokenCursor) -> None:
        start = cursor.current
        cursor.advance()
        document = self.document

        if cursor.check(TokenType.STRING):
            target = cursor.current.value.lower()
            cursor.advance()
            while not cursor.at_end and cursor.current.type != TokenType.PI_END:
                if cursor.check(TokenType.STRING, TokenType.EQUALS, TokenType.STRING):
                    key = cursor.current.value.lower()
                    value = cursor.peek(2).value
                    if target == XML_DECLARATION_TARGET:
                        if key == "version":
                            document.version = value
                        elif key == "encoding":
                            document.encoding = value
                    cursor.advance(3)
                else:
                    cursor.advance()

        if not cursor.skip_until(TokenType.PI_END):
            raise StructureError("Unterminated processing instruction", start.position)
        cursor.advance()

    def _parse_comment(self, cursor: TokenCursor, parent: XMLElement) -> None:
        start = cursor.current
        cursor.advance()
        parts: List[str] = []
        while not cursor.at_end and cursor.current.type != TokenType.COMMENT_END:
            if cursor.current.type in (TokenType.STRING, TokenType.TEXT, TokenType.WHITESPACE):
                parts.append(cursor.current.value)
            cursor.advance()

        if cursor.at_end:
            raise StructureError("Unterminated comment", start.position)
        cursor.advance()

        if self.config.keep_comments:
            parent.append(XMLComment("".join(parts)))

    def _parse_declaration(self, cursor: TokenCursor) -> None:
        start = cursor.current
        cursor.advance()
        if cursor.check(TokenType.STRING) and cursor.current.value == DOCTYPE_KEYWORD:
            cursor.advance()
            self._parse_doctype(cursor, start)
        else:
            self.logger.debug("Skipping declaration", extra={"position": str(start.position)})
        cursor.skip_declaration(start)

    def _expect_string(self, cursor: TokenCursor, what: str, start: Token) -> str:
        cursor.skip_whitespace()
        if not cursor.check(TokenType.STRING):
            raise StructureError(f"Expected {what} in DOCTYPE", start.position)
        value = cursor.current.value
        cursor.advance()
        return value

    def _parse_doctype(self, cursor: TokenCursor, start: Token) -> None:
        doctype = self.document.doctype
        doctype.name = self._expect_string(cursor, "root element name", start)

        cursor.skip_whitespace()
        if cursor.check(TokenType.STRING):
            keyword = cursor.current.value
            if keyword == PUBLIC_KEYWORD:
                cursor.advance()
                doctype.public_id = self._expect_string(cursor, "public identifier", start)
            elif keyword == SYSTEM_KEYWORD:
                cursor.advance()
            else:
                raise StructureError(
                    f"Expected PUBLIC or SYSTEM in DOCTYPE, found {keyword!r}",
                    cursor.current.position
                )
            doctype.system_id = self._expect_string(cursor, "system identifier", start)

        self._load_external_subsets(doctype.public_id, doctype.system_id)

    def _load_external_subsets(self, public_id: str, system_id: str) -> None:
        """Feed the public then the system subset to the DTD parser.

        Failures here never fail the document.
        """
        loader = self.resource_loader
        if loader is None or not self.config.load_external_dtd:
            return

        requests = (
            ("public", public_id, loader.load_public),
            ("system", system_id, loader.load),
        )
        for kind, identifier, load in requests:
            if not identifier:
                continue
            try:
                data = load(identifier)
            except Exception as e:
                self._warn(
                    f"Could not load {kind} DTD {identifier!r}: {e}",
                    {"identifier": identifier, "exception_type": type(e).__name__},
                    exc_info=True
                )
                continue
            if not data:
                self.logger.debug(
                    "No external DTD content",
                    extra={"kind": kind, "identifier": identifier}
                )
                continue

            self._result.performance.dtd_resources_loaded += 1
            parser = DTDParser(self.document.doctype, self.correlation_id)
            if not parser.parse(data):
                self._warn(
                    f"Errors in {kind} DTD {identifier!r}: {'; '.join(parser.errors)}",
                    {"identifier": identifier}
                )
