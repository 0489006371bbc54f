"""Single-pass markup tokenizer.

This module converts the unit stream of a :class:`ByteReader` into a flat,
ordered list of classified tokens. Apart from the reader cursor the only
state is the ``[`` nesting level, which suppresses trailing-text scanning
inside a DOCTYPE internal subset. Element structure is left entirely to the
tree builder.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Union

from lightweight_xml_parser.character import ByteReader, Encoding
from lightweight_xml_parser.shared import get_logger

from .entities import AMPERSAND, EntityResolver, default_resolver

# Unit values the state machine dispatches on
TAB = 0x09
LINE_FEED = 0x0A
VERTICAL_TAB = 0x0B
FORM_FEED = 0x0C
CARRIAGE_RETURN = 0x0D
SPACE = 0x20
BACKSPACE = 0x08
DOUBLE_QUOTE = 0x22
SINGLE_QUOTE = 0x27
HYPHEN = 0x2D
SLASH = 0x2F
LESS_THAN = 0x3C
EQUALS_SIGN = 0x3D
GREATER_THAN = 0x3E
QUESTION_MARK = 0x3F
EXCLAMATION = 0x21
OPEN_BRACKET = 0x5B
CLOSE_BRACKET = 0x5D

WHITESPACE_UNITS = frozenset({SPACE, TAB, CARRIAGE_RETURN, LINE_FEED, FORM_FEED})
UNQUOTED_STOP_UNITS = frozenset({
    EQUALS_SIGN, GREATER_THAN, SLASH,
    TAB, SPACE, LINE_FEED, VERTICAL_TAB, FORM_FEED, CARRIAGE_RETURN,
})
QUOTED_DROPPED_UNITS = frozenset({BACKSPACE, LINE_FEED, VERTICAL_TAB, CARRIAGE_RETURN})
PRINTABLE_MIN = 0x20


class TokenType(Enum):
    """Markup token kinds produced by the tokenizer."""

    STRING = auto()             # Quoted or unquoted name/value
    TEXT = auto()               # Character content between tags
    WHITESPACE = auto()         # Whitespace run
    EQUALS = auto()             # =
    TAG_START = auto()          # <
    TAG_END = auto()            # >
    SELF_CLOSE = auto()         # />
    FORWARD_SLASH = auto()      # / not followed by >
    COMMENT_START = auto()      # <!--
    COMMENT_END = auto()        # -->
    PI_START = auto()           # <?
    PI_END = auto()             # ?>
    DECLARATION_START = auto()  # <!
    OPEN_BRACKET = auto()       # [
    CLOSE_BRACKET = auto()      # ]


DOCTYPE_KEYWORD = "DOCTYPE"

# Tokens after which the raw text up to the next '<' is scanned
STRUCTURAL_CLOSE_TYPES = frozenset({
    TokenType.TAG_END,
    TokenType.COMMENT_END,
    TokenType.PI_END,
    TokenType.SELF_CLOSE,
})


@dataclass(frozen=True)
class TokenPosition:
    """Position information for tokens."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


@dataclass(frozen=True)
class Token:
    """A single classified token."""

    type: TokenType
    value: str = ""
    position: TokenPosition = field(default_factory=lambda: TokenPosition(1, 1, 0))

    @property
    def is_whitespace(self) -> bool:
        """Check if this token is a whitespace run."""
        return self.type == TokenType.WHITESPACE


@dataclass
class TokenizationResult:
    """Result of tokenization with the tokens and any hard error."""

    tokens: List[Token] = field(default_factory=list)
    success: bool = True
    encoding: Encoding = Encoding.PLAIN_TEXT
    errors: List[str] = field(default_factory=list)
    processing_time: float = 0.0
    character_count: int = 0

    @property
    def token_count(self) -> int:
        """Get the total number of tokens."""
        return len(self.tokens)

    @property
    def error_string(self) -> str:
        """All errors joined by newlines."""
        return "\n".join(self.errors)


class TokenizationError(Exception):
    """Hard tokenizer error such as an unterminated string or comment."""

    def __init__(self, message: str, position: Optional[TokenPosition] = None) -> None:
        self.message = message
        self.position = position
        super().__init__(f"{message} at {position}" if position else message)


class _TextBuilder:
    """Collects raw units and decoded entity characters into one string.

    Raw units from single-byte input are buffered as bytes and decoded as
    UTF-8 (falling back to Latin-1) so multi-byte UTF-8 text survives.
    """

    def __init__(self, encoding: Encoding) -> None:
        self._encoding = encoding
        self._parts: List[str] = []
        self._pending: List[int] = []

    def add_unit(self, unit: int) -> None:
        self._pending.append(unit)

    def add_codepoint(self, codepoint: int) -> None:
        self._flush()
        self._parts.append(chr(codepoint))

    def _flush(self) -> None:
        if not self._pending:
            return
        self._parts.append(_units_to_str(self._pending, self._encoding))
        self._pending = []

    def __bool__(self) -> bool:
        return bool(self._pending or self._parts)

    def getvalue(self) -> str:
        self._flush()
        return "".join(self._parts)


def _units_to_str(units: List[int], encoding: Encoding) -> str:
    """Decode a run of raw units according to the reader encoding."""
    if encoding.is_single_byte:
        raw = bytes(units)
        try:
            return raw.decode(encoding.codec)
        except UnicodeDecodeError:
            return raw.decode("latin-1")

    byteorder = "big" if encoding.is_big_endian else "little"
    raw = b"".join(unit.to_bytes(encoding.unit_width, byteorder) for unit in units)
    return raw.decode(encoding.codec, errors="replace")


class XMLTokenizer:
    """State machine over the current peeked unit.

    Produces the token list in one forward pass. Hard errors (an unterminated
    quoted string or comment) stop tokenization and are reported on the
    result rather than raised.
    """

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        entity_resolver: Optional[EntityResolver] = None
    ) -> None:
        """Initialize the tokenizer.

        Args:
            correlation_id: Optional correlation ID for tracking requests
            entity_resolver: Entity table used while extracting strings and text
        """
        self.correlation_id = correlation_id
        self.entities = entity_resolver or default_resolver
        self.logger = get_logger(__name__, correlation_id, "xml_tokenizer")
        self._reader: Optional[ByteReader] = None
        self._tokens: List[Token] = []
        self._in_doctype = False
        self._in_subset = False

    def tokenize(self, data: Union[bytes, bytearray, ByteReader]) -> TokenizationResult:
        """Tokenize a byte buffer into markup tokens.

        Args:
            data: Raw bytes (with optional byte-order mark) or a prepared reader

        Returns:
            TokenizationResult with the tokens; ``success`` is False on a hard error
        """
        start_time = time.time()
        reader = data if isinstance(data, ByteReader) else ByteReader(data)
        self._reader = reader
        self._tokens = []
        self._in_doctype = False
        self._in_subset = False

        self.logger.debug(
            "Starting tokenization",
            extra={
                "encoding": reader.encoding.label,
                "byte_count": reader.remaining,
            }
        )

        result = TokenizationResult(encoding=reader.encoding)
        try:
            self._scan()
        except TokenizationError as e:
            result.success = False
            result.errors.append(str(e))
            self.logger.debug(
                "Tokenization stopped on error",
                extra={"error": str(e), "token_count": len(self._tokens)}
            )

        result.tokens = self._tokens
        result.character_count = reader.unit_offset
        result.processing_time = time.time() - start_time

        self.logger.debug(
            "Tokenization completed",
            extra={
                "token_count": result.token_count,
                "success": result.success,
                "processing_time": result.processing_time,
            }
        )
        return result

    # State machine

    def _position(self) -> TokenPosition:
        reader = self._reader
        return TokenPosition(reader.line, reader.column, reader.unit_offset)

    def _emit(self, token_type: TokenType, value: str, position: TokenPosition) -> None:
        self._tokens.append(Token(token_type, value, position))

    def _previous_type(self) -> Optional[TokenType]:
        return self._tokens[-1].type if self._tokens else None

    def _scan(self) -> None:
        reader = self._reader

        while True:
            unit = reader.peek()
            if not unit:
                break

            position = self._position()

            if unit in WHITESPACE_UNITS:
                self._emit(TokenType.WHITESPACE, self._scan_whitespace(), position)
                continue

            if unit == LESS_THAN:
                token_type = self._scan_markup_open(position)
            elif unit == GREATER_THAN:
                reader.read()
                token_type = TokenType.TAG_END
            elif unit == OPEN_BRACKET:
                reader.read()
                token_type = TokenType.OPEN_BRACKET
                if self._in_doctype:
                    self._in_subset = True
            elif unit == CLOSE_BRACKET:
                reader.read()
                token_type = TokenType.CLOSE_BRACKET
                self._in_subset = False
            elif unit == EQUALS_SIGN:
                reader.read()
                token_type = TokenType.EQUALS
            elif unit == SLASH:
                reader.read()
                if reader.peek() == GREATER_THAN:
                    reader.read()
                    token_type = TokenType.SELF_CLOSE
                else:
                    token_type = TokenType.FORWARD_SLASH
            elif unit == HYPHEN and reader.peek(1) == HYPHEN and reader.peek(2) == GREATER_THAN:
                reader.read(2)
                token_type = TokenType.COMMENT_END
            elif unit == QUESTION_MARK and reader.peek(1) == GREATER_THAN:
                reader.read(1)
                token_type = TokenType.PI_END
            else:
                before = reader.position
                value = self._scan_string(position)
                if reader.position == before:
                    # Unit that neither starts a token nor ends a string
                    reader.read()
                    continue
                previous = self._previous_type()
                if value == DOCTYPE_KEYWORD and previous == TokenType.DECLARATION_START:
                    self._in_doctype = True
                self._emit(TokenType.STRING, value, position)
                continue

            if token_type is None:
                # Whole comment already emitted
                if not self._in_subset:
                    self._scan_trailing_text()
                continue

            self._emit(token_type, "", position)
            if token_type == TokenType.TAG_END and not self._in_subset:
                self._in_doctype = False
            if token_type in STRUCTURAL_CLOSE_TYPES and not self._in_subset:
                # Inside a DOCTYPE internal subset the markup continues after '>'
                self._scan_trailing_text()

    def _scan_whitespace(self) -> str:
        reader = self._reader
        chars = []
        while reader.peek() in WHITESPACE_UNITS:
            chars.append(chr(reader.read()))
        return "".join(chars)

    def _scan_markup_open(self, position: TokenPosition) -> Optional[TokenType]:
        """Disambiguate ``<!--``, ``<?``, ``<!`` and plain ``<``.

        Returns:
            The token type to emit, or None when a complete comment was emitted
        """
        reader = self._reader
        reader.read()
        unit = reader.peek()

        if unit == EXCLAMATION and reader.peek(1) == HYPHEN and reader.peek(2) == HYPHEN:
            reader.read(2)
            self._emit(TokenType.COMMENT_START, "", position)
            self._scan_comment_body(position)
            return None
        if unit == QUESTION_MARK:
            reader.read()
            return TokenType.PI_START
        if unit == EXCLAMATION:
            reader.read()
            return TokenType.DECLARATION_START
        return TokenType.TAG_START

    def _scan_comment_body(self, start: TokenPosition) -> None:
        """Scan a comment verbatim up to ``-->``; entities are not decoded."""
        reader = self._reader
        body_position = self._position()
        body = _TextBuilder(reader.encoding)

        while True:
            if reader.at_end:
                raise TokenizationError("Unterminated comment", start)
            end_position = self._position()
            unit = reader.read()
            if unit == HYPHEN and reader.peek() == HYPHEN and reader.peek(1) == GREATER_THAN:
                reader.read(1)
                break
            if unit:
                body.add_unit(unit)

        if body:
            self._emit(TokenType.TEXT, body.getvalue(), body_position)
        self._emit(TokenType.COMMENT_END, "", end_position)

    def _read_char(self, text: _TextBuilder) -> int:
        """Read one unit, expanding an entity reference, and append it to ``text``.

        Returns:
            The appended codepoint, or 0 when nothing was appended
        """
        reader = self._reader
        unit = reader.read()
        if unit != AMPERSAND:
            if unit:
                text.add_unit(unit)
            return unit

        codepoint = self.entities.read_reference(reader)
        if codepoint:
            text.add_codepoint(codepoint)
        return codepoint

    def _scan_trailing_text(self) -> None:
        """Emit the raw text between a structural close and the next ``<``."""
        reader = self._reader
        position = self._position()
        text = _TextBuilder(reader.encoding)
        whitespace = True

        while not reader.at_end and reader.peek() != LESS_THAN:
            codepoint = self._read_char(text)
            if codepoint and codepoint not in WHITESPACE_UNITS:
                whitespace = False

        if text:
            token_type = TokenType.WHITESPACE if whitespace else TokenType.TEXT
            self._emit(token_type, text.getvalue(), position)

    def _scan_string(self, position: TokenPosition) -> str:
        """Scan a quoted or unquoted string starting at the cursor."""
        reader = self._reader
        quote = reader.peek()
        if quote in (DOUBLE_QUOTE, SINGLE_QUOTE):
            reader.read()
            return self._scan_quoted(quote, position)
        return self._scan_unquoted()

    def _scan_quoted(self, quote: int, position: TokenPosition) -> str:
        reader = self._reader
        text = _TextBuilder(reader.encoding)

        while not reader.at_end:
            unit = reader.peek()
            if unit == quote:
                reader.read()
                return text.getvalue()
            if unit == TAB:
                text.add_unit(reader.read())
            elif unit in QUOTED_DROPPED_UNITS or unit < PRINTABLE_MIN:
                reader.read()
            else:
                self._read_char(text)

        raise TokenizationError("Unterminated quoted string", position)

    def _scan_unquoted(self) -> str:
        reader = self._reader
        text = _TextBuilder(reader.encoding)

        while not reader.at_end:
            unit = reader.peek()
            if unit in UNQUOTED_STOP_UNITS:
                break
            if unit == QUESTION_MARK and reader.peek(1) == GREATER_THAN:
                break
            if unit < PRINTABLE_MIN:
                reader.read()
            else:
                self._read_char(text)

        return text.getvalue()


def tokenize(
    data: Union[bytes, bytearray, ByteReader],
    correlation_id: Optional[str] = None
) -> TokenizationResult:
    """Tokenize a buffer with a fresh :class:`XMLTokenizer`."""
    return XMLTokenizer(correlation_id=correlation_id).tokenize(data)
