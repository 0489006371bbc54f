"""Index cursor over a token list and the structural error it raises."""

from typing import Dict, List, Optional, Sequence

from lightweight_xml_parser.tokenization import Token, TokenPosition, TokenType

OPENING_TYPES = frozenset({
    TokenType.TAG_START,
    TokenType.DECLARATION_START,
    TokenType.PI_START,
})
CLOSING_TYPES = frozenset({TokenType.TAG_END, TokenType.PI_END})


class StructureError(Exception):
    """Hard structural error found while building a tree or reading a DTD."""

    def __init__(self, message: str, position: Optional[TokenPosition] = None) -> None:
        self.message = message
        self.position = position
        super().__init__(f"{message} at {position}" if position else message)

    def position_dict(self) -> Optional[Dict[str, int]]:
        if self.position is None:
            return None
        return {
            "line": self.position.line,
            "column": self.position.column,
            "offset": self.position.offset,
        }


class TokenCursor:
    """Forward cursor with bounded lookahead."""

    def __init__(self, tokens: Sequence[Token]) -> None:
        self._tokens: List[Token] = list(tokens)
        self.index = 0

    @property
    def at_end(self) -> bool:
        return self.index >= len(self._tokens)

    @property
    def remaining(self) -> int:
        return max(len(self._tokens) - self.index, 0)

    @property
    def current(self) -> Token:
        """Token under the cursor; only valid when not :attr:`at_end`."""
        return self._tokens[self.index]

    def peek(self, offset: int = 0) -> Optional[Token]:
        index = self.index + offset
        if 0 <= index < len(self._tokens):
            return self._tokens[index]
        return None

    def check(self, *types: TokenType) -> bool:
        """Whether the next ``len(types)`` tokens have exactly these types."""
        for offset, token_type in enumerate(types):
            token = self.peek(offset)
            if token is None or token.type != token_type:
                return False
        return True

    def advance(self, count: int = 1) -> None:
        self.index += count

    def skip_whitespace(self) -> None:
        while not self.at_end and self.current.type == TokenType.WHITESPACE:
            self.index += 1

    def last_position(self) -> Optional[TokenPosition]:
        """Position of the last token, for end-of-input errors."""
        return self._tokens[-1].position if self._tokens else None

    def skip_until(self, token_type: TokenType) -> bool:
        """Move to the next token of ``token_type``; False if none remains."""
        while not self.at_end:
            if self.current.type == token_type:
                return True
            self.index += 1
        return False

    def skip_declaration(self, start: Token) -> None:
        """Consume tokens up to the ``>`` that closes the declaration at ``start``.

        Nested ``<``, ``<!`` and ``<?`` increase the nesting level and each
        ``>`` or ``?>`` decreases it, so markup inside the declaration is
        skipped. A model ending in ``?`` reaches the tokenizer as ``?>``.

        Raises:
            StructureError: If the input ends before the declaration closes
        """
        depth = 0
        while not self.at_end:
            token_type = self.current.type
            self.index += 1
            if token_type in OPENING_TYPES:
                depth += 1
            elif token_type in CLOSING_TYPES:
                if not depth:
                    return
                depth -= 1
        raise StructureError("Unterminated declaration", start.position)
