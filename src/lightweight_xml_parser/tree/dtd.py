"""DTD subset parser.

Reads a stand-alone DTD stream (an external subset) and registers every
``<!ELEMENT name model>`` declaration on a :class:`DocType`. Other
declarations, comments and processing instructions are skipped. Element
markup is not allowed in a DTD.
"""

from typing import List, Optional, Sequence, Union

from lightweight_xml_parser.character import ByteReader
from lightweight_xml_parser.shared import get_logger
from lightweight_xml_parser.tokenization import Token, TokenType, XMLTokenizer

from .cursor import StructureError, TokenCursor
from .doctype import ContentModelError, DocType, DocTypeElement

ELEMENT_KEYWORD = "ELEMENT"


class DTDParser:
    """Registers element declarations from a DTD token stream."""

    def __init__(self, doctype: Optional[DocType] = None,
                 correlation_id: Optional[str] = None) -> None:
        self.doctype = doctype if doctype is not None else DocType()
        self.correlation_id = correlation_id
        self.errors: List[str] = []
        self.declarations_read = 0
        self.logger = get_logger(__name__, correlation_id, "dtd_parser")

    def parse(self, data: Union[bytes, bytearray, ByteReader]) -> bool:
        """Tokenize and parse a DTD buffer.

        Declarations read before an error stay registered.

        Returns:
            True when the whole stream was read without error
        """
        self.errors = []
        tokenization = XMLTokenizer(correlation_id=self.correlation_id).tokenize(data)
        if not tokenization.success:
            self.errors.extend(tokenization.errors)
            self.logger.debug("DTD tokenization failed", extra={"errors": self.errors})
            return False

        try:
            self.parse_tokens(tokenization.tokens)
        except StructureError as e:
            self.errors.append(str(e))
            self.logger.debug(
                "DTD parsing stopped on error",
                extra={"error": str(e), "declarations": self.declarations_read}
            )
            return False

        self.logger.debug(
            "DTD parsed",
            extra={
                "declarations": self.declarations_read,
                "element_count": len(self.doctype),
            }
        )
        return True

    def parse_tokens(self, tokens: Sequence[Token]) -> None:
        """Walk a DTD token stream.

        Raises:
            StructureError: On element markup, an unterminated construct or
                an invalid content model
        """
        cursor = TokenCursor(tokens)

        while not cursor.at_end:
            token = cursor.current

            if token.type == TokenType.TAG_START:
                raise StructureError("Element markup is not allowed in a DTD", token.position)

            if token.type == TokenType.PI_START:
                cursor.advance()
                if not cursor.skip_until(TokenType.PI_END):
                    raise StructureError("Unterminated processing instruction", token.position)
                cursor.advance()
            elif token.type == TokenType.COMMENT_START:
                cursor.advance()
                if not cursor.skip_until(TokenType.COMMENT_END):
                    raise StructureError("Unterminated comment", token.position)
                cursor.advance()
            elif token.type == TokenType.DECLARATION_START:
                cursor.advance()
                if cursor.check(TokenType.STRING) and cursor.current.value == ELEMENT_KEYWORD:
                    cursor.advance()
                    self._parse_element_declaration(cursor, token)
                cursor.skip_declaration(token)
                self.declarations_read += 1
            else:
                cursor.advance()

    def _parse_element_declaration(self, cursor: TokenCursor, start: Token) -> None:
        cursor.skip_whitespace()
        if not cursor.check(TokenType.STRING) or not cursor.current.value:
            raise StructureError("Expected element name in ELEMENT declaration", start.position)
        name = cursor.current.value
        cursor.advance()

        content: List[str] = []
        while not cursor.at_end and cursor.current.type in (
            TokenType.STRING, TokenType.WHITESPACE
        ):
            if cursor.current.type == TokenType.STRING:
                content.append(cursor.current.value)
            cursor.advance()
        if cursor.check(TokenType.PI_END):
            # "(a|b)?>" is tokenized with "?>" as one token
            content.append("?")

        try:
            element = DocTypeElement.from_declaration(name, "".join(content))
        except ContentModelError as e:
            raise StructureError(
                f"Invalid content model for element '{name}': {e}", start.position
            ) from e

        self.doctype.add_element(element)
