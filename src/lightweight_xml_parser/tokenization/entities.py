"""Named character references for string and text extraction.

The table is fixed. General numeric character references (``&#65;``) are
not decoded; ``&#163;`` is the one numeric form, and the serializer emits it
for the pound sign.
"""

from typing import Dict, Mapping, Optional

from lightweight_xml_parser.character import ByteReader

AMPERSAND = 0x26
SEMICOLON = 0x3B
HASH = 0x23

DEFAULT_ENTITIES: Mapping[str, int] = {
    "quot": 0x22,
    "amp": 0x26,
    "apos": 0x27,
    "lt": 0x3C,
    "gt": 0x3E,
    "#163": 0xA3,
    "euro": 0x80,
}


def _is_name_unit(unit: int) -> bool:
    """ASCII alphanumeric check used for entity names."""
    return (
        0x30 <= unit <= 0x39
        or 0x41 <= unit <= 0x5A
        or 0x61 <= unit <= 0x7A
    )


class EntityResolver:
    """Expands entity references and escapes text for output."""

    def __init__(self, entities: Optional[Mapping[str, int]] = None) -> None:
        """Initialize the resolver.

        Args:
            entities: Name to codepoint table; defaults to the fixed entity set
        """
        self._entities: Dict[str, int] = dict(
            DEFAULT_ENTITIES if entities is None else entities
        )
        self._escapes: Dict[str, str] = {
            chr(codepoint): f"&{name};" for name, codepoint in self._entities.items()
        }

    @property
    def entities(self) -> Dict[str, int]:
        """Copy of the name to codepoint table."""
        return dict(self._entities)

    def resolve(self, name: str) -> int:
        """Look up an entity name; unknown names resolve to 0."""
        return self._entities.get(name, 0)

    def read_reference(self, reader: ByteReader) -> int:
        """Consume an entity reference whose ``&`` was already read.

        The name is the run of ASCII alphanumerics that follows (a leading
        ``#`` is allowed so that ``&#163;`` can match its table entry),
        optionally terminated by ``;``.

        Returns:
            The codepoint, or 0 when the name is not in the table
        """
        name = []
        if reader.peek() == HASH:
            name.append(chr(reader.read()))

        while True:
            unit = reader.peek()
            if unit and unit != SEMICOLON and _is_name_unit(unit):
                name.append(chr(reader.read()))
                continue
            break

        if reader.peek() == SEMICOLON:
            reader.read()

        return self.resolve("".join(name))

    def escape(self, text: str) -> str:
        """Replace every character that has an entity with its reference."""
        if not text:
            return ""
        return "".join(self._escapes.get(char, char) for char in text)


default_resolver = EntityResolver()
