"""Codepoint cursor over a raw byte buffer.

The reader fixes its encoding from the byte-order mark once, then hands out
one unit at a time (1, 2 or 4 bytes wide). It never decodes multi-byte UTF-8
sequences itself; in single-byte mode every byte is one unit and the
tokenizer re-assembles text runs afterwards.
"""

from typing import Optional, Union

from .encoding import BOMDetector, Encoding, EncodingResult

BytesLike = Union[bytes, bytearray, memoryview]

LINE_FEED = 0x0A


class ByteReader:
    """Cursor that reads codepoint-sized units from a byte buffer.

    ``read`` returns 0 at end of input. A trailing partial unit (for example
    a single dangling byte in a UTF-16 buffer) is treated as end of input.
    """

    def __init__(
        self,
        data: BytesLike,
        encoding: Optional[EncodingResult] = None
    ) -> None:
        """Initialize the reader and consume any byte-order mark.

        Args:
            data: Raw document bytes
            encoding: Pre-computed detection result; detected from ``data`` if omitted
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"ByteReader requires a bytes-like buffer, got {type(data).__name__}"
            )

        self._data = bytes(data)
        self.detection = encoding if encoding is not None else BOMDetector().detect(self._data)
        self.encoding: Encoding = self.detection.encoding
        self._width = self.encoding.unit_width
        self._start = self.detection.bom_length
        self._position = self._start
        self._end = len(self._data)

        self.line = 1
        self.column = 1

    @property
    def position(self) -> int:
        """Byte offset of the cursor from the start of the buffer."""
        return self._position

    @property
    def unit_offset(self) -> int:
        """Number of units consumed since the end of the byte-order mark."""
        return (self._position - self._start) // self._width

    @property
    def remaining(self) -> int:
        """Number of bytes not yet consumed."""
        return max(0, self._end - self._position)

    @property
    def at_end(self) -> bool:
        """Check whether no complete unit remains."""
        return self._position + self._width > self._end

    def _unit_at(self, index: int) -> int:
        """Decode the unit starting at byte ``index``."""
        if self._width == 1:
            return self._data[index]
        byteorder = "big" if self.encoding.is_big_endian else "little"
        return int.from_bytes(self._data[index:index + self._width], byteorder)

    def read(self, offset: int = 0, peek: bool = False) -> int:
        """Read the unit ``offset`` units ahead of the cursor.

        Unless ``peek`` is set, the cursor advances past the returned unit,
        i.e. by ``(offset + 1) * unit_width`` bytes.

        Returns:
            The unit value, or 0 at end of input
        """
        index = self._position + offset * self._width
        if index + self._width > self._end:
            if not peek:
                self._advance_to(self._end)
            return 0

        unit = self._unit_at(index)
        if not peek:
            self._advance_to(index + self._width)
        return unit

    def peek(self, offset: int = 0) -> int:
        """Return the unit ``offset`` units ahead without moving the cursor."""
        return self.read(offset, peek=True)

    def _advance_to(self, target: int) -> None:
        """Move the cursor forward, keeping line and column counters current."""
        while self._position + self._width <= target:
            if self._unit_at(self._position) == LINE_FEED:
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self._position += self._width
        self._position = max(self._position, min(target, self._end))

    def __repr__(self) -> str:
        return (
            f"ByteReader(encoding={self.encoding.label!r}, "
            f"position={self._position}, remaining={self.remaining})"
        )
