"""Byte-order-mark based encoding detection.

Only the byte-order mark is inspected: a buffer without one is read as
single-byte text that is compatible with UTF-8.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, List, Tuple


class Encoding(Enum):
    """Encodings the byte reader can step through."""

    PLAIN_TEXT = ("plain", 1, "utf-8")
    UTF8 = ("utf-8", 1, "utf-8")
    UTF16_LE = ("utf-16-le", 2, "utf-16-le")
    UTF16_BE = ("utf-16-be", 2, "utf-16-be")
    UTF32_LE = ("utf-32-le", 4, "utf-32-le")
    UTF32_BE = ("utf-32-be", 4, "utf-32-be")

    def __init__(self, label: str, unit_width: int, codec: str) -> None:
        self.label = label
        self.unit_width = unit_width
        self.codec = codec

    @property
    def is_single_byte(self) -> bool:
        """Check whether each unit is one byte wide."""
        return self.unit_width == 1

    @property
    def is_big_endian(self) -> bool:
        """Check whether multi-byte units are stored most significant byte first."""
        return self in (Encoding.UTF16_BE, Encoding.UTF32_BE)


@dataclass(frozen=True)
class EncodingResult:
    """Result of byte-order-mark detection.

    Attributes:
        encoding: Detected encoding
        bom_length: Number of leading bytes occupied by the byte-order mark
    """

    encoding: Encoding
    bom_length: int = 0

    def __post_init__(self) -> None:
        """Validate BOM length."""
        if self.bom_length not in (0, 2, 3, 4):
            raise ValueError(f"Invalid byte-order mark length: {self.bom_length}")

    @property
    def has_bom(self) -> bool:
        """Check whether a byte-order mark was found."""
        return self.bom_length > 0


class BOMDetector:
    """Byte Order Mark (BOM) detection in priority order.

    UTF-8 is checked first, then the 4-byte UTF-32 marks, then the 2-byte
    UTF-16 marks. UTF-32-LE must win over UTF-16-LE since it shares the
    ``FF FE`` prefix.
    """

    BOM_PATTERNS: ClassVar[List[Tuple[bytes, Encoding]]] = [
        (b"\xef\xbb\xbf", Encoding.UTF8),
        (b"\x00\x00\xfe\xff", Encoding.UTF32_BE),
        (b"\xff\xfe\x00\x00", Encoding.UTF32_LE),
        (b"\xfe\xff", Encoding.UTF16_BE),
        (b"\xff\xfe", Encoding.UTF16_LE),
    ]

    def detect(self, data: bytes) -> EncodingResult:
        """Detect the encoding from at most the first four bytes.

        Args:
            data: Raw document bytes

        Returns:
            EncodingResult; PLAIN_TEXT with a zero BOM length when no mark is found
        """
        header = bytes(data[:4])
        for bom_bytes, encoding in self.BOM_PATTERNS:
            if header.startswith(bom_bytes):
                return EncodingResult(encoding=encoding, bom_length=len(bom_bytes))

        return EncodingResult(encoding=Encoding.PLAIN_TEXT)


def detect_encoding(data: bytes) -> EncodingResult:
    """Module-level convenience wrapper around :class:`BOMDetector`."""
    return BOMDetector().detect(data)
