"""Character processing layer for the lightweight XML parser.

This module provides byte-order-mark detection and the unit cursor the
tokenizer reads from.
"""

from .encoding import (
    BOMDetector,
    Encoding,
    EncodingResult,
    detect_encoding,
)
from .stream import ByteReader

__all__ = [
    "BOMDetector",
    "Encoding",
    "EncodingResult",
    "detect_encoding",
    "ByteReader",
]
