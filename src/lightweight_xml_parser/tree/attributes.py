"""Typed coercion of raw attribute strings.

Numeric forms understood by :func:`parse_long`:

* plain decimal, read leniently like C ``atol`` (``"12px"`` -> 12)
* ``0x`` prefixed hexadecimal (``"0x1F"`` -> 31)
* ``U+`` prefixed Unicode code points (``"U+0041"`` -> 65)
* ``#RGB``, ``#RGBA``, ``#RRGGBB`` and ``#RRGGBBAA`` packed colours

Hex digits are accumulated until the first non-hex character.
"""

import re
from typing import Tuple

_DECIMAL_PREFIX = re.compile(r"\s*([+-]?[0-9]+)")
_FLOAT_PREFIX = re.compile(
    r"\s*[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
)
_TRUE_VALUES = frozenset({"1", "true", "yes"})

OPAQUE_ALPHA = 0xFF000000
UINT32_MASK = 0xFFFFFFFF


def _accumulate_hex(text: str) -> Tuple[int, int]:
    """Read leading hex digits.

    Returns:
        (value, number of digits read)
    """
    value = 0
    digits = 0
    for char in text:
        digit = int(char, 16) if char in "0123456789abcdefABCDEF" else -1
        if digit < 0:
            break
        value = (value << 4) | digit
        digits += 1
    return value, digits


def _double_nibbles(value: int, count: int) -> int:
    """Expand ``count`` 4-bit channels into 8-bit channels (``F`` -> ``FF``)."""
    result = 0
    for shift in range((count - 1) * 4, -1, -4):
        nibble = (value >> shift) & 0xF
        result = (result << 8) | (nibble * 0x11)
    return result


def expand_color(value: int, digits: int) -> int:
    """Expand a ``#`` colour literal to 8-bit channels.

    Three and six digit forms get an opaque alpha in the top byte
    (``0xAARRGGBB``). The four digit form is nibble-doubled in place
    (``#RGBA`` -> ``0xRRGGBBAA``). Any other length is returned unchanged.
    """
    if digits == 3:
        return _double_nibbles(value, 3) | OPAQUE_ALPHA
    if digits == 4:
        return _double_nibbles(value, 4)
    if digits == 6:
        return value | OPAQUE_ALPHA
    return value


def parse_long(text: str) -> int:
    """Convert an attribute string to an integer using the literal forms above."""
    if not text:
        return 0

    if text.startswith("0x") or text.startswith("U+"):
        value, _ = _accumulate_hex(text[2:])
        return value

    if text.startswith("#"):
        value, digits = _accumulate_hex(text[1:])
        return expand_color(value, digits)

    match = _DECIMAL_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def parse_ulong(text: str) -> int:
    """Like :func:`parse_long`, wrapped to an unsigned 32-bit value."""
    return parse_long(text) & UINT32_MASK


def parse_float(text: str) -> float:
    """Lenient float conversion; the longest numeric prefix, else 0.0."""
    match = _FLOAT_PREFIX.match(text or "")
    return float(match.group(0)) if match else 0.0


def parse_bool(text: str) -> bool:
    """``"1"``, ``"true"`` and ``"yes"`` in any case are true; all else is false."""
    return (text or "").lower() in _TRUE_VALUES


def format_value(value: object) -> str:
    """Render a Python value the way it is stored in the attribute map."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, str)):
        return str(value)
    raise TypeError(
        f"Attribute values must be str, int, float or bool, got {type(value).__name__}"
    )
