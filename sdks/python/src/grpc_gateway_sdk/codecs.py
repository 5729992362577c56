"""String codecs for wire types that JSON cannot carry natively.

`BigIntString` holds 64-bit proto integers as decimal strings and
`BytesString` holds proto `bytes` fields as standard base64. Both are plain
`str` at runtime; the functions below are the only supported way to produce
and consume them.
"""

from __future__ import annotations

import math
import operator
import re
from typing import Any, NewType

from .errors import InvalidBase64, InvalidInteger

BigIntString = NewType("BigIntString", str)
BytesString = NewType("BytesString", str)

_ENCODE_TABLE = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"


def _build_decode_table() -> dict[str, int]:
    table = {char: index for index, char in enumerate(_ENCODE_TABLE)}
    # url-safe alphabet maps onto the same sextets
    table["-"] = table["+"]
    table["_"] = table["/"]
    return table


_DECODE_TABLE = _build_decode_table()
_WHITESPACE = frozenset(" \t\r\n")


def encode_bytes(data: bytes | bytearray | memoryview) -> BytesString:
    """Encode bytes as standard base64 with `=` padding."""
    out: list[str] = []
    group_pos = 0
    carry = 0
    for byte in bytes(data):
        if group_pos == 0:
            out.append(_ENCODE_TABLE[byte >> 2])
            carry = (byte & 3) << 4
            group_pos = 1
        elif group_pos == 1:
            out.append(_ENCODE_TABLE[carry | (byte >> 4)])
            carry = (byte & 15) << 2
            group_pos = 2
        else:
            out.append(_ENCODE_TABLE[carry | (byte >> 6)])
            out.append(_ENCODE_TABLE[byte & 63])
            group_pos = 0

    if group_pos:
        out.append(_ENCODE_TABLE[carry])
        out.append("=")
        if group_pos == 1:
            out.append("=")
    return BytesString("".join(out))


def decode_bytes(text: str) -> bytes:
    """Decode standard or url-safe base64, ignoring whitespace.

    Padding is optional. A `=` resets the group, so concatenated padded
    chunks decode as one stream.
    """
    out = bytearray()
    group_pos = 0
    carry = 0
    for char in text:
        sextet = _DECODE_TABLE.get(char)
        if sextet is None:
            if char == "=":
                group_pos = 0
                continue
            if char in _WHITESPACE:
                continue
            raise InvalidBase64(f"invalid base64 string: unexpected character {char!r}")

        if group_pos == 0:
            carry = sextet
            group_pos = 1
        elif group_pos == 1:
            out.append(((carry << 2) | ((sextet & 48) >> 4)) & 0xFF)
            carry = sextet
            group_pos = 2
        elif group_pos == 2:
            out.append((((carry & 15) << 4) | ((sextet & 60) >> 2)) & 0xFF)
            carry = sextet
            group_pos = 3
        else:
            out.append((((carry & 3) << 6) | sextet) & 0xFF)
            group_pos = 0

    if group_pos == 1:
        raise InvalidBase64("invalid base64 string: truncated group")
    return bytes(out)


_DECIMAL_RE = re.compile(r"[+-]?[0-9]+")
_PREFIXED_RE = re.compile(r"0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")


def _parse_integer_text(text: str) -> int:
    stripped = text.strip()
    if not stripped:
        raise InvalidInteger(text, reason="empty string")
    if _DECIMAL_RE.fullmatch(stripped):
        return int(stripped, 10)
    if _PREFIXED_RE.fullmatch(stripped):
        return int(stripped, 0)
    raise InvalidInteger(text)


def parse_bigint_string(text: str) -> int:
    """Parse a `BigIntString` (or any integer literal string) into an int."""
    if not isinstance(text, str):
        raise InvalidInteger(text, reason=f"expected str, got {type(text).__name__}")
    return _parse_integer_text(text)


def bigint_string(value: Any) -> BigIntString:
    """Normalize an int, integral float or integer string to canonical decimal.

    >>> bigint_string("  0x10 ")
    '16'
    >>> bigint_string(2**64)
    '18446744073709551616'
    """
    if isinstance(value, bool):
        raise InvalidInteger(value, reason="booleans are not integers")
    if isinstance(value, str):
        return BigIntString(str(_parse_integer_text(value)))
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidInteger(value, reason="not a finite number")
        if not value.is_integer():
            raise InvalidInteger(value, reason="has a fractional component")
        return BigIntString(str(int(value)))
    try:
        integer = operator.index(value)
    except TypeError as exc:
        raise InvalidInteger(value, reason=f"unsupported type {type(value).__name__}") from exc
    return BigIntString(str(integer))
