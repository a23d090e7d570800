"""
Storage classes and value coercion.

`sqlite3` hands us cells as plain Python values (int, float, str, bytes, None).
The helpers here reproduce what SQLite's own `sqlite3_column_*` accessors do
when a cell is read as a different type than it is stored as.

This module is intentionally lightweight:
- No statement or connection knowledge
- Pure functions over cell values
"""

from __future__ import annotations

import math
import re
from enum import IntEnum
from typing import Final

CellValue = int | float | str | bytes | None

INT64_MIN: Final[int] = -(2**63)
INT64_MAX: Final[int] = 2**63 - 1

# TEXT cells may hold bytes that are not valid UTF-8; keep them round-trippable.
TEXT_ENCODING: Final[str] = "utf-8"
TEXT_ERRORS: Final[str] = "surrogateescape"

# SQLite only treats ASCII whitespace and digits as numeric syntax.
_SPACE = r"[ \t\n\v\f\r]*"
_INT_PREFIX = re.compile(_SPACE + r"([+-]?[0-9]+)")
_REAL_PREFIX = re.compile(
    _SPACE + r"([+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"
)


class ColumnType(IntEnum):
    """Storage class of a cell (values are SQLite's fundamental type codes)."""

    INTEGER = 1
    FLOAT = 2
    TEXT = 3
    BLOB = 4
    NULL = 5


def storage_class(value: CellValue) -> ColumnType:
    """Return the storage class of a cell value as returned by `sqlite3`."""
    if value is None:
        return ColumnType.NULL
    if isinstance(value, int):
        return ColumnType.INTEGER
    if isinstance(value, float):
        return ColumnType.FLOAT
    if isinstance(value, str):
        return ColumnType.TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ColumnType.BLOB
    raise TypeError(f"Unsupported cell value type: {type(value).__name__}")


def decode_text(data: bytes) -> str:
    """Decode TEXT bytes without losing invalid sequences (used as `text_factory`)."""
    return data.decode(TEXT_ENCODING, TEXT_ERRORS)


def encode_text(text: str) -> bytes:
    return text.encode(TEXT_ENCODING, TEXT_ERRORS)


def clamp_int64(value: int) -> int:
    return max(INT64_MIN, min(INT64_MAX, value))


def wrap_int32(value: int) -> int:
    """Keep the low 32 bits of `value`, as a signed integer."""
    return ((value + 2**31) & 0xFFFFFFFF) - 2**31


def format_real(value: float) -> str:
    """
    Render a REAL the way SQLite does (`%!.15g`).

    The result always carries a decimal point, also in exponent form
    (`1.0`, `1.0e+20`); infinities render as `Inf` / `-Inf`.
    """
    if math.isinf(value):
        return "Inf" if value > 0 else "-Inf"
    text = format(value, ".15g")
    if "e" in text:
        mantissa, exponent = text.split("e", 1)
        if "." not in mantissa:
            mantissa += ".0"
        return f"{mantissa}e{exponent}"
    if "." not in text and "n" not in text:
        text += ".0"
    return text


def to_int64(value: CellValue) -> int:
    """
    Integer projection of a cell.

    - REAL: truncated toward zero, clamped to the int64 range (NaN gives 0)
    - TEXT/BLOB: leading integer prefix, clamped; 0 when there is none
    - NULL: 0
    """
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value):
            return 0
        if value <= -9223372036854775808.0:
            return INT64_MIN
        if value >= 9223372036854775807.0:
            return INT64_MAX
        return int(value)
    match = _INT_PREFIX.match(to_text(value) or "")
    if match is None:
        return 0
    return clamp_int64(int(match.group(1)))


def to_int32(value: CellValue) -> int:
    return wrap_int32(to_int64(value))


def to_double(value: CellValue) -> float:
    """Floating point projection; TEXT/BLOB use the longest leading number."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    match = _REAL_PREFIX.match(to_text(value) or "")
    if match is None:
        return 0.0
    return float(match.group(1))


def to_text(value: CellValue) -> str | None:
    """Text projection; `None` for NULL."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_real(value)
    return decode_text(bytes(value))


def to_blob(value: CellValue) -> bytes | None:
    """Byte projection; `None` for NULL."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return encode_text(value)
    return to_text(value).encode("ascii")  # type: ignore[union-attr]


def byte_length(value: CellValue) -> int:
    """Size in bytes of the text/blob form, without terminator; 0 for NULL."""
    blob = to_blob(value)
    return 0 if blob is None else len(blob)
