"""
Tests for litecolumn.core.coercion.

These tests verify that reading a cell as another type follows SQLite's
coercion rules:
- storage class detection
- integer / float projections of TEXT, BLOB and REAL cells
- text rendering of numbers
- byte sizes
"""

from __future__ import annotations

import math

import pytest

from litecolumn.core.coercion import (
    INT64_MAX,
    INT64_MIN,
    ColumnType,
    byte_length,
    decode_text,
    encode_text,
    format_real,
    storage_class,
    to_blob,
    to_double,
    to_int32,
    to_int64,
    to_text,
    wrap_int32,
)


class TestStorageClass:
    """Tests for storage_class()."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (42, ColumnType.INTEGER),
            (1.5, ColumnType.FLOAT),
            ("hi", ColumnType.TEXT),
            (b"\x00", ColumnType.BLOB),
            (None, ColumnType.NULL),
        ],
    )
    def test_python_values_map_to_storage_classes(self, value, expected) -> None:
        assert storage_class(value) is expected

    def test_codes_match_sqlite(self) -> None:
        """Enum values are SQLite's fundamental type codes."""
        assert [t.value for t in ColumnType] == [1, 2, 3, 4, 5]

    def test_unsupported_value_raises(self) -> None:
        with pytest.raises(TypeError):
            storage_class(object())  # type: ignore[arg-type]


class TestIntegerProjection:
    """Tests for to_int64() / to_int32()."""

    def test_integer_passthrough(self) -> None:
        assert to_int64(2**40) == 2**40

    def test_null_is_zero(self) -> None:
        assert to_int64(None) == 0

    def test_real_truncates_toward_zero(self) -> None:
        assert to_int64(3.9) == 3
        assert to_int64(-3.9) == -3

    def test_real_out_of_range_clamps(self) -> None:
        assert to_int64(1e30) == INT64_MAX
        assert to_int64(-1e30) == INT64_MIN

    def test_nan_is_zero(self) -> None:
        assert to_int64(math.nan) == 0

    def test_text_uses_leading_integer(self) -> None:
        assert to_int64("12abc") == 12
        assert to_int64("  -7 apples") == -7
        assert to_int64("+5") == 5
        assert to_int64("3.9") == 3
        assert to_int64("1e3") == 1

    def test_text_without_digits_is_zero(self) -> None:
        assert to_int64("abc") == 0
        assert to_int64("") == 0

    def test_text_overflow_clamps(self) -> None:
        assert to_int64("99999999999999999999") == INT64_MAX
        assert to_int64("-99999999999999999999") == INT64_MIN

    def test_blob_is_parsed_like_text(self) -> None:
        assert to_int64(b"42") == 42

    def test_int32_keeps_low_bits(self) -> None:
        assert to_int32(2**32 + 5) == 5
        assert to_int32(2**31) == -(2**31)
        assert to_int32(-1) == -1

    def test_wrap_int32_identity_in_range(self) -> None:
        assert wrap_int32(123456) == 123456
        assert wrap_int32(-(2**31)) == -(2**31)


class TestDoubleProjection:
    """Tests for to_double()."""

    def test_numbers(self) -> None:
        assert to_double(7) == 7.0
        assert to_double(2.5) == 2.5
        assert to_double(None) == 0.0

    def test_text_uses_leading_number(self) -> None:
        assert to_double("3.5xyz") == 3.5
        assert to_double(".5") == 0.5
        assert to_double("1e3") == 1000.0
        assert to_double(" -2.") == -2.0

    def test_text_without_number_is_zero(self) -> None:
        assert to_double("x1") == 0.0


class TestTextProjection:
    """Tests for format_real() / to_text() / to_blob()."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (1.0, "1.0"),
            (0.1, "0.1"),
            (123.456, "123.456"),
            (-2.0, "-2.0"),
            (1e20, "1.0e+20"),
            (1.5e-7, "1.5e-07"),
            (math.inf, "Inf"),
            (-math.inf, "-Inf"),
        ],
    )
    def test_format_real(self, value: float, expected: str) -> None:
        assert format_real(value) == expected

    def test_to_text(self) -> None:
        assert to_text(42) == "42"
        assert to_text("hi") == "hi"
        assert to_text(b"hi") == "hi"
        assert to_text(None) is None

    def test_to_blob(self) -> None:
        assert to_blob("é") == b"\xc3\xa9"
        assert to_blob(42) == b"42"
        assert to_blob(b"\x00\x01") == b"\x00\x01"
        assert to_blob(None) is None

    def test_invalid_utf8_round_trips(self) -> None:
        assert encode_text(decode_text(b"a\xffb")) == b"a\xffb"


class TestByteLength:
    """Tests for byte_length()."""

    def test_null_is_zero(self) -> None:
        assert byte_length(None) == 0

    def test_embedded_nul_counts(self) -> None:
        assert byte_length("hi\0bye") == 6

    def test_multibyte_text(self) -> None:
        assert byte_length("é") == 2

    def test_numbers_use_text_rendering(self) -> None:
        assert byte_length(1.5) == 3
        assert byte_length(-42) == 3
