"""Tests for aumai_integrity.reader — BinaryCursor."""

from __future__ import annotations

import io
import struct

import pytest

from aumai_integrity.errors import TruncatedDataError
from aumai_integrity.reader import BinaryCursor


class TestBinaryCursor:
    def test_little_endian_fields(self) -> None:
        data = struct.pack("<BIQ", 0xAB, 0x01020304, 0x1122334455667788)
        cursor = BinaryCursor.from_bytes(data)
        assert cursor.u8() == 0xAB
        assert cursor.u32() == 0x01020304
        assert cursor.u64() == 0x1122334455667788
        assert cursor.remaining == 0

    def test_size_and_position(self) -> None:
        cursor = BinaryCursor.from_bytes(b"\x00" * 10)
        assert cursor.size == 10
        cursor.read_exact(4)
        assert cursor.position == 4
        assert cursor.remaining == 6

    def test_starts_at_zero_for_positioned_stream(self) -> None:
        stream = io.BytesIO(b"\x01\x02\x03")
        stream.seek(2)
        assert BinaryCursor(stream).u8() == 1

    def test_absolute_seek(self) -> None:
        cursor = BinaryCursor.from_bytes(b"\x00\x01\x02\x03")
        cursor.seek(3)
        assert cursor.u8() == 3
        cursor.seek(1)
        assert cursor.u8() == 1

    def test_seek_to_end_allowed(self) -> None:
        cursor = BinaryCursor.from_bytes(b"\x00\x01")
        cursor.seek(2)
        assert cursor.remaining == 0

    def test_seek_past_end_raises(self) -> None:
        cursor = BinaryCursor.from_bytes(b"\x00\x01")
        with pytest.raises(TruncatedDataError):
            cursor.seek(3)

    def test_short_read_raises_with_field_name(self) -> None:
        cursor = BinaryCursor.from_bytes(b"\x00\x01")
        with pytest.raises(TruncatedDataError, match="chunk count"):
            cursor.u64("chunk count")

    def test_read_exact_never_returns_partial(self) -> None:
        cursor = BinaryCursor.from_bytes(b"abc")
        with pytest.raises(TruncatedDataError):
            cursor.read_exact(4)

    @pytest.mark.parametrize(
        ("offset", "length"), [(0, 11), (10, 1), (-1, 1), (0, -1), (1 << 63, 1 << 63)]
    )
    def test_require_out_of_bounds(self, offset: int, length: int) -> None:
        cursor = BinaryCursor.from_bytes(b"\x00" * 10)
        with pytest.raises(TruncatedDataError, match="table"):
            cursor.require(offset, length, "table")

    def test_require_in_bounds(self) -> None:
        cursor = BinaryCursor.from_bytes(b"\x00" * 10)
        cursor.require(0, 10, "table")
        cursor.require(10, 0, "table")
