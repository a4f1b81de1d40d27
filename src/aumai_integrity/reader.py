"""Bounds-checked little-endian reader over a seekable byte stream."""

from __future__ import annotations

import io
import struct
from typing import BinaryIO

from aumai_integrity.errors import TruncatedDataError

_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


class BinaryCursor:
    """Sequential reader with absolute seeks.

    Every read either returns exactly the requested number of bytes or raises
    :class:`TruncatedDataError`; a short read is never passed on to the caller.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._size = stream.seek(0, io.SEEK_END)
        stream.seek(0, io.SEEK_SET)

    @classmethod
    def from_bytes(cls, data: bytes) -> BinaryCursor:
        return cls(io.BytesIO(data))

    @property
    def size(self) -> int:
        return self._size

    @property
    def position(self) -> int:
        return self._stream.tell()

    @property
    def remaining(self) -> int:
        return self._size - self.position

    def require(self, offset: int, length: int, what: str) -> None:
        """Raise unless ``[offset, offset + length)`` lies inside the stream."""
        if offset < 0 or length < 0 or offset + length > self._size:
            raise TruncatedDataError(
                f"{what} at offset {offset} with length {length} "
                f"exceeds input size {self._size}"
            )

    def seek(self, offset: int) -> None:
        self.require(offset, 0, "seek target")
        self._stream.seek(offset, io.SEEK_SET)

    def read_exact(self, length: int, what: str = "data") -> bytes:
        start = self.position
        data = self._stream.read(length)
        if len(data) != length:
            raise TruncatedDataError(
                f"{what}: expected {length} bytes at offset {start}, got {len(data)}"
            )
        return data

    def _unpack(self, layout: struct.Struct, what: str) -> int:
        (value,) = layout.unpack(self.read_exact(layout.size, what))
        return value

    def u8(self, what: str = "u8") -> int:
        return self._unpack(_U8, what)

    def u32(self, what: str = "u32") -> int:
        return self._unpack(_U32, what)

    def u64(self, what: str = "u64") -> int:
        return self._unpack(_U64, what)


__all__ = ["BinaryCursor"]
