"""Big-endian, length-prefixed field encoding for patch metadata."""

from __future__ import annotations

import struct
from typing import BinaryIO

_U16 = struct.Struct(">H")
_I32 = struct.Struct(">i")
_I64 = struct.Struct(">q")

MAX_UTF_BYTES = 0xFFFF


class DataWriter:
    """Writes primitive fields to a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def write_utf(self, value: str) -> None:
        data = value.encode("utf-8")
        if len(data) > MAX_UTF_BYTES:
            raise ValueError(f"string too long to encode ({len(data)} bytes)")
        self._stream.write(_U16.pack(len(data)))
        self._stream.write(data)

    def write_int(self, value: int) -> None:
        self._stream.write(_I32.pack(value))

    def write_long(self, value: int) -> None:
        self._stream.write(_I64.pack(value))


class DataReader:
    """Reads fields written by :class:`DataWriter`, in the same order."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def _read_exact(self, size: int) -> bytes:
        data = self._stream.read(size)
        if len(data) != size:
            raise EOFError(f"expected {size} bytes, got {len(data)}")
        return data

    def read_utf(self) -> str:
        (length,) = _U16.unpack(self._read_exact(_U16.size))
        return self._read_exact(length).decode("utf-8")

    def read_int(self) -> int:
        return _I32.unpack(self._read_exact(_I32.size))[0]

    def read_long(self) -> int:
        return _I64.unpack(self._read_exact(_I64.size))[0]
