"""Sequential reader of RowBinary-encoded values from a binary stream."""

from __future__ import annotations

import datetime as _dt
import struct
from dataclasses import dataclass
from typing import BinaryIO

SIZE_INT8 = 1
SIZE_INT16 = 2
SIZE_INT32 = 4
SIZE_INT64 = 8

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_F64 = struct.Struct("<d")
_EPOCH = _dt.datetime(1970, 1, 1, tzinfo=_dt.timezone.utc)


class UvarintOverflowError(ValueError):
    """A varint is longer than the reader accepts."""

    def __init__(self, message: str = "varint overflow") -> None:
        super().__init__(message)


class UnexpectedEndError(ValueError):
    """The stream ends in the middle of a value."""

    def __init__(self, message: str = "unexpected end") -> None:
        super().__init__(message)


@dataclass
class Point:
    """One graphite point row."""

    path: str
    value: float
    timestamp: int
    days: int
    version: int


def date_from_days(n: int) -> _dt.datetime:
    """UTC midnight of the day ``n`` days after 1970-01-01."""
    return _EPOCH + _dt.timedelta(days=n)


class StreamReader:
    """Read RowBinary primitives one after another from a binary stream.

    A stream that ends before the first byte of a value raises
    :class:`EOFError`; one that ends inside a value raises
    :class:`UnexpectedEndError`.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def _read(self, want: int) -> bytes:
        data = bytearray()
        while len(data) < want:
            chunk = self._stream.read(want - len(data))
            if not chunk:
                break
            data += chunk
        if want and not data:
            raise EOFError("end of stream")
        if len(data) < want:
            raise UnexpectedEndError()
        return bytes(data)

    def read_uvarint(self) -> int:
        """Read an unsigned varint of at most eight bytes."""
        value = 0
        shift = 0
        for i in range(SIZE_INT64):
            b = self._stream.read(1)
            if not b:
                if i == 0:
                    raise EOFError("end of stream")
                raise UnexpectedEndError()
            c = b[0]
            if c < 0x80:
                return value | c << shift
            value |= (c & 0x7F) << shift
            shift += 7
        raise UvarintOverflowError()

    def read_uint8(self) -> int:
        """Read one unsigned byte."""
        return self._read(SIZE_INT8)[0]

    def read_uint16(self) -> int:
        """Read a little-endian 16-bit unsigned integer."""
        return _U16.unpack(self._read(SIZE_INT16))[0]

    def read_uint32(self) -> int:
        """Read a little-endian 32-bit unsigned integer."""
        return _U32.unpack(self._read(SIZE_INT32))[0]

    def read_uint64(self) -> int:
        """Read a little-endian 64-bit unsigned integer."""
        return _U64.unpack(self._read(SIZE_INT64))[0]

    def read_float64(self) -> float:
        """Read a little-endian 64-bit float."""
        return _F64.unpack(self._read(SIZE_INT64))[0]

    def read_string_bytes(self) -> bytes:
        """Read a varint length followed by that many bytes."""
        length = self.read_uvarint()
        if length == 0:
            return b""
        return self._read(length)

    def read_string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        return self.read_string_bytes().decode("utf-8", "surrogateescape")

    def read_date(self) -> _dt.datetime:
        """Read a 16-bit day number as a UTC datetime."""
        return date_from_days(self.read_uint16())

    def read_string_list(self) -> list[str]:
        """Read a varint count followed by that many strings."""
        count = self.read_uvarint()
        return [self.read_string() for _ in range(count)]

    def read_graphite_point(self) -> Point:
        """Read one point row: path, value, timestamp, days, version."""
        path = self.read_string()
        try:
            value = self.read_float64()
            timestamp = self.read_uint32()
            days = self.read_uint16()
            version = self.read_uint32()
        except EOFError:
            raise UnexpectedEndError() from None
        return Point(path, value, timestamp, days, version)