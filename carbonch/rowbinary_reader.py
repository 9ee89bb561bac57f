"""Reader recovering the good records of a possibly unfinished RowBinary file."""

from __future__ import annotations

import datetime as _dt
import struct
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator

import lz4.frame

from carbonch import dates
from carbonch.write_buffer import encode_uvarint

_LINE_SIZE = 524288
_TAIL = struct.Struct("<dIHI")
_LZ4_EXTENSION = ".lz4"


def reverse_bytes(target: bytes) -> bytes:
    """Reverse the order of the dot-separated parts of a path."""
    return b".".join(reversed(bytes(target).split(b".")))


@dataclass
class Record:
    """One point row: path, value, timestamp, date and version."""

    name: bytes
    value: float
    timestamp: int
    days: int
    version: int
    raw: bytes = field(default=b"", repr=False)

    def days_string(self) -> str:
        """The row date as ``YYYY-MM-DD``."""
        return (_dt.date(1970, 1, 1) + _dt.timedelta(days=self.days)).isoformat()


class RecordReader:
    """Read point rows from a binary stream.

    :meth:`read_record` raises :class:`EOFError` at the end and
    :class:`ValueError` on a corrupt row; after either, the reader is done.
    """

    def __init__(self, stream: BinaryIO, reverse: bool = False, zero_version: bool = False) -> None:
        self._stream = stream
        self.reverse = reverse
        self.zero_version = zero_version
        self._eof = False
        self._pending = b""

    def __enter__(self) -> "RecordReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _read_exact(self, n: int, what: str) -> bytes:
        chunks = bytearray()
        while len(chunks) < n:
            chunk = self._stream.read(n - len(chunks))
            if not chunk:
                reason = "EOF" if not chunks else "unexpected EOF"
                raise ValueError(f"{what} truncated: {reason}")
            chunks += chunk
        return bytes(chunks)

    def _read_uvarint(self) -> int:
        value = 0
        shift = 0
        for i in range(10):
            b = self._stream.read(1)
            if not b:
                if i == 0:
                    raise EOFError("end of records")
                raise ValueError("unexpected EOF")
            c = b[0]
            if c < 0x80:
                if i == 9 and c > 1:
                    break
                return value | c << shift
            value |= (c & 0x7F) << shift
            shift += 7
        raise ValueError("varint overflows a 64-bit integer")

    def _read_record(self) -> Record:
        name_len = self._read_uvarint()
        prefix = encode_uvarint(name_len)
        if len(prefix) + name_len + _TAIL.size > _LINE_SIZE:
            raise ValueError(f"name too long ({name_len} bytes)")
        name = self._read_exact(name_len, "name")
        if self.reverse and b"?" not in name:
            name = reverse_bytes(name)
        tail = self._read_exact(_TAIL.size, "record")
        if self.zero_version:
            tail = tail[:-4] + b"\x00\x00\x00\x00"
        value, timestamp, days, version = _TAIL.unpack(tail)
        if days != dates.timestamp_to_days(timestamp):
            raise ValueError("date and timestamp mismatch")
        return Record(name, value, timestamp, days, version, prefix + name + tail)

    def read_record(self) -> Record:
        """Return the next record."""
        if self._eof:
            raise EOFError("end of records")
        try:
            return self._read_record()
        except (EOFError, ValueError):
            self._eof = True
            raise

    def __iter__(self) -> Iterator[Record]:
        while True:
            try:
                record = self.read_record()
            except EOFError:
                return
            yield record

    def read(self, size: int = -1) -> bytes:
        """Return raw bytes of good records; ``b""`` once none are left."""
        out = bytearray()
        while size < 0 or len(out) < size:
            if not self._pending:
                try:
                    self._pending = self.read_record().raw
                except (EOFError, ValueError):
                    break
            take = len(self._pending) if size < 0 else size - len(out)
            out += self._pending[:take]
            self._pending = self._pending[take:]
        return bytes(out)

    def close(self) -> None:
        """Close the underlying stream."""
        self._stream.close()


def open_reader(filename: str, reverse: bool = False) -> RecordReader:
    """Open a RowBinary file, decompressing ``.lz4`` files on the fly."""
    if filename.endswith(_LZ4_EXTENSION):
        stream = lz4.frame.open(filename, mode="rb")
    else:
        stream = open(filename, "rb")
    return RecordReader(stream, reverse=reverse)