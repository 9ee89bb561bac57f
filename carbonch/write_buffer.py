"""Fixed-capacity buffer of RowBinary-encoded graphite points."""

from __future__ import annotations

import struct
from typing import Callable, Iterable, Optional

from carbonch.dates import timestamp_to_days

WRITE_BUFFER_SIZE = 524288

_F64 = struct.Struct("<d")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


def encode_uvarint(value: int) -> bytes:
    """Encode an unsigned integer as a LEB128 varint."""
    value &= (1 << 64) - 1
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def _as_bytes(p) -> bytes:
    return p.encode("utf-8") if isinstance(p, str) else bytes(p)


class WriteBuffer:
    """A bounded byte buffer holding RowBinary rows.

    ``on_confirm`` is called once the buffer has been handled; ``on_fail``
    receives the error first when handling failed.
    """

    def __init__(
        self,
        size: int = WRITE_BUFFER_SIZE,
        on_confirm: Optional[Callable[[], None]] = None,
        on_fail: Optional[Callable[[BaseException], None]] = None,
    ) -> None:
        self.size = size
        self._body = bytearray()
        self.on_confirm = on_confirm
        self.on_fail = on_fail

    def reset(self) -> "WriteBuffer":
        """Empty the buffer and drop its callbacks."""
        self._body.clear()
        self.on_confirm = None
        self.on_fail = None
        return self

    def __len__(self) -> int:
        return len(self._body)

    def free_size(self) -> int:
        """Number of bytes still free."""
        return self.size - len(self._body)

    def empty(self) -> bool:
        """True when nothing has been written."""
        return not self._body

    def getvalue(self) -> bytes:
        """The bytes written so far."""
        return bytes(self._body)

    def confirm_required(self) -> bool:
        """True when the producer waits for confirmation."""
        return self.on_confirm is not None

    def confirm(self) -> None:
        """Report that the buffer has been handled."""
        if self.on_confirm is None:
            raise RuntimeError("buffer does not require confirmation")
        self.on_confirm()

    def fail(self, error: BaseException) -> None:
        """Report a handling error, then mark the buffer as handled."""
        if self.on_fail is not None:
            self.on_fail(error)
        self.confirm()

    def write(self, p) -> None:
        """Append raw bytes."""
        data = _as_bytes(p)
        if len(self._body) + len(data) > self.size:
            raise BufferError("write buffer overflow")
        self._body += data

    def write_bytes(self, p) -> None:
        """Append a length-prefixed byte string."""
        data = _as_bytes(p)
        self.write(encode_uvarint(len(data)) + data)

    def write_string(self, s: str) -> None:
        """Append a length-prefixed UTF-8 string."""
        self.write_bytes(s.encode("utf-8"))

    def write_tagged(self, tagged: Iterable[str]) -> None:
        """Append ``name?k1=v1&k2=v2...`` built from ``[name, k1, v1, ...]``."""
        parts = [_as_bytes(t) for t in tagged]
        if not parts:
            return
        out = bytearray(parts[0])
        for i, part in enumerate(parts[1:], start=1):
            if i == 1:
                out += b"?"
            elif i % 2 == 1:
                out += b"&"
            else:
                out += b"="
            out += part
        self.write_bytes(out)

    def write_uvarint(self, value: int) -> None:
        """Append an unsigned varint."""
        self.write(encode_uvarint(value))

    def write_reverse_path(self, p) -> None:
        """Append a length-prefixed path with its dot-separated parts reversed."""
        data = _as_bytes(p)
        self.write_bytes(b".".join(reversed(data.split(b"."))))

    def write_float64(self, value: float) -> None:
        """Append a little-endian 64-bit float."""
        self.write(_F64.pack(value))

    def write_uint16(self, value: int) -> None:
        """Append a little-endian 16-bit unsigned integer."""
        self.write(_U16.pack(value & 0xFFFF))

    def write_uint32(self, value: int) -> None:
        """Append a little-endian 32-bit unsigned integer."""
        self.write(_U32.pack(value & 0xFFFFFFFF))

    def write_uint64(self, value: int) -> None:
        """Append a little-endian 64-bit unsigned integer."""
        self.write(_U64.pack(value & 0xFFFFFFFFFFFFFFFF))

    def _write_point_tail(self, value: float, timestamp: int, version: int) -> None:
        self.write_float64(value)
        self.write_uint32(timestamp)
        self.write_uint16(timestamp_to_days(timestamp & 0xFFFFFFFF))
        self.write_uint32(version)

    def write_graphite_point(self, name, value: float, timestamp: int, version: int) -> None:
        """Append one point row: path, value, timestamp, date, version."""
        self.write_bytes(name)
        self._write_point_tail(value, timestamp, version)

    def write_graphite_point_tagged(
        self, labels: Iterable[str], value: float, timestamp: int, version: int
    ) -> None:
        """Append one point row whose path is built from tag labels."""
        self.write_tagged(labels)
        self._write_point_tail(value, timestamp, version)

    def can_write_graphite_point(self, metric_len: int) -> bool:
        """True if a point with a path of ``metric_len`` bytes surely fits."""
        return (self.size - len(self._body)) > metric_len + 23