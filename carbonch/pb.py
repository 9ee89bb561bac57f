"""Minimal protobuf wire-format decoding helpers."""

from __future__ import annotations

import struct

_UINT64_MASK = (1 << 64) - 1


class PbError(ValueError):
    """Base error for malformed protobuf data."""


class TruncatedError(PbError):
    """The message ends before the value is complete."""

    def __init__(self, message: str = "Message truncated") -> None:
        super().__init__(message)


class UnknownWireTypeError(PbError):
    """The field key carries an unsupported wire type."""

    def __init__(self, message: str = "Unknown wire type") -> None:
        super().__init__(message)


def _varint_end(p) -> int:
    for i, b in enumerate(p):
        if not b & 0x80:
            return i + 1
    raise TruncatedError()


def wire_type(p):
    """Read a field key; return its wire type and the remaining data."""
    end = _varint_end(p)
    return p[0] & 0x07, p[end:]


def read_uint64(p):
    """Read an unsigned varint; return the value and the remaining data."""
    end = _varint_end(p)
    value = sum((b & 0x7F) << (7 * i) for i, b in enumerate(p[:end]))
    return value & _UINT64_MASK, p[end:]


def read_int64(p):
    """Read a varint as a two's-complement signed 64-bit integer."""
    value, rest = read_uint64(p)
    if value >= 1 << 63:
        value -= 1 << 64
    return value, rest


def read_double(p):
    """Read a little-endian 64-bit float."""
    if len(p) < 8:
        raise TruncatedError()
    (value,) = struct.unpack_from("<d", p)
    return value, p[8:]


def skip_varint(p):
    """Skip over one varint and return the remaining data."""
    return p[_varint_end(p):]


def read_bytes(p):
    """Read a length-delimited field; return its payload and the rest."""
    length, rest = read_uint64(p)
    if len(rest) < length:
        raise TruncatedError()
    return rest[:length], rest[length:]


def skip(p):
    """Skip one whole field (key and value) and return the remaining data."""
    wt, p = wire_type(p)
    if wt == 0:
        return skip_varint(p)
    if wt == 1:
        if len(p) < 8:
            raise TruncatedError()
        return p[8:]
    if wt == 2:
        _, rest = read_bytes(p)
        return rest
    if wt == 5:
        if len(p) < 4:
            raise TruncatedError()
        return p[4:]
    raise UnknownWireTypeError()