import datetime as dt
import io
import struct

import pytest

from carbonch.dates import timestamp_to_days
from carbonch.stream_reader import (
    Point,
    StreamReader,
    UnexpectedEndError,
    UvarintOverflowError,
    date_from_days,
)
from carbonch.write_buffer import WriteBuffer, encode_uvarint


def reader(data: bytes) -> StreamReader:
    return StreamReader(io.BytesIO(data))


def test_read_uvarint_known_encoding():
    assert reader(b"\x96\x01").read_uvarint() == 150


@pytest.mark.parametrize("value", [0, 1, 127, 128, 300, 2**40, 2**56 - 1])
def test_read_uvarint_round_trip(value):
    assert reader(encode_uvarint(value)).read_uvarint() == value


def test_read_uvarint_overflow():
    with pytest.raises(UvarintOverflowError):
        reader(b"\x80" * 9).read_uvarint()


def test_read_uvarint_empty_is_eof():
    with pytest.raises(EOFError):
        reader(b"").read_uvarint()


def test_read_uvarint_truncated():
    with pytest.raises(UnexpectedEndError):
        reader(b"\x80").read_uvarint()


def test_fixed_width_round_trip():
    data = (
        bytes([7])
        + struct.pack("<H", 0xBEEF)
        + struct.pack("<I", 0xDEADBEEF)
        + struct.pack("<Q", 2**63 + 5)
        + struct.pack("<d", -2.25)
    )
    r = reader(data)
    assert r.read_uint8() == 7
    assert r.read_uint16() == 0xBEEF
    assert r.read_uint32() == 0xDEADBEEF
    assert r.read_uint64() == 2**63 + 5
    assert r.read_float64() == -2.25
    with pytest.raises(EOFError):
        r.read_uint8()


def test_partial_fixed_width_is_unexpected_end():
    with pytest.raises(UnexpectedEndError):
        reader(b"\x01\x02").read_uint32()


def test_read_string_and_bytes():
    wb = WriteBuffer()
    wb.write_string("hello")
    wb.write_bytes(b"")
    r = reader(wb.getvalue())
    assert r.read_string() == "hello"
    assert r.read_string_bytes() == b""


def test_read_string_truncated():
    with pytest.raises(UnexpectedEndError):
        reader(encode_uvarint(5) + b"ab").read_string()


def test_read_string_list():
    data = encode_uvarint(2) + encode_uvarint(1) + b"a" + encode_uvarint(2) + b"bc"
    assert reader(data).read_string_list() == ["a", "bc"]
    assert reader(encode_uvarint(0)).read_string_list() == []


def test_date_from_days():
    assert date_from_days(0) == dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)
    assert date_from_days(10) - date_from_days(0) == dt.timedelta(days=10)


def test_read_date():
    assert reader(struct.pack("<H", 19307)).read_date() == date_from_days(19307)


def test_read_graphite_point_round_trip():
    ts = 1668124800
    wb = WriteBuffer()
    wb.write_graphite_point(b"a.b.c", 1.5, ts, 7)
    wb.write_graphite_point(b"x", -3.0, ts + 60, 8)
    r = reader(wb.getvalue())
    assert r.read_graphite_point() == Point("a.b.c", 1.5, ts, timestamp_to_days(ts), 7)
    second = r.read_graphite_point()
    assert (second.path, second.value, second.version) == ("x", -3.0, 8)
    with pytest.raises(EOFError):
        r.read_graphite_point()


def test_read_graphite_point_truncated_tail():
    wb = WriteBuffer()
    wb.write_graphite_point(b"a.b", 1.0, 1668124800, 1)
    data = wb.getvalue()
    with pytest.raises(UnexpectedEndError):
        reader(data[:-3]).read_graphite_point()
    name_only = encode_uvarint(3) + b"a.b"
    with pytest.raises(UnexpectedEndError):
        reader(name_only).read_graphite_point()