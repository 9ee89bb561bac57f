import struct

import pytest

from carbonch.dates import timestamp_to_days
from carbonch.write_buffer import WRITE_BUFFER_SIZE, WriteBuffer, encode_uvarint


def test_write_reverse_path():
    wb = WriteBuffer()
    wb.write_reverse_path(b"a1.b2.c3")
    assert wb.getvalue() == b"\bc3.b2.a1"


@pytest.mark.parametrize(
    "value,encoded",
    [(0, b"\x00"), (1, b"\x01"), (127, b"\x7f"), (128, b"\x80\x01"), (300, b"\xac\x02")],
)
def test_encode_uvarint(value, encoded):
    assert encode_uvarint(value) == encoded


def test_write_bytes_and_string():
    wb = WriteBuffer()
    wb.write_bytes(b"abc")
    wb.write_string("иван")
    assert wb.getvalue() == b"\x03abc" + b"\x08" + "иван".encode()


def test_write_tagged():
    wb = WriteBuffer()
    wb.write_tagged(["name", "a", "1", "b", "2"])
    assert wb.getvalue() == b"\x0dname?a=1&b=2"


def test_write_tagged_empty_writes_nothing():
    wb = WriteBuffer()
    wb.write_tagged([])
    assert wb.empty()


def test_fixed_width_integers():
    wb = WriteBuffer()
    wb.write_uint16(0x0102)
    wb.write_uint32(0x01020304)
    wb.write_uint64(1)
    wb.write_float64(1.0)
    assert wb.getvalue() == (
        b"\x02\x01" + b"\x04\x03\x02\x01" + b"\x01" + b"\x00" * 7 + struct.pack("<d", 1.0)
    )


def test_graphite_point_layout():
    wb = WriteBuffer()
    ts = 1668124800
    wb.write_graphite_point(b"a.b", 2.5, ts, 7)
    data = wb.getvalue()
    assert data[:4] == b"\x03a.b"
    value, got_ts, days, version = struct.unpack("<dIHI", data[4:])
    assert (value, got_ts, days, version) == (2.5, ts, timestamp_to_days(ts), 7)


def test_graphite_point_tagged_layout():
    wb = WriteBuffer()
    wb.write_graphite_point_tagged(["m", "k", "v"], 1.0, 100, 1)
    data = wb.getvalue()
    assert data[:6] == b"\x05m?k=v"
    assert len(data) == 6 + 18


def test_sizes_and_reset():
    wb = WriteBuffer()
    assert wb.empty()
    assert wb.free_size() == WRITE_BUFFER_SIZE
    wb.write(b"xyz")
    assert len(wb) == 3
    assert wb.free_size() == WRITE_BUFFER_SIZE - 3
    wb.reset()
    assert len(wb) == 0


def test_can_write_graphite_point_limit():
    wb = WriteBuffer(size=100)
    assert wb.can_write_graphite_point(76)
    assert not wb.can_write_graphite_point(77)


def test_overflow_raises():
    wb = WriteBuffer(size=4)
    wb.write(b"abcd")
    with pytest.raises(BufferError):
        wb.write(b"e")


def test_confirm_and_fail_callbacks():
    done = []
    errors = []
    wb = WriteBuffer(on_confirm=lambda: done.append(1), on_fail=errors.append)
    assert wb.confirm_required()
    wb.confirm()
    err = OSError("boom")
    wb.fail(err)
    assert done == [1, 1]
    assert errors == [err]


def test_confirm_without_callback_raises():
    wb = WriteBuffer()
    assert not wb.confirm_required()
    with pytest.raises(RuntimeError):
        wb.confirm()