import io
import queue
import struct
import threading

from carbonch.dates import timestamp_to_days
from carbonch.rowbinary_writer import RowBinaryWriter, write_bytes, write_uint16, write_uint32
from carbonch.write_buffer import WRITE_BUFFER_SIZE, encode_uvarint


def _drain(q):
    items = []
    while not q.empty():
        items.append(q.get_nowait())
    return items


def test_stream_helpers():
    out = io.BytesIO()
    write_uint16(out, 0x0102)
    write_uint32(out, 0x01020304)
    write_bytes(out, b"abc")
    assert out.getvalue() == b"\x02\x01\x04\x03\x02\x01\x03abc"


def test_write_bytes_long_prefix():
    out = io.BytesIO()
    data = b"x" * 300
    write_bytes(out, data)
    assert out.getvalue() == encode_uvarint(300) + data


def test_write_point_and_flush():
    q = queue.Queue()
    w = RowBinaryWriter(q)
    ts = 259200
    w.write_point("a.b", 1.0, ts)
    assert q.empty()
    w.flush()
    (buf,) = _drain(q)
    assert buf.getvalue() == b"\x03a.b" + struct.pack("<dIHI", 1.0, ts, timestamp_to_days(ts), w.now)
    assert w.points_written == 1
    assert w.write_errors == 0


def test_write_point_tagged():
    q = queue.Queue()
    w = RowBinaryWriter(q)
    w.write_point_tagged(["m", "k", "v"], 2.0, 100)
    w.flush()
    (buf,) = _drain(q)
    assert buf.getvalue().startswith(b"\x05m?k=v")
    assert w.points_written == 1


def test_flush_empty_sends_nothing():
    q = queue.Queue()
    w = RowBinaryWriter(q)
    w.flush()
    assert q.empty()


def test_too_long_metric_is_error():
    q = queue.Queue()
    w = RowBinaryWriter(q)
    w.write_point("x" * (WRITE_BUFFER_SIZE - 49), 1.0, 100)
    assert w.write_errors == 1
    assert w.points_written == 0
    assert q.empty()


def test_full_buffer_is_handed_over():
    q = queue.Queue()
    w = RowBinaryWriter(q)
    name = "n" * 200000
    for _ in range(3):
        w.write_point(name, 1.0, 100)
    assert q.qsize() == 1
    w.flush()
    buffers = _drain(q)
    assert len(buffers) == 2
    assert w.points_written == 3
    assert sum(len(b) for b in buffers) == 3 * (len(encode_uvarint(200000)) + 200000 + 18)


def test_callable_sink():
    received = []
    w = RowBinaryWriter(received.append)
    w.write_point("x", 1.0, 100)
    w.flush()
    assert len(received) == 1
    assert received[0].getvalue().startswith(b"\x01x")


def test_stopped_writer_drops_buffers():
    q = queue.Queue(maxsize=1)
    stop = threading.Event()
    stop.set()
    w = RowBinaryWriter(q, stop)
    w.write_point("x", 1.0, 100)
    w.flush()
    assert q.empty()
    assert w.points_written == 1