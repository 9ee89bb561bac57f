"""Batching writer that packs graphite points into write buffers."""

from __future__ import annotations

import queue
import struct
import threading
import time
from typing import Iterable, Optional

from carbonch.write_buffer import WRITE_BUFFER_SIZE, WriteBuffer, encode_uvarint


def write_uint16(w, value: int) -> None:
    """Write a little-endian 16-bit unsigned integer to a binary stream."""
    w.write(struct.pack("<H", value & 0xFFFF))


def write_uint32(w, value: int) -> None:
    """Write a little-endian 32-bit unsigned integer to a binary stream."""
    w.write(struct.pack("<I", value & 0xFFFFFFFF))


def write_bytes(w, p: bytes) -> None:
    """Write a varint length followed by ``p`` to a binary stream."""
    w.write(encode_uvarint(len(p)))
    w.write(p)


class RowBinaryWriter:
    """Fill write buffers with points and hand full ones to ``sink``.

    ``sink`` is a queue (anything with ``put(item, timeout=...)``) or a
    callable. Once ``stop_event`` is set, buffers are dropped instead.
    """

    def __init__(self, sink, stop_event: Optional[threading.Event] = None) -> None:
        self._sink = sink
        self._stop_event = stop_event
        self._wb: Optional[WriteBuffer] = None
        self.now = int(time.time()) & 0xFFFFFFFF
        self.points_written = 0
        self.write_errors = 0

    def _stopped(self) -> bool:
        return self._stop_event is not None and self._stop_event.is_set()

    def _deliver(self, buffer: WriteBuffer) -> None:
        put = getattr(self._sink, "put", None)
        if put is None:
            if not self._stopped():
                self._sink(buffer)
            return
        while not self._stopped():
            try:
                put(buffer, timeout=0.1)
                return
            except queue.Full:
                continue

    def flush(self) -> None:
        """Hand over the current buffer if it holds anything."""
        if self._wb is not None:
            if not self._wb.empty():
                self._deliver(self._wb)
            self._wb = None

    def _prepare(self, name_len: int) -> bool:
        if self._wb is None:
            self._wb = WriteBuffer()
        if not self._wb.can_write_graphite_point(name_len):
            self.flush()
            if name_len > WRITE_BUFFER_SIZE - 50:
                self.write_errors += 1
                return False
            self._wb = WriteBuffer()
        return True

    def write_point(self, metric: str, value: float, timestamp: int) -> None:
        """Add a point with a plain path; too long paths count as errors."""
        name = metric.encode("utf-8")
        if not self._prepare(len(name)):
            return
        self._wb.write_graphite_point(name, value, timestamp & 0xFFFFFFFF, self.now)
        self.points_written += 1

    def write_point_tagged(self, metric: Iterable[str], value: float, timestamp: int) -> None:
        """Add a point whose path is built from ``[name, k1, v1, ...]``."""
        labels = [m.encode("utf-8") for m in metric]
        name_len = len(labels) - 1 + sum(len(label) for label in labels)
        if not self._prepare(name_len):
            return
        self._wb.write_graphite_point_tagged(labels, value, timestamp & 0xFFFFFFFF, self.now)
        self.points_written += 1