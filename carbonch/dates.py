"""Conversion of Unix timestamps to ClickHouse ``Date`` day numbers."""

from __future__ import annotations

import calendar
import datetime as _dt
import functools
import time
from dataclasses import dataclass
from typing import Callable

_DAY = 86400
_YEARS_AHEAD = 10
_EPOCH = _dt.date(1970, 1, 1)


def _tz_key() -> tuple:
    return (time.timezone, time.altzone, time.daylight, time.tzname)


@functools.lru_cache(maxsize=8)
def _day_starts(tz_key: tuple) -> list[int]:
    """Local-midnight timestamps of every calendar day from 1970 on.

    Covers days up to about ten years from now; ``tz_key`` keys the cache
    so a time-zone change builds a fresh table.
    """
    end = int(time.time()) + _YEARS_AHEAD * 365 * _DAY
    starts = []
    for day in range((end + _DAY - 1) // _DAY):
        date = _EPOCH + _dt.timedelta(days=day)
        starts.append(int(time.mktime((date.year, date.month, date.day, 0, 0, 0, 0, 0, -1))))
    return starts


def slow_timestamp_to_days(timestamp: int) -> int:
    """Day number of the local calendar date of ``timestamp``.

    The local date is counted as if it were a UTC date, so the result
    depends on the process time zone.
    """
    t = time.localtime(timestamp)
    return (calendar.timegm((t.tm_year, t.tm_mon, t.tm_mday, 0, 0, 0)) // _DAY) & 0xFFFF


def _precalc_timestamp_to_days(timestamp: int) -> int:
    starts = _day_starts(_tz_key())
    i = timestamp // _DAY
    if i < 10 or i > len(starts) - 10:
        return slow_timestamp_to_days(timestamp)
    while True:
        if timestamp < starts[i]:
            i -= 1
        elif timestamp >= starts[i + 1]:
            i += 1
        else:
            return i & 0xFFFF


def utc_timestamp_to_days(timestamp: int) -> int:
    """Day number of the UTC date of ``timestamp``."""
    return (timestamp // _DAY) & 0xFFFF


@dataclass
class _DateMode:
    """The converter currently used by :func:`timestamp_to_days`."""

    convert: Callable[[int], int] = _precalc_timestamp_to_days


_mode = _DateMode()


def set_utc_date() -> None:
    """Make :func:`timestamp_to_days` count days in UTC."""
    _mode.convert = utc_timestamp_to_days


def set_default_date() -> None:
    """Make :func:`timestamp_to_days` use local calendar dates (the default)."""
    _mode.convert = _precalc_timestamp_to_days


def timestamp_to_days(timestamp: int) -> int:
    """Day number of ``timestamp`` in the currently selected mode."""
    return _mode.convert(timestamp)


def timestamp_to_days_format(timestamp: int) -> str:
    """``YYYY-MM-DD`` of the local calendar date of ``timestamp``."""
    return time.strftime("%Y-%m-%d", time.localtime(timestamp))


def time_to_days_format(t: _dt.datetime) -> str:
    """``YYYY-MM-DD`` of the calendar date fields of ``t``."""
    return f"{t.year:04d}-{t.month:02d}-{t.day:02d}"


def utc_timestamp_to_days_format(timestamp: int) -> str:
    """``YYYY-MM-DD`` of the UTC date of ``timestamp``."""
    return _dt.datetime.fromtimestamp(timestamp, _dt.timezone.utc).strftime("%Y-%m-%d")