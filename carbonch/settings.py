"""Typed configuration values: durations, sizes, compression, chunk intervals."""

from __future__ import annotations

import bisect
import enum
import re
from datetime import timedelta

_NS_UNITS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_MAX_NS = (1 << 63) - 1
_DURATION_PART = re.compile(r"([0-9]*)(\.([0-9]*))?([^0-9.]*)")
_INT_RE = re.compile(r"[+-]?[0-9]+")

_SECOND = 1_000_000_000
_MINUTE = 60 * _SECOND


def _parse_nanoseconds(text: str) -> int:
    s = text
    negative = False
    if s[:1] in ("+", "-"):
        negative = s[0] == "-"
        s = s[1:]
    if s == "0":
        return 0
    if not s:
        raise ValueError(f"time: invalid duration {text!r}")

    total = 0
    pos = 0
    while pos < len(s):
        match = _DURATION_PART.match(s, pos)
        whole, frac, unit = match.group(1), match.group(3) or "", match.group(4)
        if not whole and not frac:
            raise ValueError(f"time: invalid duration {text!r}")
        if not unit:
            raise ValueError(f"time: missing unit in duration {text!r}")
        scale = _NS_UNITS.get(unit)
        if scale is None:
            raise ValueError(f"time: unknown unit {unit!r} in duration {text!r}")
        total += int(whole or "0") * scale
        if frac:
            total += int(frac) * scale // 10 ** len(frac)
        if total > _MAX_NS:
            raise ValueError(f"time: invalid duration {text!r}")
        pos = match.end()

    return -total if negative else total


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"1h30m"`` or ``"1.5s"``."""
    ns = _parse_nanoseconds(text)
    micro = abs(ns) // 1_000
    return timedelta(microseconds=-micro if ns < 0 else micro)


def _with_fraction(value: int, precision: int) -> str:
    whole, frac = divmod(value, 10**precision)
    if not frac:
        return str(whole)
    return f"{whole}.{frac:0{precision}d}".rstrip("0")


def format_duration(value: timedelta) -> str:
    """Format a duration in the compact ``"1h2m3.5s"`` notation."""
    ns = (value // timedelta(microseconds=1)) * 1_000
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    u = abs(ns)

    if u < _SECOND:
        if u < 1_000:
            return f"{sign}{u}ns"
        if u < 1_000_000:
            return f"{sign}{_with_fraction(u, 3)}\u00b5s"
        return f"{sign}{_with_fraction(u, 6)}ms"

    seconds = _with_fraction(u % _MINUTE, 9) + "s"
    minutes = u // _MINUTE
    if minutes == 0:
        return sign + seconds
    hours, minutes = divmod(minutes, 60)
    out = f"{minutes}m{seconds}"
    if hours:
        out = f"{hours}h{out}"
    return sign + out


def parse_size(text: str) -> int:
    """Parse a byte size with an optional ``k``, ``m`` or ``g`` suffix."""
    value = text.lower()
    if not value:
        raise ValueError("size is empty")
    multipliers = {"k": 1024, "m": 1024 * 1024, "g": 1024 * 1024 * 1024}
    multiplier = multipliers.get(value[-1])
    number = value[:-1] if multiplier else value
    if not _INT_RE.fullmatch(number):
        raise ValueError(f"invalid size {text!r}")
    size = int(number)
    if not -(1 << 63) <= size <= _MAX_NS:
        raise ValueError(f"size {text!r} out of range")
    size *= multiplier or 1
    if size < 0:
        raise ValueError("size must be greater than 0")
    return size


class CompAlgo(enum.IntEnum):
    """Compression algorithm for data chunks."""

    NONE = 0
    LZ4 = 1


_COMPRESSION_NAMES = {"none": CompAlgo.NONE, "lz4": CompAlgo.LZ4}


def parse_compression(text: str) -> CompAlgo:
    """Return the compression algorithm with the given name."""
    try:
        return _COMPRESSION_NAMES[text]
    except KeyError:
        raise ValueError(f"Compression algorithm '{text}' not supported") from None


def compression_name(algo: CompAlgo) -> str:
    """Return the configuration name of a compression algorithm."""
    return CompAlgo(algo).name.lower()


class ChunkAutoInterval:
    """Chunk interval chosen by the number of unhandled files.

    Rules are ``unhandled:interval`` pairs; the interval of the last rule
    whose threshold is not above the count applies, else the default.
    """

    def __init__(self, text: str = "") -> None:
        self.rules: list[tuple[int, timedelta]] = []
        self.default = timedelta(0)
        self.parse(text)

    def parse(self, text: str) -> None:
        """Replace the rules with those in a ``"5:10s,20:30s"`` string."""
        s = text.strip()
        self.rules = []
        if not s:
            return
        rules = []
        for item in s.split(","):
            kv = item.strip().split(":")
            if len(kv) != 2:
                raise ValueError(f"can't parse {s!r}")
            key, value = kv
            if not _INT_RE.fullmatch(key):
                raise ValueError(f"can't parse {s!r}: invalid number {key!r}")
            try:
                interval = parse_duration(value)
            except ValueError as exc:
                raise ValueError(f"can't parse {s!r}: {exc}") from None
            rules.append((int(key), interval))
        rules.sort(key=lambda rule: rule[0])
        self.rules = rules

    def __str__(self) -> str:
        return ",".join(
            f"{unhandled}:{format_duration(interval)}"
            for unhandled, interval in self.rules
        )

    def set_default(self, value: timedelta) -> None:
        """Set the interval used when no rule applies."""
        self.default = value

    def get_interval(self, unhandled_count: int) -> timedelta:
        """Return the interval for the given number of unhandled files."""
        thresholds = [unhandled for unhandled, _ in self.rules]
        index = bisect.bisect_right(thresholds, unhandled_count)
        if index > 0:
            return self.rules[index - 1][1]
        return self.default