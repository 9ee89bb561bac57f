"""URL escaping and unescaping for metric paths and tag values."""

from __future__ import annotations

import enum
import re


class Encoding(enum.IntEnum):
    """Section of a URL that a string is escaped for."""

    PATH = 1
    PATH_SEGMENT = 2
    HOST = 3
    ZONE = 4
    USER_PASSWORD = 5
    QUERY_COMPONENT = 6
    FRAGMENT = 7


_HEX_DIGITS = "0123456789ABCDEF"
_HOST_ALLOWED = frozenset(b"!$&'()*+,;=:[]<>\"")
_UNRESERVED_MARKS = frozenset(b"-_.~")
_RESERVED = frozenset(b"$&+,/:;=?@")
_FRAGMENT_ALLOWED = frozenset(b"!()*")

_UNESCAPE_RE = re.compile(
    rb"%(?:(?P<hex>[0-9A-Fa-f]{2})|.{2}|.?\Z)|\+",
    re.DOTALL,
)


def should_escape(c: int, mode: Encoding) -> bool:
    """Return True if byte ``c`` must be escaped in the given URL section."""
    mode = Encoding(mode)
    if 0x61 <= c <= 0x7A or 0x41 <= c <= 0x5A or 0x30 <= c <= 0x39:
        return False

    if mode in (Encoding.HOST, Encoding.ZONE) and c in _HOST_ALLOWED:
        return False

    if c in _UNRESERVED_MARKS:
        return False

    if c in _RESERVED:
        if mode == Encoding.PATH:
            return c == ord("?")
        if mode == Encoding.PATH_SEGMENT:
            return c in b"/;,?"
        if mode == Encoding.USER_PASSWORD:
            return c in b"@/?:"
        if mode == Encoding.QUERY_COMPONENT:
            return True
        if mode == Encoding.FRAGMENT:
            return False

    if mode == Encoding.FRAGMENT and c in _FRAGMENT_ALLOWED:
        return False

    return True


def escape(s: str, mode: Encoding) -> str:
    """Percent-encode the UTF-8 bytes of ``s`` for the given URL section."""
    mode = Encoding(mode)
    query = mode == Encoding.QUERY_COMPONENT
    parts = []
    for c in s.encode("utf-8", "surrogateescape"):
        if c == 0x20 and query:
            parts.append("+")
        elif should_escape(c, mode):
            parts.append("%" + _HEX_DIGITS[c >> 4] + _HEX_DIGITS[c & 15])
        else:
            parts.append(chr(c))
    return "".join(parts)


def path(s: str) -> str:
    """Escape ``s`` so it can be used as a URL path."""
    return escape(s, Encoding.PATH)


def query(s: str) -> str:
    """Escape ``s`` so it can be placed inside a URL query."""
    return escape(s, Encoding.QUERY_COMPONENT)


def _replace(match: re.Match) -> bytes:
    token = match.group()
    if token == b"+":
        return b" "
    hex_pair = match.group("hex")
    if hex_pair is not None:
        return bytes([int(hex_pair, 16)])
    return token


def unescape(s: str) -> str:
    """Decode ``%XX`` escapes and ``+`` as space; malformed escapes are kept."""
    data = s.encode("utf-8", "surrogateescape")
    return _UNESCAPE_RE.sub(_replace, data).decode("utf-8", "surrogateescape")


def unescape_name(s: str) -> tuple[str, str]:
    """Unescape a metric name; return it and its ``__name__=`` tag form."""
    name = unescape(s)
    return name, "__name__=" + name