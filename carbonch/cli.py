"""Command line entry point: version, RowBinary dump and recovery."""

from __future__ import annotations

import argparse
import math
import sys
from decimal import Decimal

from carbonch.rowbinary_reader import open_reader

VERSION = "0.11.8"
_CHUNK = 65536


def _format_float(value: float) -> str:
    """Shortest representation, exponent form below 1e-4 or from 1e21."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    sign, digits, exp = Decimal(repr(value)).as_tuple()
    digit_str = "".join(map(str, digits)).rstrip("0") or "0"
    exp += len(digits) - len(digit_str)
    point = len(digit_str) + exp - 1
    prefix = "-" if sign else ""
    if point < -4 or point >= 21:
        mantissa = digit_str[0]
        if len(digit_str) > 1:
            mantissa += "." + digit_str[1:]
        esign = "-" if point < 0 else "+"
        return f"{prefix}{mantissa}e{esign}{abs(point):02d}"
    if exp >= 0:
        return prefix + digit_str + "0" * exp
    if point >= 0:
        return f"{prefix}{digit_str[:point + 1]}.{digit_str[point + 1:]}"
    return f"{prefix}0.{'0' * (-point - 1)}{digit_str}"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="carbon-clickhouse",
        description="Graphite metrics receiver with ClickHouse as storage",
        allow_abbrev=False,
    )
    parser.add_argument(
        "-config", "--config",
        default="/etc/carbon-clickhouse/carbon-clickhouse.conf",
        help="Filename of config",
    )
    parser.add_argument("-version", "--version", action="store_true", help="Print version")
    parser.add_argument(
        "-cat", "--cat", default="", help="Print RowBinary file in TabSeparated format"
    )
    parser.add_argument(
        "-recover", "--recover", default="",
        help="Read all good records from corrupted data file. Write binary data to stdout",
    )
    return parser


def _cat(filename: str) -> int:
    try:
        reader = open_reader(filename)
    except OSError as exc:
        print(exc, file=sys.stderr)
        return 1
    with reader:
        while True:
            try:
                record = reader.read_record()
            except EOFError:
                return 0
            except ValueError as exc:
                sys.stdout.flush()
                print(exc, file=sys.stderr)
                return 1
            name = record.name.decode("utf-8", "replace")
            sys.stdout.write(
                f"{name}\t{_format_float(record.value)}\t{record.timestamp}"
                f"\t{record.days_string()}\t{record.version}\n"
            )


def _recover(filename: str) -> int:
    try:
        reader = open_reader(filename)
    except OSError as exc:
        print(exc, file=sys.stderr)
        return 1
    out = sys.stdout.buffer
    with reader:
        while True:
            chunk = reader.read(_CHUNK)
            if not chunk:
                break
            out.write(chunk)
    out.flush()
    return 0


def main(argv=None) -> int:
    """Run the command; return the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        sys.stdout.write(VERSION)
        return 0
    if args.cat:
        return _cat(args.cat)
    if args.recover:
        return _recover(args.recover)
    parser.error("one of -version, -cat or -recover is required")
    return 2


if __name__ == "__main__":
    sys.exit(main())