"""Graphite metrics toolkit for ClickHouse RowBinary storage."""

__version__ = "0.11.8"