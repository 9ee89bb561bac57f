# carbonch

Building blocks for handling Graphite metrics stored in ClickHouse's
RowBinary format. The package also has a small command for looking inside
RowBinary data files.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## The `carbonch` command

```
carbonch -version               # print the version
carbonch -cat FILE              # print a RowBinary file as tab separated text
carbonch -recover FILE          # copy every good record of a damaged file to stdout
```

Each option also has a double-dash spelling, such as `--cat FILE`.

`-cat` prints one line per record. The fields are metric name, value,
timestamp, date (`YYYY-MM-DD`) and version, separated by tabs. If a broken
record is found, the command prints the error to stderr and exits with
status 1.

`-recover` writes the raw RowBinary bytes of every record that comes before
the first broken one, and then stops. This makes it useful for salvaging
files that were cut short.

Both options decompress files whose names end in `.lz4` (LZ4 frame format)
while reading. A record counts as broken when it is truncated or when its
stored date does not match its timestamp.

## What the package does not do

There is no metrics daemon here. The package has no network receivers
(plain TCP/UDP, pickle, gRPC, Prometheus, Telegraf), no uploader that sends
data to ClickHouse, and no reader for configuration files. The command
accepts `-config FILE`, but it does not read that file. When none of
`-version`, `-cat` or `-recover` is given, the command reports a usage error.

## Library overview

| Module | What it provides |
| --- | --- |
| `carbonch.escape` | URL path and query escaping (`path`, `query`, `escape`, `should_escape`, `Encoding`) and unescaping (`unescape`, `unescape_name`) |
| `carbonch.tags` | `TagConfig`, `TemplateDesc`, `disabled_tag_config` and `graphite` for normalising tagged Graphite names |
| `carbonch.write_buffer` | `WriteBuffer`, a bounded RowBinary record encoder, and `encode_uvarint` |
| `carbonch.rowbinary_writer` | `RowBinaryWriter`, which fills buffers and hands them to a queue or callable, plus `write_uint16`, `write_uint32` and `write_bytes` for streams |
| `carbonch.rowbinary_reader` | `RecordReader`, `Record`, `open_reader` and `reverse_bytes` for reading point files |
| `carbonch.stream_reader` | `StreamReader`, a field-by-field RowBinary decoder, with `Point` and `date_from_days` |
| `carbonch.dates` | conversion of Unix timestamps to ClickHouse `Date` day numbers |
| `carbonch.pb` | minimal protobuf wire-format helpers (`read_uint64`, `read_bytes`, `skip`, ...) |
| `carbonch.settings` | `parse_duration`, `format_duration`, `parse_size`, `CompAlgo`, `parse_compression` and `ChunkAutoInterval` |
| `carbonch.tlsconfig` | parsing of TLS client settings into an `ssl.SSLContext` (`parse_client_tls_config`) |
| `carbonch.stop` | `Stoppable`, a start/stop lifecycle for background worker threads |

### Tagged metric names

```python
from carbonch.tags import disabled_tag_config, graphite

graphite(disabled_tag_config(), "some.metric;c=1;b=2;a=3")
# 'some.metric?a=3&b=2&c=1'
```

Tags are sorted by key. When a key is repeated, the last value wins. A name
with no tags is returned unchanged. A malformed name raises `ValueError`.

To convert plain dotted paths into tagged names, use a `TagConfig` with
`enabled=True` and templates, then call `configure()` on it.

### Escaping

```python
from carbonch.escape import query, unescape

query("a = b")       # 'a+%3D+b'
unescape("a+%3D+b")  # 'a = b'
```

### Writing RowBinary

```python
from carbonch.write_buffer import WriteBuffer

wb = WriteBuffer()
wb.write_reverse_path(b"a1.b2.c3")
wb.getvalue()  # b'\x08c3.b2.a1'
```

A write that would go past the buffer's size raises `BufferError`.

### Reading RowBinary files

```python
from carbonch.rowbinary_reader import open_reader

with open_reader("default.1559465733030407809") as reader:
    for record in reader:
        print(record.name, record.value, record.days_string())
```

Iteration stops quietly at the end of the file. `read_record()` raises
`EOFError` at the end of the file and `ValueError` on a broken record.

### Dates

By default, day numbers follow local calendar dates, counted as if those
dates were UTC days. Call `carbonch.dates.set_utc_date()` to switch every
conversion to plain UTC days. Call `set_default_date()` to switch back.