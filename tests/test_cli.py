import pytest

from carbonch.cli import VERSION, main
from carbonch.write_buffer import WriteBuffer

TS = 1668124800


def make_file(tmp_path, points, garbage=b""):
    wb = WriteBuffer()
    for name, value, ts, version in points:
        wb.write_graphite_point(name, value, ts, version)
    path = tmp_path / "default.1"
    path.write_bytes(wb.getvalue() + garbage)
    return str(path), wb.getvalue()


def test_version(capsys):
    assert main(["-version"]) == 0
    assert capsys.readouterr().out == "0.11.8"
    assert VERSION == "0.11.8"


def test_cat_prints_records(tmp_path, capsys):
    filename, _ = make_file(tmp_path, [(b"a.b", 1.5, TS, 7), (b"c", 2.0, TS + 60, 8)])
    assert main(["-cat", filename]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    first = lines[0].split("\t")
    assert first[0] == "a.b"
    assert first[1] == "1.5"
    assert first[2] == str(TS)
    assert first[4] == "7"
    second = lines[1].split("\t")
    assert second[1] == "2"
    assert second[2] == str(TS + 60)


def test_cat_corrupted_file_fails_after_good_records(tmp_path, capsys):
    filename, _ = make_file(tmp_path, [(b"a.b", 1.0, TS, 1)], garbage=b"\x05ab")
    assert main(["-cat", filename]) == 1
    captured = capsys.readouterr()
    assert captured.out.count("\n") == 1
    assert "truncated" in captured.err


def test_cat_missing_file(tmp_path, capsys):
    assert main(["-cat", str(tmp_path / "missing")]) == 1
    assert capsys.readouterr().out == ""


def test_recover_writes_good_records(tmp_path, capsysbinary):
    filename, good = make_file(
        tmp_path, [(b"a.b", 1.0, TS, 1), (b"x.y.z", 3.0, TS + 1, 2)], garbage=b"\x10abc"
    )
    assert main(["-recover", filename]) == 0
    assert capsysbinary.readouterr().out == good


def test_recover_clean_file_is_identical(tmp_path, capsysbinary):
    filename, good = make_file(tmp_path, [(b"m", 0.5, TS, 3)])
    assert main(["--recover", filename]) == 0
    assert capsysbinary.readouterr().out == good


def test_no_action_is_usage_error():
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 2