from __future__ import annotations

import argparse
import json
import types

import pytest

from sweeper.bench import make_payload, run_benchmark
from sweeper.cli import main, parse_delim


def test_parse_delim():
    assert parse_delim("|") == b"|"
    assert parse_delim("\\r\\n") == b"\r\n"
    with pytest.raises(argparse.ArgumentTypeError):
        parse_delim("")


def test_split_json(tmp_path, capsys):
    p = tmp_path / "records.bin"
    p.write_bytes(b"a|bb|ccc")
    assert main(["split", "--file", str(p), "--delim", "|", "--json"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {"records": 3, "bytes": 8, "partial_tail": True}


def test_split_prints_records(tmp_path, capsys):
    p = tmp_path / "lines.txt"
    p.write_bytes(b"one\r\ntwo\r\n")
    assert main(["split", "--file", str(p), "--delim", "\\r\\n", "--size", "2"]) == 0
    assert capsys.readouterr().out.splitlines() == ["b'one\\r\\n'", "b'two\\r\\n'"]


def test_bench_json(capsys):
    assert main(["bench", "--size-bytes", "10000", "--max-chunk", "7", "--json"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["role"] == "bench"
    assert out["records"] == 125
    assert out["bytes_scanned"] == 10000


def test_run_benchmark_with_stalls():
    r = run_benchmark(size_bytes=8000, record_size=80, max_chunk=13, stall_rate=0.2)
    assert r.records == 100
    assert r.bytes_scanned == 8000
    assert r.pulls > 8000 // 13


def test_payload_needs_room_for_delim():
    with pytest.raises(ValueError):
        make_payload(100, 1, b"\n")


def test_bench_stalled_source_fails_cleanly(capsys):
    assert main(["bench", "--size-bytes", "1000", "--stall-rate", "1.0", "--json"]) == 1
    assert capsys.readouterr().out == ""


def test_split_source_fault(monkeypatch, capsys):
    class BrokenStdin:
        def readinto(self, b):
            raise OSError("stdin gone")

    monkeypatch.setattr("sys.stdin", types.SimpleNamespace(buffer=BrokenStdin()))
    assert main(["split", "--json"]) == 1
    assert capsys.readouterr().out == ""
