from __future__ import annotations

from sweeper.errors import EndOfStream
from sweeper.scanner import Sweeper
from sweeper.source import ChunkSource, Pull


def test_empty_dest_does_not_pull():
    src = ChunkSource([b"abc"])
    s = Sweeper(src)
    assert s.read_into(bytearray()) == (0, None)
    assert src.pulls == 0


def test_latched_fault_surfaces_without_pulling():
    boom = OSError("x")
    src = ChunkSource([(b"ab", boom), b"more"])
    s = Sweeper(src, size=8)
    assert s.read(2) == (b"ab", None)
    assert src.pulls == 1
    assert s.read(4) == (b"", boom)
    assert src.pulls == 1
    assert s.read(4) == (b"more", None)


def test_empty_dest_returns_latched_fault():
    boom = OSError("x")
    s = Sweeper(ChunkSource([(b"ab", boom)]), size=8)
    s.read(2)
    assert s.read_into(bytearray()) == (0, boom)
    assert s.read_into(bytearray()) == (0, None)


def test_large_read_goes_direct():
    src = ChunkSource([b"x" * 300])
    s = Sweeper(src, size=256)
    dest = bytearray(256)
    assert s.read_into(dest) == (256, None)
    assert dest == b"x" * 256
    assert s.buffered == 0
    assert src.pulls == 1
    data, err = s.read(1000)
    assert data == b"x" * 44
    assert err is None
    n, err = s.read_into(bytearray(1000))
    assert n == 0
    assert isinstance(err, EndOfStream)


def test_small_read_buffers_and_drains_first():
    src = ChunkSource([b"hello world"])
    s = Sweeper(src, size=16)
    assert s.read(4) == (b"hell", None)
    assert s.buffered == 7
    assert s.read(100) == (b"o world", None)
    assert src.pulls == 1


def test_single_pull_no_retry():
    src = ChunkSource([b"", b"data"])
    s = Sweeper(src, size=16)
    assert s.read(4) == (b"", None)
    assert src.pulls == 1
    assert s.read(4) == (b"data", None)


def test_read_after_slice():
    src = ChunkSource([b"head|body"])
    s = Sweeper(src)
    assert s.read_slice(b"|") == (b"head|", None)
    assert s.read(10) == (b"body", None)
    assert src.pulls == 1


def test_slice_after_read():
    s = Sweeper(ChunkSource([b"abc|def|"]), size=16)
    assert s.read(2) == (b"ab", None)
    assert s.read_slice(b"|") == (b"c|", None)
    assert s.read_slice(b"|") == (b"def|", None)
    line, err = s.read_slice(b"|")
    assert line == b""
    assert isinstance(err, EndOfStream)


def test_pull_interface():
    s = Sweeper(ChunkSource([b"abc"]), size=8)
    dest = memoryview(bytearray(2))
    assert s.pull(dest) == Pull(2)
    assert dest.tobytes() == b"ab"


def test_large_read_with_fault_reports_both():
    boom = OSError("x")
    src = ChunkSource([(b"x" * 300, boom), b"next"])
    s = Sweeper(src, size=256)
    dest = bytearray(300)
    assert s.read_into(dest) == (300, boom)
    assert dest == b"x" * 300
    assert s.buffered == 0
    assert s.read_into(bytearray(300)) == (4, None)
    assert src.pulls == 2
