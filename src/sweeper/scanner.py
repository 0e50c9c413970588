"""Buffered delimiter scanning over a pull-based byte source.

A Sweeper is single-threaded and single-owner: nothing here is synchronized,
so callers sharing one across threads must serialize access themselves.
"""
from __future__ import annotations

import logging
from typing import Iterator, Tuple

from .constants import DEFAULT_BUF_SIZE, MAX_CONSECUTIVE_EMPTY_READS, MIN_READ_BUFFER_SIZE
from .errors import EndOfStream, InvariantError, NegativeReadError, NoProgressError
from .source import ByteSource, Pull


class Sweeper:
    """Buffer a ByteSource and read it delimiter by delimiter.

    ``buf[r:w]`` always holds bytes pulled from the source and not yet handed
    out. A fault reported by the source is latched and returned once, by the
    next call that has to surface it.
    """

    def __init__(self, source: ByteSource, size: int = DEFAULT_BUF_SIZE):
        if size < MIN_READ_BUFFER_SIZE:
            size = MIN_READ_BUFFER_SIZE
        self._size = size
        self._reset(bytearray(size), source)

    @classmethod
    def wrap(cls, source: ByteSource, size: int = DEFAULT_BUF_SIZE) -> "Sweeper":
        """Return ``source`` itself if it is already a Sweeper of at least ``size``."""
        if isinstance(source, Sweeper) and source.size >= size:
            return source
        return cls(source, size)

    @property
    def size(self) -> int:
        return len(self._buf)

    @property
    def buffered(self) -> int:
        return self._w - self._r

    @property
    def drained(self) -> bool:
        """True once the source reported end of stream and nothing is left unread."""
        return self._eof and self._r == self._w

    def reset(self, source: ByteSource) -> None:
        """Drop buffered data and any pending fault, keep the buffer, read from ``source``."""
        self._reset(self._buf, source)

    def _reset(self, buf: bytearray, source: ByteSource) -> None:
        self._buf = buf
        self._src = source
        self._r = 0
        self._w = 0
        self._scan = 0
        self._err: Exception | None = None
        self._eof = False

    def _read_err(self) -> Exception | None:
        err, self._err = self._err, None
        return err

    def _observe(self, p: Pull) -> None:
        if p.fault is not None:
            self._latch(p.fault)
        elif p.count > 0:
            # data after an earlier end of stream, e.g. a tty after Ctrl-D
            self._eof = False

    def _latch(self, fault: Exception) -> None:
        logging.debug("fault latched; r=%d w=%d fault=%r", self._r, self._w, fault)
        if isinstance(fault, EndOfStream):
            self._eof = True
        self._err = fault

    @staticmethod
    def _check_count(n: int, limit: int) -> None:
        if n < 0:
            raise NegativeReadError(n)
        if n > limit:
            raise InvariantError(f"sweeper: source reported {n} bytes into a {limit} byte buffer")

    def _compact(self) -> None:
        # Start over in a fresh buffer of the configured size holding only
        # the unconsumed bytes; a buffer grown for one long record shrinks back.
        live = self._w - self._r
        buf = bytearray(max(self._size, live))
        buf[:live] = self._buf[self._r : self._w]
        logging.debug("compact; dropped=%d live=%d", self._r, live)
        self._scan = max(0, self._scan - self._r)
        self._buf = buf
        self._w = live
        self._r = 0

    def _grow(self) -> None:
        self._buf.extend(bytes(len(self._buf)))

    def _fill(self) -> None:
        if self._r > 0:
            self._compact()
        if self._w >= len(self._buf):
            self._grow()
        if self._w >= len(self._buf):
            raise InvariantError("sweeper: tried to fill full buffer")

        # The pending fault has to reach the caller before the source is asked again.
        if self._err is not None:
            return

        with memoryview(self._buf)[self._w :] as view:
            for _ in range(MAX_CONSECUTIVE_EMPTY_READS):
                p = self._src.pull(view)
                self._check_count(p.count, len(view))
                self._w += p.count
                self._observe(p)
                if p.fault is not None or p.count > 0:
                    return

        logging.debug("no progress after %d empty pulls", MAX_CONSECUTIVE_EMPTY_READS)
        self._latch(NoProgressError(MAX_CONSECUTIVE_EMPTY_READS))

    def read_slice(self, delim: bytes) -> Tuple[bytes, Exception | None]:
        """Read up to and including the first occurrence of ``delim``.

        Bytes after the delimiter stay buffered for the next call. If a fault
        (end of stream included) shows up before the delimiter, everything
        still buffered is returned together with that fault. The fault is
        None if and only if the returned bytes end with ``delim``.

        An empty delimiter matches at the current position without reading.
        """
        if not delim:
            return b"", None

        self._scan = self._r
        self._fill()

        while True:
            # Only look at bytes not searched yet, backing up far enough to
            # catch a delimiter straddling the previous window's end.
            start = max(self._r, self._scan - len(delim) + 1)
            i = self._buf.find(delim, start, self._w)
            if i >= 0:
                end = i + len(delim)
                line = bytes(self._buf[self._r : end])
                self._r = end
                self._scan = end
                return line, None

            self._scan = self._w
            if self._err is None:
                self._fill()
                continue

            # Everything in buf[r:w] was searched, so no delimiter can follow.
            if isinstance(self._err, EndOfStream):
                logging.debug("drained; returning %d trailing bytes", self._w - self._r)
            line = bytes(self._buf[self._r : self._w])
            self._r = self._w
            return line, self._read_err()

    def read_into(self, dest: bytearray | memoryview) -> Tuple[int, Exception | None]:
        """Read into ``dest``, taking at most one pull from the source.

        The count may be less than ``len(dest)``; loop to read an exact size.
        """
        n = len(dest)
        if n == 0:
            return 0, self._read_err()

        if self._r == self._w:
            if self._err is not None:
                return 0, self._read_err()

            if n >= len(self._buf):
                # Large read, empty buffer: pull straight into dest.
                with memoryview(dest) as view:
                    p = self._src.pull(view)
                self._check_count(p.count, n)
                logging.debug("direct pull; count=%d", p.count)
                self._observe(p)
                return p.count, self._read_err()

            # One pull only. _fill would retry empty pulls.
            self._r = 0
            self._w = 0
            self._scan = 0
            with memoryview(self._buf) as view:
                p = self._src.pull(view)
            self._check_count(p.count, len(self._buf))
            self._observe(p)
            if p.count == 0:
                return 0, self._read_err()
            self._w = p.count

        n = min(n, self._w - self._r)
        dest[:n] = self._buf[self._r : self._r + n]
        self._r += n
        return n, None

    def read(self, size: int) -> Tuple[bytes, Exception | None]:
        buf = bytearray(size)
        n, err = self.read_into(buf)
        return bytes(buf[:n]), err

    def pull(self, dest: memoryview) -> Pull:
        n, err = self.read_into(dest)
        return Pull(n, err)

    def records(self, delim: bytes) -> Iterator[bytes]:
        """Yield delimiter-terminated records until the source is done.

        A trailing record without delimiter is yielded before stopping at end
        of stream. Any other fault is raised once the bytes read before it
        have been yielded.
        """
        if not delim:
            raise ValueError("records() needs a non-empty delimiter")
        while True:
            line, err = self.read_slice(delim)
            if err is None:
                yield line
                continue
            if line:
                yield line
            if isinstance(err, EndOfStream):
                return
            raise err
