"""Byte sources a Sweeper can pull from.

A source is anything with a ``pull(dest)`` method that writes zero or more
bytes into ``dest`` in a single attempt and reports what happened as a
:class:`Pull`. A positive count together with a fault is allowed: the bytes
are kept and the fault is observed afterwards.
"""
from __future__ import annotations

import logging
import random
import socket
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Protocol, Tuple, Union

from .errors import EndOfStream


@dataclass(frozen=True, slots=True)
class Pull:
    count: int
    fault: Exception | None = None


class ByteSource(Protocol):
    def pull(self, dest: memoryview) -> Pull:
        ...


class StreamSource:
    """Pull from a binary file object (files, pipes, ``sys.stdin.buffer``)."""

    def __init__(self, f: BinaryIO):
        self.f = f
        self._readinto = getattr(f, "readinto1", None) or f.readinto

    def pull(self, dest: memoryview) -> Pull:
        if not len(dest):
            return Pull(0)
        try:
            n = self._readinto(dest)
        except BlockingIOError:
            return Pull(0)
        except OSError as e:
            logging.debug("stream source fault: %r", e)
            return Pull(0, e)
        # non-blocking file with nothing ready
        if n is None:
            return Pull(0)
        if n == 0:
            return Pull(0, EndOfStream())
        return Pull(n)


class SocketSource:
    def __init__(self, sock: socket.socket):
        self.sock = sock

    def pull(self, dest: memoryview) -> Pull:
        if not len(dest):
            return Pull(0)
        try:
            n = self.sock.recv_into(dest)
        except BlockingIOError:
            return Pull(0)
        except OSError as e:
            logging.debug("socket source fault: %r", e)
            return Pull(0, e)
        if n == 0:
            return Pull(0, EndOfStream())
        return Pull(n)

    def close(self) -> None:
        self.sock.close()


Chunk = Union[bytes, Exception, Tuple[bytes, Exception]]


class ChunkSource:
    """Scripted source: replays chunks, faults and ``(chunk, fault)`` pairs.

    A chunk larger than the destination is handed out over several pulls;
    a paired fault is reported with the pull that hands out the last byte.
    An empty chunk is a pull that produces nothing and reports nothing.
    Once the script runs out every pull reports EndOfStream.
    """

    def __init__(self, chunks: Iterable[Chunk]):
        self._it = iter(chunks)
        self._pending = b""
        self._pending_fault: Exception | None = None
        self._started = False
        self.pulls = 0

    def pull(self, dest: memoryview) -> Pull:
        self.pulls += 1
        if not self._started:
            item = next(self._it, None)
            if item is None:
                return Pull(0, EndOfStream())
            if isinstance(item, Exception):
                return Pull(0, item)
            if isinstance(item, tuple):
                data, self._pending_fault = item
            else:
                data = item
            self._pending = bytes(data)
            self._started = True

        n = min(len(dest), len(self._pending))
        dest[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        if self._pending:
            return Pull(n)
        self._started = False
        fault, self._pending_fault = self._pending_fault, None
        return Pull(n, fault)


@dataclass(frozen=True, slots=True)
class Impairment:
    max_chunk: int = 0
    stall_rate: float = 0.0

    def should_stall(self) -> bool:
        return random.random() < self.stall_rate

    def limit(self, n: int) -> int:
        if self.max_chunk <= 0 or n <= 1:
            return n
        return random.randint(1, min(n, self.max_chunk))


class ImpairedSource:
    """Simulate short reads and empty pulls on top of another source."""

    def __init__(self, inner: ByteSource, impairment: Impairment | None = None):
        self.inner = inner
        self.impairment = impairment or Impairment()

    def pull(self, dest: memoryview) -> Pull:
        if len(dest) and self.impairment.should_stall():
            return Pull(0)
        return self.inner.pull(dest[: self.impairment.limit(len(dest))])
