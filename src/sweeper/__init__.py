"""Sweeper: buffered delimiter scanning for pull-based byte sources.

A Sweeper pulls bytes from a source that may return short reads, empty reads
or faults, and hands them back one delimiter-terminated record at a time.
"""

from .errors import EndOfStream, InvariantError, NegativeReadError, NoProgressError, SweeperError
from .scanner import Sweeper
from .source import ByteSource, ChunkSource, ImpairedSource, Impairment, Pull, SocketSource, StreamSource

__all__ = [
    "ByteSource",
    "ChunkSource",
    "EndOfStream",
    "ImpairedSource",
    "Impairment",
    "InvariantError",
    "NegativeReadError",
    "NoProgressError",
    "Pull",
    "SocketSource",
    "StreamSource",
    "Sweeper",
    "SweeperError",
]
