from __future__ import annotations

DEFAULT_BUF_SIZE = 256
MIN_READ_BUFFER_SIZE = 1
MAX_CONSECUTIVE_EMPTY_READS = 100  # zero-byte, fault-free pulls before giving up

DEFAULT_DELIM = b"\n"

DEFAULT_RECORD_SIZE = 80
DEFAULT_BENCH_SIZE = 1_000_000
