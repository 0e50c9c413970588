from __future__ import annotations

import time
from dataclasses import dataclass

from .constants import DEFAULT_BUF_SIZE, DEFAULT_DELIM, DEFAULT_RECORD_SIZE
from .source import ChunkSource, Impairment, ImpairedSource
from .scanner import Sweeper


@dataclass(frozen=True, slots=True)
class BenchmarkResult:
    bytes_scanned: int
    records: int
    pulls: int
    duration_s: float
    throughput_mbps: float


def make_payload(size_bytes: int, record_size: int, delim: bytes) -> bytes:
    if record_size <= len(delim):
        raise ValueError(f"record size {record_size} leaves no room for a {len(delim)} byte delimiter")
    record = b"A" * (record_size - len(delim)) + delim
    count = max(1, size_bytes // record_size)
    return record * count


def run_benchmark(
    *,
    size_bytes: int,
    record_size: int = DEFAULT_RECORD_SIZE,
    delim: bytes = DEFAULT_DELIM,
    buf_size: int = DEFAULT_BUF_SIZE,
    max_chunk: int = 0,
    stall_rate: float = 0.0,
) -> BenchmarkResult:
    payload = make_payload(size_bytes, record_size, delim)
    chunks = ChunkSource([payload])
    sweeper = Sweeper(ImpairedSource(chunks, Impairment(max_chunk=max_chunk, stall_rate=stall_rate)), buf_size)

    records = 0
    total = 0
    start = time.perf_counter()
    for record in sweeper.records(delim):
        records += 1
        total += len(record)
    duration_s = max(0.001, time.perf_counter() - start)

    assert total == len(payload)

    return BenchmarkResult(
        bytes_scanned=total,
        records=records,
        pulls=chunks.pulls,
        duration_s=duration_s,
        throughput_mbps=(total * 8 / 1_000_000) / duration_s,
    )
