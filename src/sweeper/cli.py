from __future__ import annotations

import argparse
import contextlib
import dataclasses
import json
import logging
import sys

from .bench import run_benchmark
from .constants import DEFAULT_BENCH_SIZE, DEFAULT_BUF_SIZE, DEFAULT_RECORD_SIZE
from .errors import SweeperError
from .scanner import Sweeper
from .source import StreamSource


def parse_delim(text: str) -> bytes:
    """Turn a command line delimiter such as ``\\r\\n`` or ``|`` into bytes."""
    delim = text.encode("utf-8").decode("unicode_escape").encode("latin-1")
    if not delim:
        raise argparse.ArgumentTypeError("delimiter must not be empty")
    return delim


def cmd_split(args: argparse.Namespace) -> int:
    opened = open(args.file, "rb") if args.file else contextlib.nullcontext(sys.stdin.buffer)
    records = 0
    total = 0
    partial_tail = False
    with opened as f:
        sweeper = Sweeper(StreamSource(f), args.size)
        try:
            for record in sweeper.records(args.delim):
                records += 1
                total += len(record)
                partial_tail = not record.endswith(args.delim)
                if not args.json:
                    print(repr(record))
        except (OSError, SweeperError) as e:
            logging.error("split failed after %d records: %s", records, e)
            return 1

    logging.info("split done; records=%d bytes=%d", records, total)
    if args.json:
        payload = {"records": records, "bytes": total, "partial_tail": partial_tail}
        print(json.dumps(payload, indent=2))
    return 0


def cmd_bench(args: argparse.Namespace) -> int:
    try:
        r = run_benchmark(
            size_bytes=args.size_bytes,
            record_size=args.record_size,
            delim=args.delim,
            buf_size=args.size,
            max_chunk=args.max_chunk,
            stall_rate=args.stall_rate,
        )
    except (OSError, SweeperError) as e:
        logging.error("bench failed: %s", e)
        return 1
    payload = {"role": "bench", **dataclasses.asdict(r)}
    print(json.dumps(payload, indent=2) if args.json else payload)
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="sweeper", description="Split byte streams on a delimiter.")
    p.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x: argparse.ArgumentParser) -> None:
        x.add_argument("--delim", type=parse_delim, default=b"\n", help="delimiter, backslash escapes allowed")
        x.add_argument("--size", type=int, default=DEFAULT_BUF_SIZE, help="initial buffer size in bytes")
        x.add_argument("--json", action="store_true")

    split = sub.add_parser("split", help="split a file (or stdin) into records")
    add_common(split)
    split.add_argument("--file", default=None)
    split.set_defaults(func=cmd_split)

    bench = sub.add_parser("bench", help="scan an in-memory payload through simulated short reads")
    add_common(bench)
    bench.add_argument("--size-bytes", type=int, default=DEFAULT_BENCH_SIZE)
    bench.add_argument("--record-size", type=int, default=DEFAULT_RECORD_SIZE)
    bench.add_argument("--max-chunk", type=int, default=0, help="cap on bytes per pull, 0 for none")
    bench.add_argument("--stall-rate", type=float, default=0.0, help="chance a pull returns nothing")
    bench.set_defaults(func=cmd_bench)

    args = p.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
