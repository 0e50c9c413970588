from __future__ import annotations


class SweeperError(Exception):
    """Base class for faults a Sweeper reports back to its caller."""


class EndOfStream(SweeperError):
    """The source has no more data."""

    def __init__(self, msg: str = "end of stream"):
        super().__init__(msg)


class NoProgressError(SweeperError):
    def __init__(self, attempts: int):
        super().__init__(f"source returned no data and no error {attempts} times in a row")
        self.attempts = attempts


class InvariantError(RuntimeError):
    """Raised, never returned: the engine or its source broke a contract."""


class NegativeReadError(InvariantError):
    def __init__(self, count: int):
        super().__init__(f"sweeper: source returned negative count from pull: {count}")
        self.count = count
