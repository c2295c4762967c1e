"""
metrics.py

Per-run counters. The pipeline is single-threaded, so counters are plain
integers behind a small API; they are logged once the run finishes.

Usage:
    from tbuck.metrics import METRICS
    METRICS.lines_read.inc()
    print(METRICS.as_dict())
"""


class Counter:
    """A monotonically increasing integer counter."""

    __slots__ = ("_value",)

    def __init__(self) -> None:
        self._value = 0

    def inc(self, amount: int = 1) -> None:
        self._value += amount

    def reset(self) -> None:
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def __repr__(self) -> str:  # pragma: no cover
        return f"Counter({self._value})"


class Metrics:
    """Singleton holding all run counters."""

    def __init__(self) -> None:
        # --- Extraction ---
        self.lines_read: Counter = Counter()
        """Lines handed to the extractor."""

        self.lines_matched: Counter = Counter()
        """Lines that produced a timestamp."""

        self.lines_unmatched: Counter = Counter()
        """Lines with no match at the requested index."""

        self.matches_unparsable: Counter = Counter()
        """Matches found by the pattern that did not form a valid date/time."""

        # --- Aggregation ---
        self.entries_discarded: Counter = Counter()
        """Out-of-order entries dropped by tolerant stream mode."""

        self.buckets_emitted: Counter = Counter()
        """Rows written to the output."""

    def as_dict(self) -> dict[str, int]:
        return {
            name: counter.value
            for name, counter in vars(self).items()
            if isinstance(counter, Counter)
        }

    def reset_all(self) -> None:
        """Reset every counter to zero (useful in tests)."""
        for attr in vars(self).values():
            if isinstance(attr, Counter):
                attr.reset()


# Shared by every module for the lifetime of the process
METRICS = Metrics()
