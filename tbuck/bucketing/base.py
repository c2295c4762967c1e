"""
bucketing/base.py

Abstract base class shared by the batch and stream aggregators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, Iterator

from ..models import AggregationPolicy, BucketCount


class BaseAggregator(ABC):
    """
    Contract both aggregation modes satisfy.

    The driver calls add() once per line (with None for lines that had no
    timestamp) and finish() exactly once at end of input. Rows returned by
    add() are final and may be written immediately; rows returned by
    finish() complete the output.
    """

    def __init__(self, policy: AggregationPolicy) -> None:
        self.policy = policy
        self.granularity = policy.granularity

    @abstractmethod
    def add(self, timestamp: datetime | None) -> list[BucketCount]:
        """Consume one optional timestamp; return any buckets now closed."""
        ...

    @abstractmethod
    def finish(self) -> list[BucketCount]:
        """Signal end of input; return every bucket not yet emitted."""
        ...

    def aggregate(self, timestamps: Iterable[datetime | None]) -> Iterator[BucketCount]:
        """Lazily run the whole aggregation over `timestamps`."""
        for ts in timestamps:
            yield from self.add(ts)
        yield from self.finish()

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} granularity={self.granularity} "
            f"direction={self.policy.direction.value} fill={self.policy.fill_gaps}>"
        )
