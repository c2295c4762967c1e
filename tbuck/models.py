"""
models.py

Shared types for every stage of the pipeline.

Direction        — arrival order (stream mode) or output order (batch mode)
Mode             — batch vs. stream aggregation
ViolationPolicy  — what stream mode does with an out-of-order entry
BucketCount      — (bucket start, count) pair emitted by both aggregators
AggregationPolicy — read-only configuration for one aggregation run
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from .bucketing.granularity import Granularity


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Direction(str, Enum):
    ASCENDING  = "ascending"
    DESCENDING = "descending"

    def is_ahead(self, candidate: datetime, current: datetime) -> bool:
        """True if `candidate` comes strictly after `current` in this order."""
        if self is Direction.ASCENDING:
            return candidate > current
        return candidate < current

    @property
    def opposite(self) -> Direction:
        if self is Direction.ASCENDING:
            return Direction.DESCENDING
        return Direction.ASCENDING


class Mode(str, Enum):
    BATCH  = "batch"
    STREAM = "stream"


class ViolationPolicy(str, Enum):
    FAIL    = "fail"
    DISCARD = "discard"


# ---------------------------------------------------------------------------
# BucketCount
# ---------------------------------------------------------------------------

class BucketCount(NamedTuple):
    """
    A bucket start instant and the number of entries that fell inside it.

    Compares equal to a plain (datetime, int) tuple, which keeps tests terse.
    """

    key: datetime
    count: int

    def __repr__(self) -> str:
        return f"BucketCount({self.key.isoformat()} count={self.count})"


# ---------------------------------------------------------------------------
# AggregationPolicy
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AggregationPolicy:
    """Configuration for one aggregation. Never mutated once built."""

    granularity: Granularity
    fill_gaps: bool = True
    direction: Direction = Direction.ASCENDING
    mode: Mode = Mode.BATCH
    order_violation_policy: ViolationPolicy = ViolationPolicy.FAIL

    @property
    def tolerant(self) -> bool:
        return self.order_violation_policy is ViolationPolicy.DISCARD
