"""
bucketing/batch.py

BatchAggregator — counts every entry, then emits all buckets at the end.

Design:
  - Counts live in a dict keyed by bucket start; insertion order is ignored
  - Output order is computed once, in finish(): ascending by key, reversed
    for Direction.DESCENDING
  - With fill_gaps, every key between the smallest and largest populated
    bucket is emitted, absent ones with count 0
  - Nothing is emitted before end of input
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..models import AggregationPolicy, BucketCount, Direction
from .base import BaseAggregator
from .granularity import bucket_key, iter_bucket_keys

logger = logging.getLogger(__name__)


class BatchAggregator(BaseAggregator):
    """
    Collects all entries, then produces an ordered, optionally gap-filled
    sequence of BucketCount rows.
    """

    def __init__(self, policy: AggregationPolicy) -> None:
        super().__init__(policy)
        self._counts: dict[datetime, int] = {}

    def add(self, timestamp: datetime | None) -> list[BucketCount]:
        if timestamp is None:
            return []
        key = bucket_key(timestamp, self.granularity)
        self._counts[key] = self._counts.get(key, 0) + 1
        return []

    def finish(self) -> list[BucketCount]:
        """
        Drain the counts into an ordered list and release the mapping.

        Returns an empty list when no entry was ever added.
        """
        counts, self._counts = self._counts, {}
        if not counts:
            logger.debug("Batch finished with no populated buckets")
            return []

        direction = self.policy.direction
        if self.policy.fill_gaps:
            lo, hi = min(counts), max(counts)
            start, stop = (lo, hi) if direction is Direction.ASCENDING else (hi, lo)
            rows = [
                BucketCount(key, counts.get(key, 0))
                for key in iter_bucket_keys(start, stop, self.granularity, direction)
            ]
        else:
            rows = [
                BucketCount(key, counts[key])
                for key in sorted(counts, reverse=direction is Direction.DESCENDING)
            ]

        logger.debug(
            "Batch finished — populated=%d emitted=%d",
            len(counts),
            len(rows),
        )
        return rows
