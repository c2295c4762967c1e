"""
bucketing/stream.py

StreamAggregator — emits each bucket as soon as input order proves it closed.

Design:
  - Exactly one bucket is open at a time (or none, before the first entry)
  - An entry in the open bucket increments its count in place
  - An entry ahead of the open bucket (in the declared direction) seals it:
    the open row is returned, followed by zero-count rows for any buckets
    skipped over when fill_gaps is set, and the entry opens a fresh bucket
  - An entry behind the open bucket violates the ordering contract:
    ViolationPolicy.FAIL raises NonMonotonicInput,
    ViolationPolicy.DISCARD drops the entry
  - flush() emits the open bucket at end of input; it never fills past it
    because no upper bound is known

Closed buckets are never retained.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..errors import NonMonotonicInput
from ..metrics import METRICS
from ..models import AggregationPolicy, BucketCount
from .base import BaseAggregator
from .granularity import bucket_key, iter_bucket_keys

logger = logging.getLogger(__name__)


class StreamAggregator(BaseAggregator):
    """
    Online aggregation over monotonically ordered input.

    Args:
        policy: direction gives the expected arrival order,
                order_violation_policy what happens when it is broken.
    """

    def __init__(self, policy: AggregationPolicy) -> None:
        super().__init__(policy)
        self._open: BucketCount | None = None
        logger.debug(
            "StreamAggregator initialised — granularity=%s direction=%s policy=%s",
            self.granularity,
            policy.direction.value,
            policy.order_violation_policy.value,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def current(self) -> BucketCount | None:
        """The open bucket, or None before the first entry."""
        return self._open

    def add(self, timestamp: datetime | None) -> list[BucketCount]:
        """
        Feed one entry.

        Returns:
            The rows closed by this entry, in output order (usually empty).

        Raises:
            NonMonotonicInput: entry is behind the open bucket and the
                               policy is ViolationPolicy.FAIL.
        """
        if timestamp is None:
            return []

        key = bucket_key(timestamp, self.granularity)
        if self._open is None:
            self._open = BucketCount(key, 1)
            return []

        current = self._open
        if key == current.key:
            self._open = BucketCount(key, current.count + 1)
            return []

        direction = self.policy.direction
        if direction.is_ahead(key, current.key):
            emitted = [current]
            if self.policy.fill_gaps:
                emitted.extend(self._gap(current.key, key))
            self._open = BucketCount(key, 1)
            return emitted

        return self._violation(timestamp, current)

    def flush(self) -> BucketCount | None:
        """
        Force the open bucket closed and return it.

        Returns None if nothing was ever added (nothing to emit).
        """
        closed, self._open = self._open, None
        return closed

    def finish(self) -> list[BucketCount]:
        closed = self.flush()
        return [closed] if closed is not None else []

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _gap(self, closed_key: datetime, next_key: datetime) -> list[BucketCount]:
        """Zero rows for every key strictly between the two, in direction order."""
        direction = self.policy.direction
        start = self.granularity.step(closed_key, direction)
        stop = self.granularity.step(next_key, direction.opposite)
        return [
            BucketCount(k, 0)
            for k in iter_bucket_keys(start, stop, self.granularity, direction)
        ]

    def _violation(self, timestamp: datetime, current: BucketCount) -> list[BucketCount]:
        if not self.policy.tolerant:
            raise NonMonotonicInput(
                timestamp=timestamp,
                current_bucket=current.key,
                direction=self.policy.direction.value,
            )
        METRICS.entries_discarded.inc()
        logger.debug(
            "Discarding out-of-order entry %s (open bucket %s)",
            timestamp.isoformat(),
            current.key.isoformat(),
        )
        return []

