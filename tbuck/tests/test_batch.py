"""
tests/test_batch.py

Tests for bucketing/batch.py — counting, ordering and gap filling in
batch mode.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tbuck.bucketing import BatchAggregator, Granularity
from tbuck.models import AggregationPolicy, BucketCount, Direction

UTC = timezone.utc


def dt(h, m, s) -> datetime:
    return datetime(2019, 3, 14, h, m, s, tzinfo=UTC)


def batch(granularity="1m", fill=True, direction=Direction.ASCENDING) -> BatchAggregator:
    return BatchAggregator(AggregationPolicy(
        granularity=Granularity.parse(granularity),
        fill_gaps=fill,
        direction=direction,
    ))


def run(agg: BatchAggregator, timestamps) -> list[BucketCount]:
    return list(agg.aggregate(timestamps))


SIX_LINES = [dt(12, 1, s) for s in (0, 10, 20, 30, 40, 50)]


# ---------------------------------------------------------------------------
# Basic counting
# ---------------------------------------------------------------------------

class TestBatchCounting:

    def test_six_lines_one_minute_bucket(self):
        assert run(batch("1m"), SIX_LINES) == [(dt(12, 1, 0), 6)]

    def test_rows_are_bucket_counts(self):
        rows = run(batch("1m"), SIX_LINES)
        assert isinstance(rows[0], BucketCount)
        assert rows[0].key == dt(12, 1, 0)
        assert rows[0].count == 6

    def test_absent_timestamps_skipped(self):
        rows = run(batch("1m"), [None, dt(12, 1, 0), None, dt(12, 1, 5), None])
        assert rows == [(dt(12, 1, 0), 2)]

    def test_only_absent_gives_empty_output(self):
        assert run(batch(), [None, None]) == []

    def test_empty_input_gives_empty_output(self):
        assert run(batch(), []) == []

    def test_add_never_emits(self):
        agg = batch()
        assert agg.add(dt(12, 1, 0)) == []
        assert agg.add(dt(12, 9, 0)) == []

    def test_unsorted_input_is_ordered_on_output(self):
        rows = run(batch("1m", fill=False), [dt(12, 3, 0), dt(12, 1, 0), dt(12, 3, 5)])
        assert rows == [(dt(12, 1, 0), 1), (dt(12, 3, 0), 2)]

    def test_count_conservation(self):
        stamps = [dt(12, m, s) for m in range(0, 10, 3) for s in (1, 2, 59)] + [None] * 4
        rows = run(batch("1m"), stamps)
        assert sum(r.count for r in rows) == len([t for t in stamps if t is not None])

    def test_finish_drains_mapping(self):
        agg = batch()
        agg.add(dt(12, 1, 0))
        assert agg.finish() == [(dt(12, 1, 0), 1)]
        assert agg.finish() == []


# ---------------------------------------------------------------------------
# Gap filling
# ---------------------------------------------------------------------------

class TestBatchGapFill:

    # 30s buckets: 12:01:00 has three entries, 12:01:30 none, 12:02:00 one
    STAMPS = [dt(12, 1, 0), dt(12, 1, 10), dt(12, 1, 20), dt(12, 2, 0)]

    def test_fill_emits_zero_bucket(self):
        rows = run(batch("30s", fill=True), self.STAMPS)
        assert rows == [
            (dt(12, 1, 0), 3),
            (dt(12, 1, 30), 0),
            (dt(12, 2, 0), 1),
        ]

    def test_no_fill_omits_zero_bucket(self):
        rows = run(batch("30s", fill=False), self.STAMPS)
        assert rows == [(dt(12, 1, 0), 3), (dt(12, 2, 0), 1)]

    def test_fill_covers_every_key_between_min_and_max(self):
        g = Granularity.parse("1m")
        rows = run(batch("1m"), [dt(12, 0, 5), dt(12, 9, 59)])
        keys = [r.key for r in rows]
        assert len(keys) == 10
        assert len(set(keys)) == 10
        for a, b in zip(keys, keys[1:]):
            assert b - a == g.duration
        assert [r.count for r in rows] == [1] + [0] * 8 + [1]

    def test_single_bucket_needs_no_fill(self):
        assert run(batch("1m"), [dt(12, 0, 5)]) == [(dt(12, 0, 0), 1)]


# ---------------------------------------------------------------------------
# Direction
# ---------------------------------------------------------------------------

class TestBatchDirection:

    STAMPS = [dt(12, 0, 0), dt(12, 0, 1), dt(12, 2, 0)]

    @pytest.mark.parametrize("fill", [True, False])
    def test_descending_is_reverse_of_ascending(self, fill):
        asc = run(batch("1m", fill=fill), self.STAMPS)
        desc = run(batch("1m", fill=fill, direction=Direction.DESCENDING), self.STAMPS)
        assert desc == list(reversed(asc))

    def test_descending_fill(self):
        rows = run(batch("1m", direction=Direction.DESCENDING), self.STAMPS)
        assert rows == [
            (dt(12, 2, 0), 1),
            (dt(12, 1, 0), 0),
            (dt(12, 0, 0), 2),
        ]


# ---------------------------------------------------------------------------
# Edges of the datetime range
# ---------------------------------------------------------------------------

class TestBatchDateRangeEdges:

    def test_last_minute_of_year_9999(self):
        ts = datetime(9999, 12, 31, 23, 59, 30, tzinfo=UTC)
        rows = run(batch("1m"), [ts])
        assert rows == [(datetime(9999, 12, 31, 23, 59, 0, tzinfo=UTC), 1)]

    def test_fill_up_to_last_minute_of_year_9999(self):
        stamps = [
            datetime(9999, 12, 31, 23, 57, 5, tzinfo=UTC),
            datetime(9999, 12, 31, 23, 59, 30, tzinfo=UTC),
        ]
        rows = run(batch("1m"), stamps)
        assert [r.count for r in rows] == [1, 0, 1]

    def test_descending_first_minute_of_year_1(self):
        ts = datetime(1, 1, 1, 0, 0, 30, tzinfo=UTC)
        rows = run(batch("1m", direction=Direction.DESCENDING), [ts])
        assert rows == [(datetime(1, 1, 1, 0, 0, 0, tzinfo=UTC), 1)]
