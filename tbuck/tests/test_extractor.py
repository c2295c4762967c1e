"""
tests/test_extractor.py

Tests for extraction/extractor.py — match selection by index and the
one-shot extract() helper.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tbuck.errors import InvalidFormatPattern
from tbuck.extraction import DateTimeFormat, TimestampExtractor, extract
from tbuck.metrics import METRICS

UTC = timezone.utc

FMT = "%F %T"
TWO_DATES = "sent 2019-03-14 12:01:00 received 2019-03-14 12:05:30"


@pytest.fixture(autouse=True)
def _reset_metrics():
    METRICS.reset_all()
    yield


def extractor(match_index: int = 0) -> TimestampExtractor:
    return TimestampExtractor(DateTimeFormat.compile(FMT), match_index)


class TestTimestampExtractor:

    def test_first_match_by_default(self):
        assert extractor().extract(TWO_DATES) == datetime(2019, 3, 14, 12, 1, 0, tzinfo=UTC)

    def test_second_match(self):
        assert extractor(1).extract(TWO_DATES) == datetime(2019, 3, 14, 12, 5, 30, tzinfo=UTC)

    def test_index_beyond_matches_is_absent(self):
        assert extractor(2).extract(TWO_DATES) is None

    def test_line_without_date_is_absent(self):
        assert extractor().extract("GET /index.html 200") is None

    def test_empty_line_is_absent(self):
        assert extractor().extract("") is None

    def test_unparsable_match_is_absent_and_counted(self):
        assert extractor().extract("at 2019-02-31 12:00:00 boom") is None
        assert METRICS.matches_unparsable.value == 1

    def test_unparsable_match_does_not_fall_through_to_next(self):
        line = "2019-02-31 12:00:00 then 2019-03-01 12:00:00"
        assert extractor(0).extract(line) is None
        assert extractor(1).extract(line) == datetime(2019, 3, 1, 12, 0, 0, tzinfo=UTC)

    def test_no_match_is_not_counted_as_unparsable(self):
        extractor().extract("plain text")
        assert METRICS.matches_unparsable.value == 0

    def test_callable(self):
        ex = extractor()
        assert ex(TWO_DATES) == ex.extract(TWO_DATES)

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            extractor(-1)

    def test_repr_mentions_pattern(self):
        assert FMT in repr(extractor())

    @pytest.mark.parametrize("pattern, line", [
        ("%s", "id=" + "9" * 5000),
        ("%Y-%m-%d %H:%M", "9" * 5000 + "-03-14 12:00"),
    ])
    def test_overlong_digit_run_is_absent(self, pattern, line):
        ex = TimestampExtractor(DateTimeFormat.compile(pattern))
        assert ex.extract(line) is None
        assert METRICS.matches_unparsable.value == 1


class TestExtractFunction:

    def test_one_shot(self):
        assert extract(TWO_DATES, FMT, 1) == datetime(2019, 3, 14, 12, 5, 30, tzinfo=UTC)

    def test_one_shot_defaults_to_first(self):
        assert extract(TWO_DATES, FMT) == datetime(2019, 3, 14, 12, 1, 0, tzinfo=UTC)

    def test_invalid_pattern_raises(self):
        with pytest.raises(InvalidFormatPattern):
            extract("anything", "%Q")

    def test_incomplete_pattern_raises(self):
        with pytest.raises(InvalidFormatPattern):
            extract("12:01:00", "%T")
