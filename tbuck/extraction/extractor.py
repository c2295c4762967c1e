"""
extraction/extractor.py

Line -> optional timestamp adapter.

This is the only surface the aggregation core depends on: given a line,
return the timestamp found at `match_index`, or None. "No match", "fewer
matches than match_index + 1" and "matched text is not a real date" are all
routine and return None; nothing here raises per line.
"""

from __future__ import annotations

import functools
import itertools
import logging
from datetime import datetime

from ..metrics import METRICS
from .datetime_format import DateTimeFormat

logger = logging.getLogger(__name__)


class TimestampExtractor:
    """
    Pulls the `match_index`-th date/time out of each line.

    Args:
        datetime_format: A compiled DateTimeFormat.
        match_index:     0-based index of the match to use when a line
                         contains several.
    """

    def __init__(self, datetime_format: DateTimeFormat, match_index: int = 0) -> None:
        if match_index < 0:
            raise ValueError(f"match_index must be >= 0 — got {match_index}")
        self.datetime_format = datetime_format
        self.match_index = match_index

    def extract(self, line: str) -> datetime | None:
        matches = self.datetime_format.finditer(line)
        match = next(itertools.islice(matches, self.match_index, None), None)
        if match is None:
            return None
        timestamp = self.datetime_format.parse_match(match)
        if timestamp is None:
            METRICS.matches_unparsable.inc()
            logger.debug("Failed to parse date/time match %r", match.group(0))
        return timestamp

    def __call__(self, line: str) -> datetime | None:
        return self.extract(line)

    def __repr__(self) -> str:
        return f"<TimestampExtractor {self.datetime_format.pattern!r} index={self.match_index}>"


@functools.lru_cache(maxsize=32)
def _compiled(format_pattern: str) -> DateTimeFormat:
    return DateTimeFormat.compile(format_pattern)


def extract(line: str, format_pattern: str, match_index: int = 0) -> datetime | None:
    """
    One-shot form of TimestampExtractor.extract().

    The pattern is compiled once and cached; InvalidFormatPattern propagates.
    """
    return TimestampExtractor(_compiled(format_pattern), match_index).extract(line)
