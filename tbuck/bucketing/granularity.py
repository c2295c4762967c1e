"""
bucketing/granularity.py

Granularity — fixed bucket width, parsed from '30s' / '1m' / '2h'.
bucket_key()  — maps a timestamp to the start of its bucket.
iter_bucket_keys() — lazy, restartable walk over consecutive bucket keys.

Keys are computed as floor(epoch_seconds / width) * width relative to the
Unix epoch. Floor division rounds toward negative infinity, so pre-1970
timestamps still satisfy  key <= t < key + width.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterator

from ..errors import InvalidGranularity
from ..models import Direction

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_UNIT_SECONDS: dict[str, int] = {
    "s": 1,
    "m": 60,
    "h": 3600,
}

# ASCII digits only; str.isdigit() would also accept e.g. Arabic-Indic digits.
_SPEC_RE = re.compile(r"([0-9]+)([a-zA-Z]*)")


def _as_utc(timestamp: datetime) -> datetime:
    """Naive datetimes are taken to already be UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def epoch_seconds(timestamp: datetime) -> int:
    """Whole seconds since the epoch, floored (sub-second parts dropped)."""
    elapsed = _as_utc(timestamp) - EPOCH
    # timedelta normalises to (days, 0 <= seconds < 86400, 0 <= us < 1e6),
    # so this is already the floor.
    return elapsed.days * 86_400 + elapsed.seconds


@dataclass(frozen=True)
class Granularity:
    """
    Width of every bucket, always stored in seconds.

    Args:
        seconds: Bucket width; must be > 0.
        label:   The text it was parsed from (display only).
    """

    seconds: int
    label: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if self.seconds <= 0:
            raise InvalidGranularity(
                self.label or str(self.seconds), "width must be greater than zero"
            )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, text: str) -> Granularity:
        """
        Parse '<positive-integer><unit>' where unit is s, m or h.

        Raises:
            InvalidGranularity: unit missing/unknown, number not positive,
                                or any surrounding garbage.
        """
        match = _SPEC_RE.fullmatch(text)
        if match is None:
            raise InvalidGranularity(
                text, "expected a positive integer followed by s, m or h (e.g. '30s')"
            )
        number, unit = match.groups()
        if not unit:
            raise InvalidGranularity(text, "missing unit; use s, m or h")
        if unit not in _UNIT_SECONDS:
            raise InvalidGranularity(text, f"unknown unit {unit!r}; use s, m or h")
        value = int(number)
        if value <= 0:
            raise InvalidGranularity(text, "width must be greater than zero")
        return cls(seconds=value * _UNIT_SECONDS[unit], label=text)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    @property
    def duration(self) -> timedelta:
        return timedelta(seconds=self.seconds)

    def bucket_key(self, timestamp: datetime) -> datetime:
        return bucket_key(timestamp, self)

    def successor(self, key: datetime) -> datetime:
        """Start of the bucket immediately after `key`."""
        return key + self.duration

    def predecessor(self, key: datetime) -> datetime:
        """Start of the bucket immediately before `key`."""
        return key - self.duration

    def step(self, key: datetime, direction: Direction) -> datetime:
        """Next key in `direction` order."""
        if direction is Direction.ASCENDING:
            return self.successor(key)
        return self.predecessor(key)

    def __str__(self) -> str:
        return self.label or f"{self.seconds}s"


def bucket_key(timestamp: datetime, granularity: Granularity) -> datetime:
    """
    Return the start instant of the bucket containing `timestamp`.

    Pure and total: equal inputs always give equal (and equally hashed)
    aware-UTC datetimes, so the result is safe to use as a dict key.
    """
    width = granularity.seconds
    start = (epoch_seconds(timestamp) // width) * width
    return EPOCH + timedelta(seconds=start)


def iter_bucket_keys(
    start: datetime,
    stop: datetime,
    granularity: Granularity,
    direction: Direction = Direction.ASCENDING,
) -> Iterator[datetime]:
    """
    Yield every bucket key from `start` to `stop` inclusive, in `direction`.

    Both bounds must already be bucket keys. Yields nothing when `start`
    lies beyond `stop` for the given direction.
    """
    key = start
    while key == stop or direction.is_ahead(stop, key):
        yield key
        if key == stop:
            # stop may sit one bucket from datetime.min/max; stepping past it overflows
            return
        key = granularity.step(key, direction)
