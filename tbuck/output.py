"""
output.py

Renders BucketCount rows as 'YYYY-MM-DD HH:MM:SS UTC,<count>' lines.

The timestamp rendering is fixed-width for years 1000-9999, so ascending
output also sorts lexicographically.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, TextIO

from .metrics import METRICS
from .models import BucketCount

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def format_timestamp(key: datetime) -> str:
    if key.tzinfo is not None:
        key = key.astimezone(timezone.utc)
    # strftime('%Y') does not zero-pad on every platform
    return f"{key.year:04d}-{key:%m-%d %H:%M:%S} UTC"


def format_bucket(bucket: BucketCount) -> str:
    return f"{format_timestamp(bucket.key)},{bucket.count}"


class BucketWriter:
    """
    Writes rows to a text stream.

    Args:
        stream:     Destination (usually sys.stdout).
        flush_each: Flush after every row; used in stream mode so rows show
                    up as soon as a bucket closes.
    """

    def __init__(self, stream: TextIO, flush_each: bool = False) -> None:
        self._stream = stream
        self._flush_each = flush_each
        self.rows_written = 0

    def write(self, bucket: BucketCount) -> None:
        self._stream.write(format_bucket(bucket) + "\n")
        self.rows_written += 1
        METRICS.buckets_emitted.inc()
        if self._flush_each:
            self._stream.flush()

    def write_all(self, buckets: Iterable[BucketCount]) -> int:
        n = 0
        for bucket in buckets:
            self.write(bucket)
            n += 1
        return n

    def flush(self) -> None:
        self._stream.flush()
