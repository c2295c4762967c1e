"""
errors.py

Exception hierarchy for tbuck.

Startup errors (bad granularity, bad format pattern) are raised before any
input is read. NonMonotonicInput is the only error that can occur mid-run,
and only in stream mode under the strict ordering policy.
"""

from __future__ import annotations

from datetime import datetime


class TbuckError(Exception):
    """Base class for every error tbuck reports to the user."""


class InvalidGranularity(TbuckError, ValueError):
    """Raised when granularity text such as '30s' cannot be parsed."""

    def __init__(self, text: str, reason: str = "") -> None:
        self.text = text
        self.reason = reason
        msg = f"invalid granularity {text!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class InvalidFormatPattern(TbuckError, ValueError):
    """Raised when a date/time format pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"invalid date/time format {pattern!r}: {reason}")


class NonMonotonicInput(TbuckError):
    """
    Raised in stream mode when an entry lands behind the open bucket.

    Attributes:
        timestamp:      The offending entry's timestamp.
        current_bucket: Start of the bucket that was open when it arrived.
        direction:      The declared arrival order ('ascending'/'descending').
    """

    def __init__(
        self,
        timestamp: datetime,
        current_bucket: datetime,
        direction: str = "ascending",
    ) -> None:
        self.timestamp = timestamp
        self.current_bucket = current_bucket
        self.direction = direction
        super().__init__(
            f"non-monotonic entry {timestamp.isoformat()} found while bucket "
            f"{current_bucket.isoformat()} was open (expected {direction} order)"
        )
