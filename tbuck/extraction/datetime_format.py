"""
extraction/datetime_format.py

Compiles a strftime-style pattern into a matcher that can both *find*
date/time substrings inside an arbitrary line and *convert* a found
substring into an aware UTC datetime.

Design principles:
  - The pattern is validated once, at startup. Unsupported specifiers and
    patterns that cannot yield a full date/time raise InvalidFormatPattern.
  - Per-line work never raises: a substring that matches the regex but is
    not a real date (Feb 31, hour 13 with 'pm', ...) converts to None.
  - Every specifier becomes its own named group, so repeated fields (e.g.
    '%Y ... %Y') are cross-checked instead of silently overwritten.

Supported specifiers are listed in SPECIFIER_HELP.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterator

from ..errors import InvalidFormatPattern

logger = logging.getLogger(__name__)

_UTC = timezone.utc
_EPOCH = datetime(1970, 1, 1, tzinfo=_UTC)

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_SHORT_MONTHS = tuple(m[:3] for m in _MONTHS)

_TWO_DIGITS = "[0-9]{2}"
_ONE_OR_TWO_DIGITS = "[0-9]{1,2}"

# Field kind -> regex fragment (zero-padded form)
_FRAGMENTS: dict[str, str] = {
    "year":        "[0-9]+",
    "month":       _TWO_DIGITS,
    "month_short": "|".join(_SHORT_MONTHS),
    "month_long":  "Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?"
                   "|July?|Aug(?:ust)?|Sep(?:tember)?|Oct(?:ober)?|Nov(?:ember)?"
                   "|Dec(?:ember)?",
    "day":         _TWO_DIGITS,
    "hour":        _TWO_DIGITS,
    "hour12":      _TWO_DIGITS,
    "minute":      _TWO_DIGITS,
    "second":      _TWO_DIGITS,
    "ampm":        "am|AM|pm|PM",
    "timestamp":   "[0-9]+",
}

_PADDABLE = frozenset({"month", "day", "hour", "hour12", "minute", "second"})

# Specifier letter -> field kind
_SPECIFIERS: dict[str, str] = {
    "Y": "year",
    "m": "month",
    "b": "month_short",
    "B": "month_long",
    "d": "day",
    "H": "hour",
    "I": "hour12",
    "M": "minute",
    "S": "second",
    "p": "ampm",
    "P": "ampm",
    "s": "timestamp",
}

# Composite specifiers expand before tokenising
_COMPOSITES: dict[str, str] = {
    "F": "%Y-%m-%d",
    "T": "%H:%M:%S",
}

SPECIFIER_HELP = """\
Specifier   Example     Description
%Y          2001        The year (1--9999), any number of digits.
%m          07          Month number (01--12), zero-padded to 2 digits.
%b          Jul         Abbreviated month name. Always 3 letters.
%B          July        Full month name. Also accepts the abbreviation.
%d          08          Day number (01--31), zero-padded to 2 digits.
%F          2001-07-08  Year-month-day format (ISO 8601). Same as %Y-%m-%d.
%H          00          Hour number (00--23), zero-padded to 2 digits.
%I          12          Hour number in 12-hour clocks (01--12).
%M          34          Minute number (00--59), zero-padded to 2 digits.
%S          60          Second number (00--60), zero-padded to 2 digits.
%T          00:34:60    Hour-minute-second format. Same as %H:%M:%S.
%P          am          am or pm in 12-hour clocks.
%p          AM          AM or PM in 12-hour clocks.
%s          994518299   UNIX timestamp, seconds since 1970-01-01 00:00 UTC.
%%          %           A literal percent sign.

Numeric specifiers accept a '-' or '_' flag (e.g. %-d) to allow an
unpadded or space-padded value."""


@dataclass(frozen=True, slots=True)
class _Field:
    group: str
    kind: str


class DateTimeFormat:
    """
    A compiled date/time pattern.

    Build with DateTimeFormat.compile(pattern); the constructor is internal.
    """

    def __init__(self, pattern: str, regex: re.Pattern[str], fields: tuple[_Field, ...]) -> None:
        self.pattern = pattern
        self.regex = regex
        self._fields = fields
        self._kinds = frozenset(f.kind for f in fields)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def compile(cls, pattern: str, require_complete: bool = True) -> DateTimeFormat:
        """
        Tokenise `pattern` and build the scanning regex.

        Args:
            pattern:          strftime-style pattern, see SPECIFIER_HELP.
            require_complete: Reject patterns that cannot yield a full
                              date/time (the default). When False, a
                              partial pattern such as '%H:%M' still
                              compiles: finditer() locates its matches,
                              but parse() and parse_match() return None
                              for them since no full date/time exists.

        Raises:
            InvalidFormatPattern: unsupported specifier, dangling '%', or
                                  not enough fields for a full date/time.
        """
        if not pattern:
            raise InvalidFormatPattern(pattern, "pattern is empty")

        parts: list[str] = []
        fields: list[_Field] = []
        for token, value, flag in _tokenise(pattern):
            if token == "literal":
                parts.append(re.escape(value))
                continue
            group = f"f{len(fields)}"
            fields.append(_Field(group=group, kind=value))
            parts.append(f"(?P<{group}>{_fragment(value, flag)})")

        fmt = cls(pattern, re.compile("".join(parts)), tuple(fields))
        missing = fmt.missing_fields()
        if missing and require_complete:
            raise InvalidFormatPattern(
                pattern,
                "not enough information to build a full date/time "
                f"(missing {', '.join(missing)}; or use %s)",
            )
        logger.debug("Compiled date/time format %r -> %s", pattern, fmt.regex.pattern)
        return fmt

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def missing_fields(self) -> list[str]:
        """Names of the components still needed for a full date/time."""
        kinds = self._kinds
        if "timestamp" in kinds:
            return []
        missing = []
        if "year" not in kinds:
            missing.append("year")
        if not kinds & {"month", "month_short", "month_long"}:
            missing.append("month")
        if "day" not in kinds:
            missing.append("day")
        if "hour" not in kinds and not {"hour12", "ampm"} <= kinds:
            missing.append("hour (%H, or %I with %p)")
        if "minute" not in kinds:
            missing.append("minute")
        return missing

    def has_enough_info(self) -> bool:
        return not self.missing_fields()

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def finditer(self, line: str) -> Iterator[re.Match[str]]:
        """Non-overlapping candidate matches, left to right."""
        return self.regex.finditer(line)

    def parse(self, text: str) -> datetime | None:
        """Convert `text` (which must match the whole pattern) to a datetime."""
        match = self.regex.fullmatch(text)
        if match is None:
            return None
        return self.parse_match(match)

    def parse_match(self, match: re.Match[str]) -> datetime | None:
        """
        Convert a regex match into an aware UTC datetime.

        Returns None when the matched text is not a real date/time or when
        repeated fields disagree.
        """
        try:
            values, ampm = _field_values(self._fields, match)
            return _build(values, ampm)
        except (KeyError, ValueError, OverflowError) as exc:
            logger.debug("Rejected date/time match %r: %s", match.group(0), exc)
            return None

    def __repr__(self) -> str:
        return f"DateTimeFormat({self.pattern!r})"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _tokenise(pattern: str) -> Iterator[tuple[str, str, str]]:
    """Yield ('literal', text, '') or ('field', kind, flag) tokens."""
    expanded = pattern
    for letter, replacement in _COMPOSITES.items():
        expanded = re.sub(rf"(?<!%)((?:%%)*)%{letter}", rf"\g<1>{replacement}", expanded)

    i = 0
    literal: list[str] = []
    while i < len(expanded):
        ch = expanded[i]
        if ch != "%":
            literal.append(ch)
            i += 1
            continue
        i += 1
        flag = ""
        if i < len(expanded) and expanded[i] in "-_0":
            flag = expanded[i]
            i += 1
        if i >= len(expanded):
            raise InvalidFormatPattern(pattern, "pattern ends with a lone '%'")
        spec = expanded[i]
        i += 1
        if spec == "%" and not flag:
            literal.append("%")
            continue
        kind = _SPECIFIERS.get(spec)
        if kind is None:
            raise InvalidFormatPattern(pattern, f"unsupported specifier '%{flag}{spec}'")
        if flag and kind not in _PADDABLE:
            raise InvalidFormatPattern(pattern, f"flag {flag!r} not allowed on '%{spec}'")
        if literal:
            yield "literal", "".join(literal), ""
            literal = []
        yield "field", kind, flag
    if literal:
        yield "literal", "".join(literal), ""


def _fragment(kind: str, flag: str) -> str:
    if flag == "-":
        return _ONE_OR_TWO_DIGITS
    if flag == "_":
        return f" ?{_ONE_OR_TWO_DIGITS}"
    return f"(?:{_FRAGMENTS[kind]})"


def _field_values(
    fields: tuple[_Field, ...], match: re.Match[str]
) -> tuple[dict[str, int], str | None]:
    """Collect every matched field, raising ValueError when repeats disagree."""
    values: dict[str, int] = {}
    ampm: str | None = None
    for f in fields:
        raw = match.group(f.group)
        if f.kind == "ampm":
            new = raw.lower()
            if ampm is not None and ampm != new:
                raise ValueError(f"conflicting am/pm markers {ampm!r} and {new!r}")
            ampm = new
            continue
        kind, number = _numeric_value(f.kind, raw)
        if values.setdefault(kind, number) != number:
            raise ValueError(f"conflicting {kind} values {values[kind]} and {number}")
    return values, ampm


def _numeric_value(kind: str, raw: str) -> tuple[str, int]:
    """Map a matched field to (canonical component, integer value)."""
    if kind == "month_short":
        return "month", _SHORT_MONTHS.index(raw) + 1
    if kind == "month_long":
        return "month", _SHORT_MONTHS.index(raw[:3]) + 1
    value = int(raw.strip())
    if kind == "second" and value == 60:
        # Leap second; whole-second resolution folds it into :59
        value = 59
    return kind, value


def _build(values: dict[str, int], ampm: str | None) -> datetime:
    hour = values.get("hour")
    if "hour12" in values:
        h12 = values["hour12"]
        if not 1 <= h12 <= 12:
            raise ValueError(f"12-hour clock value out of range: {h12}")
        if ampm is None:
            raise ValueError("%I used without an am/pm marker")
        from12 = h12 % 12 + (12 if ampm == "pm" else 0)
        if hour is not None and hour != from12:
            raise ValueError(f"hour {hour} conflicts with {h12}{ampm}")
        hour = from12
    elif hour is not None and ampm is not None and (hour >= 12) != (ampm == "pm"):
        raise ValueError(f"hour {hour} conflicts with {ampm}")

    if "timestamp" in values:
        result = _EPOCH + timedelta(seconds=values["timestamp"])
        expected = {
            "year": result.year,
            "month": result.month,
            "day": result.day,
            "hour": result.hour,
            "minute": result.minute,
            "second": result.second,
        }
        if hour is not None and hour != result.hour:
            raise ValueError("time fields conflict with %s")
        for name, component in values.items():
            if name in expected and name != "hour" and component != expected[name]:
                raise ValueError(f"{name} conflicts with %s")
        return result

    return datetime(
        values["year"],
        values["month"],
        values["day"],
        hour if hour is not None else 0,
        values["minute"],
        values.get("second", 0),
        tzinfo=_UTC,
    )
