from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Sequence

from pydantic import ValidationError

from . import __version__
from .bucketing import Granularity
from .config import LOG_LEVELS, Settings, get_settings
from .errors import InvalidFormatPattern, InvalidGranularity, NonMonotonicInput
from .extraction import SPECIFIER_HELP, DateTimeFormat, TimestampExtractor
from .inputs import iter_lines
from .models import AggregationPolicy, Direction, Mode, ViolationPolicy
from .output import BucketWriter
from .pipeline import build_aggregator, run

logger = logging.getLogger("tbuck.main")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

_DESCRIPTION = (
    "Count lines of text per fixed-width time bucket, using a date/time "
    "embedded in each line."
)

_EPILOG = f"""\
DATE_TIME_FORMAT must carry a full date and time (year, month, day, hour
and minute; seconds default to 0), or a UNIX timestamp via %s.

{SPECIFIER_HELP}

Stream mode (--stream) expects entries in monotonically ascending order
(or --descending) and prints each bucket as soon as it is known to be
finished. An entry that breaks the order is an error unless --tolerant is
given, in which case it is silently discarded. In normal mode --descending
prints the buckets newest first.

Output rows look like '2019-03-14 16:59:00 UTC,42'.
"""


def _non_negative_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a valid index: {value!r}") from None
    if n < 0:
        raise argparse.ArgumentTypeError(f"index must be >= 0 — got {n}")
    return n


def _parse_args(argv: Sequence[str] | None, settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tbuck",
        description=_DESCRIPTION,
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-m", "--match-index", type=_non_negative_int, default=settings.MATCH_INDEX,
        metavar="MATCH_INDEX",
        help="0-based index of the match to use if a line has several (default: %(default)s)",
    )
    parser.add_argument(
        "-g", "--granularity", default=settings.GRANULARITY, metavar="GRANULARITY",
        help="bucket width in seconds ('5s'), minutes ('1m') or hours ('2h') "
             "(default: %(default)s)",
    )
    parser.add_argument(
        "-n", "--no-fill", dest="fill", action="store_false", default=settings.FILL_GAPS,
        help="do not print buckets that had no entries (default: print them with count 0)",
    )
    parser.add_argument(
        "-s", "--stream", action="store_true",
        help="stream mode: expect ordered input and print buckets as soon as they close",
    )
    parser.add_argument(
        "-d", "--descending", action="store_true",
        help="expect descending order in stream mode, or print buckets newest "
             "first in normal mode",
    )
    parser.add_argument(
        "-t", "--tolerant", action="store_true",
        help="with --stream, discard out-of-order entries instead of failing",
    )
    parser.add_argument(
        "--log-level", default=settings.LOG_LEVEL, type=str.upper, choices=LOG_LEVELS,
        help="diagnostic log level on stderr (default: %(default)s)",
    )
    parser.add_argument(
        "format", metavar="DATE_TIME_FORMAT",
        help="date/time parsing format, e.g. '%%Y-%%m-%%d %%H:%%M:%%S'",
    )
    parser.add_argument(
        "inputs", nargs="*", metavar="INPUT_FILE",
        help="input files, read in order; standard input if none (or '-')",
    )
    args = parser.parse_args(argv)
    if args.tolerant and not args.stream:
        parser.error("--tolerant requires --stream")
    return args


def _error(message: object) -> None:
    print(f"error: {message}", file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = get_settings()
    except ValidationError as exc:
        _error(f"invalid TBUCK_* configuration:\n{exc}")
        return EXIT_USAGE

    args = _parse_args(argv, settings)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    # Nothing is read until both of these succeed
    try:
        granularity = Granularity.parse(args.granularity)
        datetime_format = DateTimeFormat.compile(args.format)
    except (InvalidGranularity, InvalidFormatPattern) as exc:
        _error(exc)
        return EXIT_USAGE

    policy = AggregationPolicy(
        granularity=granularity,
        fill_gaps=args.fill,
        direction=Direction.DESCENDING if args.descending else Direction.ASCENDING,
        mode=Mode.STREAM if args.stream else Mode.BATCH,
        order_violation_policy=ViolationPolicy.DISCARD if args.tolerant else ViolationPolicy.FAIL,
    )
    extractor = TimestampExtractor(datetime_format, args.match_index)
    writer = BucketWriter(sys.stdout, flush_each=policy.mode is Mode.STREAM)

    try:
        run(
            iter_lines(args.inputs, encoding=settings.INPUT_ENCODING),
            extractor,
            build_aggregator(policy),
            writer,
        )
    except NonMonotonicInput as exc:
        _error(exc)
        return EXIT_FAILURE
    except OverflowError as exc:
        # A bucket of this width would start before 0001-01-01
        _error(f"bucket outside the supported date range: {exc}")
        return EXIT_FAILURE
    except BrokenPipeError:
        # Downstream closed early (e.g. `| head`); silence the flush at exit
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return EXIT_FAILURE
    except OSError as exc:
        _error(exc)
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
