"""
inputs.py

Sequential line source over files and/or standard input.

Sources are read one after another in argument order, as if concatenated.
No paths (or the path '-') means standard input. Each file is opened only
when the previous one is exhausted and closed before the next is opened.
Undecodable bytes are replaced rather than aborting the run.
"""

from __future__ import annotations

import logging
import sys
from typing import Iterable, Iterator, TextIO

logger = logging.getLogger(__name__)

STDIN_PATH = "-"


def iter_lines(
    paths: Iterable[str] | None = None,
    encoding: str = "utf-8",
    stdin: TextIO | None = None,
) -> Iterator[str]:
    """
    Yield every line from `paths` with the line terminator removed.

    Args:
        paths:    File paths; empty/None reads standard input.
        encoding: Text encoding for files (and stdin when reconfigurable).
        stdin:    Stream used for '-' (defaults to sys.stdin).

    Raises:
        OSError: a file could not be opened. Lines from earlier sources have
                 already been yielded by then.
    """
    sources = list(paths or []) or [STDIN_PATH]
    for source in sources:
        if source == STDIN_PATH:
            stream = stdin if stdin is not None else sys.stdin
            _prepare_stdin(stream, encoding)
            logger.info("Reading standard input")
            yield from _strip(stream)
            continue
        logger.info("Reading %s", source)
        with open(source, encoding=encoding, errors="replace", newline="") as fh:
            yield from _strip(fh)


def _strip(stream: Iterable[str]) -> Iterator[str]:
    for line in stream:
        yield line.rstrip("\r\n")


def _prepare_stdin(stream: TextIO, encoding: str) -> None:
    reconfigure = getattr(stream, "reconfigure", None)
    if reconfigure is None:
        return
    try:
        reconfigure(encoding=encoding, errors="replace")
    except (ValueError, OSError) as exc:
        # Already partially read (e.g. interactive use); keep current settings
        logger.debug("Could not reconfigure stdin: %s", exc)
