"""
Environment file codec.

Parses newline-delimited ``KEY=VALUE`` text and renders entries as shell
``export`` statements safe for ``eval``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

ENV_LINE_REGEX = re.compile(r"^[A-Za-z][0-9A-Za-z_]*=")

# close quote, double-quoted literal quote, reopen quote
_QUOTED_SINGLE_QUOTE = "'\"'\"'"


@dataclass(frozen=True)
class EnvEntry:
    """One variable. Duplicates are kept; the shell applies last-wins."""

    key: str
    value: str


def parse_env(text: str) -> Iterator[EnvEntry]:
    """
    Lazily parse env file text into entries, in source order.

    Blank lines, lines that are not ``KEY=VALUE`` and ``#`` comments are
    skipped. Only the first ``=`` splits; the value is kept verbatim.
    """
    for line_number, line in enumerate(text.split("\n"), start=1):
        line = line.strip()
        if not line:
            logger.debug("Empty line: %d", line_number)
            continue
        if not ENV_LINE_REGEX.match(line):
            logger.debug("Invalid line: %d", line_number)
            continue
        if line[0] == "#":
            logger.debug("Comment line: %d", line_number)
            continue
        key, _, value = line.partition("=")
        yield EnvEntry(key=key, value=value)


def escape_single_quote(value: str) -> str:
    """Escape `value` for embedding inside a single-quoted shell string."""
    return value.replace("'", _QUOTED_SINGLE_QUOTE)


def render_export(entry: EnvEntry) -> str:
    """Render an entry as ``export KEY='value'``."""
    return f"export {entry.key}='{escape_single_quote(entry.value)}'"


def render_exports(entries: Iterable[EnvEntry]) -> Iterator[str]:
    """
    Lazily render entries as export statements, preserving their order.

    Args:
        entries: Parsed entries, typically from parse_env

    Returns:
        Iterator of ``export KEY='value'`` lines without trailing newlines
    """
    for entry in entries:
        yield render_export(entry)
