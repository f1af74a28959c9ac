"""Local line parser: an ordered cascade of statement line patterns.

Each pattern is a module exposing ``match(line, context, today)`` that
returns a :class:`~jose_import.models.LineResult` when it recognizes the
line, or ``None`` to let the next pattern try. ``PATTERNS`` holds them in
priority order; the first pattern that recognizes a line wins.

Scanning is a fold over the lines of a statement: the
:class:`~jose_import.models.ParsingContext` returned for one line is the
context of the next, so lines must be processed in order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from jose_import.models import LineResult, ParsingContext, ScanResult
from jose_import.parsers import block, csv_row, date_header, delimited, natural

logger = logging.getLogger(__name__)

LineMatcher = Callable[[str, ParsingContext, date], LineResult | None]

PATTERNS: list[tuple[str, LineMatcher]] = [
    ("natural", natural.match),
    ("csv", csv_row.match),
    ("date_header", date_header.match),
    ("block", block.match),
    ("delimited", delimited.match),
]

SUMMARY_MARKERS = ("total de entradas", "total de saídas", "saldo")

# Lines that match no pattern but are still not worth sending to the AI.
_NOT_FORWARDED_MARKERS = ("total de", "saldo")


def get_pattern(name: str) -> LineMatcher:
    """Look up a line pattern by name.

    Raises:
        KeyError: If no pattern is registered under *name*.
    """
    for pattern_name, matcher in PATTERNS:
        if pattern_name == name:
            return matcher
    raise KeyError(name)


def split_lines(text: str) -> list[str]:
    """Split statement text into stripped, non-blank lines."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def is_summary_line(line: str) -> bool:
    """True for balance and total lines that never hold a transaction."""
    lowered = line.lower()
    return any(marker in lowered for marker in SUMMARY_MARKERS)


def parse_line(line: str, context: ParsingContext, today: date) -> LineResult | None:
    """Run *line* through the pattern cascade.

    Args:
        line: One statement line.
        context: Context produced by the previous line.
        today: Date that ``hoje``/``ontem`` and missing years resolve
            against.

    Returns:
        The first pattern's result, a result without a transaction for
        summary lines, or ``None`` if no pattern recognized the line.
    """
    trimmed = line.strip()
    if not trimmed or is_summary_line(trimmed):
        return LineResult(context=context)

    for name, matcher in PATTERNS:
        result = matcher(trimmed, context, today)
        if result is not None:
            if result.transaction is not None:
                logger.debug("Parsed with %s pattern: %s", name, trimmed[:60])
            return result
    return None


def scan_lines(lines: list[str], today: date) -> ScanResult:
    """Parse every line locally, collecting unrecognized ones.

    Date headers and total/balance lines are never collected as unparsed.
    """
    result = ScanResult(line_count=len(lines))
    context = ParsingContext()

    for line in lines:
        parsed = parse_line(line, context, today)
        if parsed is None:
            if _should_forward(line):
                result.unparsed.append(line)
            continue
        context = parsed.context
        if parsed.transaction is not None:
            result.transactions.append(parsed.transaction)

    logger.info(
        "Local parsing: %d/%d lines parsed", len(result.transactions), result.line_count
    )
    return result


def _should_forward(line: str) -> bool:
    lowered = line.lower()
    if date_header.is_date_header(line):
        return False
    if any(marker in lowered for marker in _NOT_FORWARDED_MARKERS):
        return False
    return bool(line.strip())
