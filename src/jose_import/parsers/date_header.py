"""Date headers in block-formatted statements, e.g. ``"26 JAN 2026"``.

A header yields no transaction; it replaces the context date consumed by
the block lines that follow it.
"""

from __future__ import annotations

import re
from datetime import date

from jose_import.models import LineResult, ParsingContext
from jose_import.parsers.common import make_date

MONTHS: dict[str, int] = {
    "JAN": 1, "FEV": 2, "MAR": 3, "ABR": 4, "MAI": 5, "JUN": 6,
    "JUL": 7, "AGO": 8, "SET": 9, "OUT": 10, "NOV": 11, "DEZ": 12,
}

HEADER_RE = re.compile(
    r"^(\d{1,2})\s+(" + "|".join(MONTHS) + r")\s+(\d{4})$",
    re.IGNORECASE,
)


def is_date_header(line: str) -> bool:
    """True if *line* has the shape of a date header."""
    return HEADER_RE.match(line.strip()) is not None


def match(line: str, context: ParsingContext, today: date) -> LineResult | None:
    """Recognize a date header and return the updated context."""
    m = HEADER_RE.match(line)
    if m is None:
        return None
    day, month_abbr, year = m.groups()
    header_date = make_date(year, str(MONTHS[month_abbr.upper()]), day)
    if header_date is None:
        return None
    return LineResult(context=ParsingContext(current_date=header_date))
