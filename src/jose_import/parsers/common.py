"""Amount and date helpers shared by the line patterns."""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation

_WHITESPACE_RE = re.compile(r"\s")


def parse_amount_br(text: str) -> Decimal | None:
    """Parse a Brazilian-formatted amount such as ``"R$ -1.234,56"``.

    ``R$``, whitespace and ``+`` are removed, a leading ``-`` is remembered,
    every ``.`` is treated as a thousands separator and the first ``,`` as
    the decimal separator.

    Returns:
        The signed amount, or ``None`` if the remaining text is not a
        number.
    """
    cleaned = _WHITESPACE_RE.sub("", text.replace("R$", "")).replace("+", "")
    negative = cleaned.startswith("-")
    if negative:
        cleaned = cleaned[1:]
    cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return -amount if negative else amount


def parse_plain_amount(text: str) -> Decimal | None:
    """Parse a machine-formatted amount with a period decimal, e.g. ``-46.00``."""
    try:
        amount = Decimal(text.strip())
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def expand_year(year: str) -> str:
    """Expand a two-digit year to ``20YY``; other lengths are kept."""
    return f"20{year}" if len(year) == 2 else year


def make_date(year: str, month: str, day: str) -> date | None:
    """Build a date from string parts, or ``None`` if it does not exist.

    The year must have four digits after :func:`expand_year`.
    """
    year = expand_year(year)
    if len(year) != 4:
        return None
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None
