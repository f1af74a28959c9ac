"""Natural-language entries typed by hand.

Format::

    <hoje|ontem|D.M|D/M|D.M.Y|D/M/Y> <description> <amount>

Examples: ``"hoje gasolina 50"``, ``"26.01 coxinha 2,5"``,
``"ontem uber 15,50"``. ``hoje`` and ``ontem`` resolve against the injected
*today*; a missing year defaults to today's year.

This pattern is tried first because its shape also fits lines meant for the
other patterns. Separator characters left at the edges of the description
(``"01/12/2025 - Padaria - 9,50"``) are stripped.
"""

from __future__ import annotations

import re
from datetime import date, timedelta

from jose_import.classifier import classify
from jose_import.models import LineResult, ParsingContext, Transaction
from jose_import.parsers.common import make_date, parse_amount_br

NATURAL_RE = re.compile(
    r"^(hoje|ontem|\d{1,2}[/.]\d{1,2}(?:[/.]\d{2,4})?)\s+(.+?)\s+((?:R\$\s?)?-?\d+(?:[.,]\d{1,2})?)$",
    re.IGNORECASE,
)

_DATE_SPLIT_RE = re.compile(r"[/.]")


def resolve_day_token(token: str, today: date) -> date | None:
    """Resolve ``hoje``, ``ontem`` or a numeric ``D/M[/Y]`` token to a date."""
    token = token.lower()
    if token == "hoje":
        return today
    if token == "ontem":
        return today - timedelta(days=1)
    parts = _DATE_SPLIT_RE.split(token)
    if len(parts) < 2:
        return None
    year = parts[2] if len(parts) > 2 else str(today.year)
    return make_date(year, parts[1], parts[0])


def match(line: str, context: ParsingContext, today: date) -> LineResult | None:
    """Recognize a natural-language entry."""
    m = NATURAL_RE.match(line)
    if m is None:
        return None

    txn_date = resolve_day_token(m.group(1), today)
    if txn_date is None:
        return None

    description = m.group(2).strip(" -|")
    amount = parse_amount_br(m.group(3))
    if not description or amount is None or amount == 0:
        return None

    keyword = classify(description)
    return LineResult(
        context=context,
        transaction=Transaction(
            date=txn_date,
            description=description,
            amount=amount,
            type=keyword.type,
            category=keyword.category,
        ),
    )
