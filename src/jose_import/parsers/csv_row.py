"""Nubank CSV export rows.

Format::

    DD/MM/YYYY,<amount>,<identifier>,<description>

Example: ``"21/01/2026,-46.00,card_not_present,Compra no débito - Sonda"``.

The amount column is already machine-formatted (period decimal, signed), so
it is read directly instead of through the Brazilian amount parser.
"""

from __future__ import annotations

import re
from datetime import date

from jose_import.classifier import classify
from jose_import.models import LineResult, ParsingContext, Transaction
from jose_import.parsers.common import make_date, parse_plain_amount

CSV_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4}),(-?\d+\.\d{2}),[^,]+,(.+)$")


def match(line: str, context: ParsingContext, today: date) -> LineResult | None:
    """Recognize a CSV export row."""
    m = CSV_RE.match(line)
    if m is None:
        return None

    day, month, year, amount_str, description = m.groups()
    txn_date = make_date(year, month, day)
    amount = parse_plain_amount(amount_str)
    description = description.strip()
    if txn_date is None or amount is None or amount == 0 or not description:
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
