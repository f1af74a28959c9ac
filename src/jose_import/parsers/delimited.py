"""Standard delimited lines: ``date - description - amount``.

Fields are separated by ``-`` or ``|``. The date may use ``/``, ``.`` or
``-`` between day, month and year; two-digit years become ``20YY``. The
amount is Brazilian-formatted and may carry ``R$`` and a sign, e.g.
``"26-01-26 | pizza | R$ 1.049,00"``.
"""

from __future__ import annotations

import re
from datetime import date

from jose_import.classifier import classify
from jose_import.models import LineResult, ParsingContext, Transaction
from jose_import.parsers.common import make_date, parse_amount_br

DELIMITED_RE = re.compile(r"^([\d/.\-]+)\s*[-|]\s*(.+?)\s*[-|]\s*([\d.,R$\s+\-]+)$")

_DATE_SPLIT_RE = re.compile(r"[/.\-]")


def match(line: str, context: ParsingContext, today: date) -> LineResult | None:
    """Recognize a delimited line."""
    m = DELIMITED_RE.match(line)
    if m is None:
        return None

    parts = _DATE_SPLIT_RE.split(m.group(1))
    if len(parts) != 3:
        return None
    txn_date = make_date(parts[2], parts[1], parts[0])

    description = m.group(2).strip()
    amount = parse_amount_br(m.group(3))
    if txn_date is None or not description or amount is None or amount == 0:
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
