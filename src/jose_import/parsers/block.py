"""Block-text transactions under a date header (PDF statements).

Format::

    <description><two or more spaces><amount>

Example: ``"Compra no débito - Sonda Supermercados          46,00"``.

Only recognized once a date header has set the context date. The amount
column never carries a sign, so candidates are flagged ``unsigned`` and the
accounting stage decides the direction.
"""

from __future__ import annotations

import re
from datetime import date

from jose_import.classifier import classify
from jose_import.models import LineResult, ParsingContext, Transaction
from jose_import.parsers.common import parse_amount_br

BLOCK_RE = re.compile(r"^(.+?)\s{2,}([\d.,]+)$")


def match(line: str, context: ParsingContext, today: date) -> LineResult | None:
    """Recognize a block line dated by the current context."""
    if context.current_date is None:
        return None
    m = BLOCK_RE.match(line)
    if m is None:
        return None

    description = m.group(1).strip()
    amount = parse_amount_br(m.group(2))
    if not description or amount is None or amount == 0:
        return None

    keyword = classify(description)
    return LineResult(
        context=context,
        transaction=Transaction(
            date=context.current_date,
            description=description,
            amount=amount,
            type=keyword.type,
            category=keyword.category,
            unsigned=True,
        ),
    )
