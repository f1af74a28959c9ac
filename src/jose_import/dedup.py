"""Duplicate detection against a user's persisted transactions.

Two transactions are the same when they share the calendar date, their
amounts differ by less than 0.01, and their descriptions are equal ignoring
case. Descriptions that differ in any other way are distinct transactions.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from jose_import.models import DedupResult, Transaction

AMOUNT_TOLERANCE = Decimal("0.01")


class _Comparable(Protocol):
    date: object
    description: str
    amount: Decimal


def _key(txn: _Comparable) -> tuple:
    return (txn.date, txn.description.lower())


def find_duplicates(
    candidates: list[Transaction],
    existing: list[_Comparable],
) -> DedupResult:
    """Split *candidates* into new and duplicate transactions.

    A candidate is a duplicate if it equals a persisted record or a
    candidate already accepted earlier in the same batch, so importing the
    same line twice in one statement stores it once.

    Args:
        candidates: Final candidates from the categorizer.
        existing: The user's persisted transactions.

    Returns:
        A :class:`DedupResult`; input order is kept in both lists.
    """
    # Index by (date, lowered description) so each candidate only compares
    # amounts within its bucket.
    seen: dict[tuple, list[Decimal]] = {}
    for record in existing:
        seen.setdefault(_key(record), []).append(record.amount)

    result = DedupResult()
    for txn in candidates:
        bucket = seen.setdefault(_key(txn), [])
        if any(abs(txn.amount - amount) < AMOUNT_TOLERANCE for amount in bucket):
            result.duplicates.append(txn)
        else:
            result.new.append(txn)
            bucket.append(txn.amount)
    return result
