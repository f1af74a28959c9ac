"""Accounting stage: final type, category and sign for every candidate.

Types and signs coming out of the parsers and the AI are provisional. This
stage applies two rules, first match wins:

1. **Investments.** A redemption keyword on a positive amount, or an
   application keyword on a negative amount, makes the transaction an
   investment. Amounts from sources that cannot carry a sign (block text)
   qualify on the keyword alone. Once classified, the sign is decided by
   the redemption keywords only: redemption is money coming back
   (positive), anything else is an application (negative).
2. **Everything else.** The keyword classifier decides between income
   (positive) and expense (negative). ``transfer`` never survives this
   stage.
"""

from __future__ import annotations

import logging

from jose_import.classifier import (
    INVESTMENT_CATEGORY,
    TRANSFER_CATEGORY,
    classify,
)
from jose_import.models import (
    EXPENSE,
    INCOME,
    INVESTMENT,
    StageResult,
    Transaction,
)

logger = logging.getLogger(__name__)

REDEMPTION_KEYWORDS = ("resgate", "resg", "rendimento", "resgate cdb", "resgate rdb", "dividendo")

APPLICATION_KEYWORDS = (
    "aplicação", "aplicacao", "apl", "cdb", "rdb", "lci", "lca",
    "poupança", "poupanca", "tesouro", "fundo",
)

INCOME_TRANSFER_CATEGORY = "Receita"


def is_redemption(description: str) -> bool:
    """True if *description* names money returning from an investment."""
    lowered = description.lower()
    return any(kw in lowered for kw in REDEMPTION_KEYWORDS)


def is_application(description: str) -> bool:
    """True if *description* names money going into an investment."""
    lowered = description.lower()
    return any(kw in lowered for kw in APPLICATION_KEYWORDS)


def is_investment(txn: Transaction) -> bool:
    """Detect an investment flow from keywords and the incoming sign."""
    if is_redemption(txn.description) and (txn.amount > 0 or txn.unsigned):
        return True
    if is_application(txn.description) and (txn.amount < 0 or txn.unsigned):
        return True
    return False


def normalize_transaction(txn: Transaction) -> Transaction:
    """Apply the accounting rules to one transaction in place.

    Returns:
        The same transaction, for chaining.
    """
    if is_investment(txn):
        txn.type = INVESTMENT
        txn.category = INVESTMENT_CATEGORY
        if is_redemption(txn.description):
            txn.amount = abs(txn.amount)
        else:
            txn.amount = -abs(txn.amount)
        flow = "redemption" if txn.amount > 0 else "application"
        logger.debug("Investment %s: %r (%s)", flow, txn.description, txn.amount)
        return txn

    if classify(txn.description).type == INCOME:
        txn.type = INCOME
        txn.amount = abs(txn.amount)
        if txn.category == TRANSFER_CATEGORY:
            txn.category = INCOME_TRANSFER_CATEGORY
    else:
        txn.type = EXPENSE
        txn.amount = -abs(txn.amount)
    return txn


def normalize(transactions: list[Transaction]) -> StageResult:
    """Accounting stage over a batch of candidates.

    Candidates with a zero amount or a blank description are dropped with a
    warning; parsers already reject them, so these can only come from an
    upstream bug.
    """
    warnings: list[str] = []
    kept: list[Transaction] = []
    for txn in transactions:
        if txn.amount == 0 or not txn.description.strip():
            warnings.append(f"Dropped invalid transaction on {txn.date.isoformat()}")
            continue
        kept.append(normalize_transaction(txn))
    return StageResult(transactions=kept, warnings=warnings)
