"""Categorization engine: memory lookups and the learn workflow.

This module implements the tiered categorization that runs after the
accounting stage:

1. **Tier 1 -- Personal history:** the user's own most recent transaction
   whose description contains the candidate's description. Its type,
   category and subcategory are copied verbatim.

2. **Tier 2 -- Global hints:** crowd-sourced suggestions keyed by the
   description slug, highest vote count first. Hints carry no type, so the
   keyword classifier supplies it.

3. **No hit:** the candidate keeps what the accounting stage assigned.

Each tier issues at most one storage read and is independent of the
others, so it can be replaced in tests. A storage failure inside a tier is
logged and that tier is skipped.

The ``learn_correction`` function records a user's category correction as
a global hint vote and optionally rewrites the user's matching
transactions.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Callable

from jose_import.classifier import classify
from jose_import.exceptions import StorageError
from jose_import.models import (
    EXPENSE,
    INCOME,
    CategoryOverride,
    LearnResult,
    StageResult,
    Transaction,
)
from jose_import.storage import Storage

logger = logging.getLogger(__name__)

Tier = Callable[[Transaction, str, Storage], CategoryOverride | None]

# Categories that mark a correction as income; everything else is expense.
INCOME_CATEGORIES = frozenset({"income", "Receitas", "Receita", "Salário"})

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lowercase, strip accents and drop everything but ``[a-z0-9]``.

    >>> slugify("Padaria São João!")
    'padariasaojoao'
    """
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM_RE.sub("", stripped)


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


def personal_history_tier(
    txn: Transaction, user_id: str, storage: Storage
) -> CategoryOverride | None:
    """Look up the user's own previous categorization."""
    record = storage.query_personal_history(user_id, txn.description)
    if record is None:
        return None
    return CategoryOverride(
        type=record.type,
        category=record.category,
        subcategory=record.subcategory,
        source="personal_history",
    )


def global_hint_tier(
    txn: Transaction, user_id: str, storage: Storage
) -> CategoryOverride | None:
    """Look up the crowd's most voted category for the description slug."""
    slug = slugify(txn.description)
    if not slug:
        return None
    hint = storage.query_global_hint(slug)
    if hint is None:
        return None
    return CategoryOverride(
        type=classify(txn.description).type,
        category=hint.category,
        subcategory=hint.subcategory,
        source="global_hint",
    )


TIERS: list[tuple[str, Tier]] = [
    ("personal_history", personal_history_tier),
    ("global_hint", global_hint_tier),
]


def lookup(
    txn: Transaction,
    user_id: str,
    storage: Storage,
    tiers: list[tuple[str, Tier]] | None = None,
) -> tuple[CategoryOverride | None, list[str]]:
    """Run the tiers in order and return the first hit.

    Returns:
        The override (or ``None``) and warnings for tiers that failed.
    """
    warnings: list[str] = []
    for name, tier in tiers if tiers is not None else TIERS:
        try:
            override = tier(txn, user_id, storage)
        except StorageError as exc:
            logger.warning("Skipping %s lookup for %r: %s", name, txn.description, exc)
            warnings.append(f"{name} lookup failed: {exc}")
            continue
        if override is not None:
            return override, warnings
    return None, warnings


# ---------------------------------------------------------------------------
# Categorize stage
# ---------------------------------------------------------------------------


def categorize(
    transactions: list[Transaction],
    user_id: str,
    storage: Storage,
    tiers: list[tuple[str, Tier]] | None = None,
) -> StageResult:
    """Override type/category/subcategory from memory where available.

    Args:
        transactions: Candidates already normalized by the accounting stage.
        user_id: Owner whose personal history is consulted.
        storage: Store the tiers read from.
        tiers: Tier list to use instead of :data:`TIERS`.

    Returns:
        A ``StageResult`` with the same transactions (updated in place) and
        a warning for every failed lookup.
    """
    warnings: list[str] = []
    for txn in transactions:
        override, tier_warnings = lookup(txn, user_id, storage, tiers)
        warnings.extend(tier_warnings)
        if override is None:
            continue
        txn.type = override.type
        txn.category = override.category
        txn.subcategory = override.subcategory or None
        logger.debug(
            "%s: %r -> %s (%s)",
            override.source,
            txn.description,
            override.category,
            override.subcategory or "no sub",
        )
    return StageResult(transactions=transactions, warnings=warnings)


# ---------------------------------------------------------------------------
# Learn workflow
# ---------------------------------------------------------------------------


def learn_correction(
    storage: Storage,
    user_id: str,
    description: str,
    category: str,
    subcategory: str | None = None,
    update_similar: bool = False,
) -> LearnResult:
    """Record a user's category correction.

    The type is forced from the category: income groups become ``income``,
    anything else ``expense``. When *update_similar* is set, every one of
    the user's transactions with exactly this description is rewritten.
    The correction always adds one vote to the global hint for the
    description slug.

    Raises:
        ValueError: If *description* or *category* is blank.
        StorageError: If the store cannot be read or written.
    """
    if not description.strip():
        raise ValueError("description must not be blank")
    if not category.strip():
        raise ValueError("category must not be blank")

    subcategory = subcategory or None
    forced_type = INCOME if category in INCOME_CATEGORIES else EXPENSE

    updated = 0
    if update_similar:
        updated = storage.update_user_categories(
            user_id, description, forced_type, category, subcategory
        )

    slug = slugify(description)
    hint = storage.upsert_global_hint(slug, category, subcategory)
    logger.info("Learned %r -> %s (%d votes)", slug, category, hint.votes)

    return LearnResult(
        description_slug=slug,
        type=forced_type,
        updated=updated,
        votes=hint.votes,
    )
