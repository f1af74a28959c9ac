"""Tests for jose_import.categorizer -- memory tiers and the learn workflow."""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import pytest

from jose_import.categorizer import (
    TIERS,
    categorize,
    global_hint_tier,
    learn_correction,
    lookup,
    personal_history_tier,
    slugify,
)
from jose_import.exceptions import StorageError
from jose_import.models import CategoryOverride

USER = "user-1"


class TestSlugify:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Padaria São João!", "padariasaojoao"),
            ("UBER *TRIP", "ubertrip"),
            ("Farmácia 24h", "farmacia24h"),
            ("!!!", ""),
        ],
    )
    def test_slugify(self, text, expected):
        assert slugify(text) == expected


class TestTiers:
    def test_order(self):
        assert [name for name, _ in TIERS] == ["personal_history", "global_hint"]

    def test_personal_history_copies_verbatim(self, storage, make_txn):
        storage.bulk_insert(
            USER,
            [make_txn("Uber Trip", type="income", category="Reembolso", subcategory="Firma")],
        )
        override = personal_history_tier(make_txn("uber"), USER, storage)
        assert override == CategoryOverride("income", "Reembolso", "Firma", "personal_history")

    def test_global_hint_type_from_classifier(self, storage, make_txn):
        storage.upsert_global_hint("salarioacme", "Trabalho", "CLT")
        override = global_hint_tier(make_txn("Salário ACME"), USER, storage)
        assert override.type == "income"
        assert override.category == "Trabalho"
        assert override.subcategory == "CLT"

    def test_global_hint_skipped_for_empty_slug(self, make_txn):
        storage = MagicMock()
        assert global_hint_tier(make_txn("***"), USER, storage) is None
        storage.query_global_hint.assert_not_called()

    def test_first_hit_short_circuits(self, make_txn):
        second = MagicMock(return_value=None)
        hit = CategoryOverride("expense", "Lazer")
        tiers = [("first", MagicMock(return_value=hit)), ("second", second)]
        override, warnings = lookup(make_txn(), USER, MagicMock(), tiers)
        assert override is hit
        assert warnings == []
        second.assert_not_called()

    def test_failed_tier_is_skipped(self, make_txn):
        hit = CategoryOverride("expense", "Lazer")
        tiers = [
            ("first", MagicMock(side_effect=StorageError("timeout"))),
            ("second", MagicMock(return_value=hit)),
        ]
        override, warnings = lookup(make_txn(), USER, MagicMock(), tiers)
        assert override is hit
        assert len(warnings) == 1


class TestCategorize:
    def test_personal_history_before_global_hint(self, storage, make_txn):
        storage.bulk_insert(USER, [make_txn("uber", category="Trabalho")])
        storage.upsert_global_hint("uber", "Transporte", None)
        txn = categorize([make_txn("uber")], USER, storage).transactions[0]
        assert txn.category == "Trabalho"

    def test_no_hit_leaves_transaction(self, storage, make_txn):
        txn = make_txn("padaria", "-3.00", category="Alimentação")
        result = categorize([txn], USER, storage)
        assert result.transactions[0].category == "Alimentação"
        assert result.transactions[0].type == "expense"
        assert result.warnings == []

    def test_empty_subcategory_becomes_none(self, storage, make_txn):
        storage.upsert_global_hint("uber", "Transporte", "")
        txn = categorize([make_txn("uber")], USER, storage).transactions[0]
        assert txn.subcategory is None

    def test_idempotent(self, storage, make_txn):
        storage.bulk_insert(USER, [make_txn("uber", category="Trabalho", subcategory="Visita")])
        once = categorize([make_txn("uber")], USER, storage).transactions[0]
        twice = categorize([once], USER, storage).transactions[0]
        assert (once.type, once.category, once.subcategory) == (
            twice.type,
            twice.category,
            twice.subcategory,
        )

    def test_storage_failure_is_a_warning(self, failing_storage, make_txn):
        storage = failing_storage(fail_reads=True)
        result = categorize([make_txn("uber", category="Transporte")], USER, storage)
        assert result.transactions[0].category == "Transporte"
        assert len(result.warnings) == 2


class TestLearnCorrection:
    def test_adds_hint_vote(self, storage):
        result = learn_correction(storage, USER, "Padaria São João", "Alimentação", "Padaria")
        assert result.description_slug == "padariasaojoao"
        assert result.votes == 1
        assert result.type == "expense"
        assert result.updated == 0
        assert storage.query_global_hint("padariasaojoao").subcategory == "Padaria"

    def test_income_category_forces_income(self, storage):
        assert learn_correction(storage, USER, "ACME", "Salário").type == "income"

    def test_update_similar(self, storage, make_txn):
        storage.bulk_insert(USER, [make_txn("Loja X", txn_date=date(2026, 1, d)) for d in (1, 2)])
        result = learn_correction(storage, USER, "Loja X", "Receita", update_similar=True)
        assert result.updated == 2
        assert {r.type for r in storage.query_user_transactions(USER)} == {"income"}

    @pytest.mark.parametrize("description, category", [("", "Lazer"), ("x", "  ")])
    def test_blank_input(self, storage, description, category):
        with pytest.raises(ValueError):
            learn_correction(storage, USER, description, category)
