"""Tests for jose_import.dedup -- duplicate detection."""

from __future__ import annotations

from datetime import date

from jose_import.dedup import find_duplicates


class TestFindDuplicates:
    def test_matches_persisted_record(self, make_txn):
        existing = [make_txn("Uber", "-15.50")]
        result = find_duplicates([make_txn("uber", "-15.50")], existing)
        assert result.new == []
        assert len(result.duplicates) == 1

    def test_amount_within_tolerance(self, make_txn):
        result = find_duplicates([make_txn("uber", "-15.505")], [make_txn("uber", "-15.50")])
        assert len(result.duplicates) == 1

    def test_amount_one_cent_apart_is_new(self, make_txn):
        result = find_duplicates([make_txn("uber", "-15.51")], [make_txn("uber", "-15.50")])
        assert len(result.new) == 1

    def test_different_date_is_new(self, make_txn):
        result = find_duplicates(
            [make_txn("uber", txn_date=date(2026, 1, 19))],
            [make_txn("uber", txn_date=date(2026, 1, 20))],
        )
        assert len(result.new) == 1

    def test_near_description_is_new(self, make_txn):
        result = find_duplicates([make_txn("uber trip")], [make_txn("uber")])
        assert len(result.new) == 1

    def test_repeat_within_batch(self, make_txn):
        result = find_duplicates([make_txn("uber"), make_txn("UBER"), make_txn("padaria")], [])
        assert [t.description for t in result.new] == ["uber", "padaria"]
        assert [t.description for t in result.duplicates] == ["UBER"]

    def test_does_not_modify_inputs(self, make_txn):
        candidates = [make_txn("uber")]
        existing = [make_txn("padaria")]
        find_duplicates(candidates, existing)
        assert len(candidates) == 1
        assert len(existing) == 1
