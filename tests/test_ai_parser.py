"""Tests for jose_import.ai_parser -- prompt contract and response validation.

The adapter is a FakeAdapter; no network calls are made.
"""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest

from jose_import.ai_parser import (
    build_prompt,
    extract_transactions,
    parse_response,
    strip_code_fence,
    validate_item,
)
from jose_import.exceptions import AIOverloadedError

VALID_ITEM = {
    "date": "2026-01-05",
    "description": "Pix recebido João",
    "amount": 150.0,
    "type": "income",
    "category": "Receita",
}


class TestBuildPrompt:
    def test_contains_lines_and_contract(self):
        prompt = build_prompt(["linha um", "linha dois"])
        assert "linha um\nlinha dois" in prompt
        assert "YYYY-MM-DD" in prompt
        assert "APENAS o array JSON" in prompt
        assert prompt.rstrip().endswith("Resposta:")


class TestStripCodeFence:
    def test_json_fence(self):
        assert strip_code_fence('```json\n[1]\n```') == "[1]"

    def test_bare_fence(self):
        assert strip_code_fence("```\n[]\n```") == "[]"

    def test_no_fence(self):
        assert strip_code_fence("  [] ") == "[]"


class TestValidateItem:
    def test_valid(self):
        txn = validate_item(VALID_ITEM)
        assert txn.date == date(2026, 1, 5)
        assert txn.amount == Decimal("150.0")
        assert txn.type == "income"
        assert txn.category == "Receita"

    def test_string_amount(self):
        txn = validate_item({**VALID_ITEM, "amount": "-50.25"})
        assert txn.amount == Decimal("-50.25")

    def test_missing_category_uses_classifier(self):
        item = {**VALID_ITEM, "description": "uber", "type": "expense"}
        del item["category"]
        assert validate_item(item).category == "Transporte"

    @pytest.mark.parametrize(
        "override",
        [
            {"date": "05/01/2026"},
            {"date": "2026-02-30"},
            {"date": None},
            {"description": ""},
            {"description": 42},
            {"amount": 0},
            {"amount": "abc"},
            {"amount": True},
            {"amount": None},
            {"type": "refund"},
        ],
    )
    def test_rejects_malformed_fields(self, override):
        assert validate_item({**VALID_ITEM, **override}) is None

    def test_rejects_non_dict(self):
        assert validate_item(["2026-01-05", "x", 1]) is None


class TestParseResponse:
    def test_keeps_valid_items_and_warns_for_rest(self):
        text = json.dumps([VALID_ITEM, {"date": "bad"}])
        result = parse_response(text)
        assert len(result.transactions) == 1
        assert len(result.warnings) == 1

    def test_fenced_response(self):
        result = parse_response("```json\n" + json.dumps([VALID_ITEM]) + "\n```")
        assert len(result.transactions) == 1

    def test_invalid_json_is_not_fatal(self):
        result = parse_response("Desculpe, não consegui.")
        assert result.transactions == []
        assert result.warnings

    def test_object_instead_of_array(self):
        result = parse_response(json.dumps(VALID_ITEM))
        assert result.transactions == []
        assert result.warnings == ["AI response is not a JSON array"]


class TestExtractTransactions:
    def test_single_request_for_all_lines(self, fake_adapter):
        adapter = fake_adapter([VALID_ITEM])
        result = extract_transactions(["a", "b", "c"], adapter)
        assert len(adapter.prompts) == 1
        assert "a\nb\nc" in adapter.prompts[0]
        assert len(result.transactions) == 1

    def test_no_lines_no_request(self, fake_adapter):
        adapter = fake_adapter([VALID_ITEM])
        assert extract_transactions([], adapter).transactions == []
        assert adapter.prompts == []

    def test_service_errors_propagate(self, fake_adapter):
        with pytest.raises(AIOverloadedError):
            extract_transactions(["a"], fake_adapter(status=503))
