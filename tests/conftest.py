"""Shared pytest fixtures for José import tests.

Provides reusable fixtures for:
- today: the fixed date that ``hoje``/``ontem`` and missing years resolve to.
- storage: a JsonFileStorage backed by a temporary file.
- FakeAdapter: a scripted text-completion adapter standing in for Gemini.
- make_txn: a factory for candidate transactions.
"""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from jose_import.exceptions import (
    OVERLOAD_STATUSES,
    AIOverloadedError,
    LLMServiceError,
    StorageError,
)
from jose_import.models import EXPENSE, Transaction
from jose_import.storage import JsonFileStorage

TODAY = date(2026, 1, 20)


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeAdapter:
    """Scripted stand-in for the text-completion service.

    Args:
        response: Text returned by ``generate``; a list is JSON-encoded.
        status: If set, ``generate`` raises as the service would for this
            HTTP status.
        configured: Value returned by ``is_configured``.
    """

    def __init__(self, response=None, status: int | None = None, configured: bool = True):
        if isinstance(response, list):
            response = json.dumps(response)
        self.response = response if response is not None else "[]"
        self.status = status
        self.configured = configured
        self.prompts: list[str] = []

    def is_configured(self) -> bool:
        return self.configured

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.status is not None:
            if self.status in OVERLOAD_STATUSES:
                raise AIOverloadedError(f"HTTP {self.status}", status=self.status)
            raise LLMServiceError(f"HTTP {self.status}", status=self.status)
        return self.response


class FailingStorage(JsonFileStorage):
    """JsonFileStorage whose writes (and optionally reads) fail."""

    def __init__(self, path: Path, fail_reads: bool = False):
        super().__init__(path)
        self.fail_reads = fail_reads

    def _save(self, data: dict) -> None:
        raise StorageError("disk full")

    def _load(self) -> dict:
        if self.fail_reads:
            raise StorageError("connection lost")
        return super()._load()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def today() -> date:
    """Fixed reference date for relative day tokens."""
    return TODAY


@pytest.fixture
def data_path(tmp_path: Path) -> Path:
    """Location of the JSON data file (not created yet)."""
    return tmp_path / "jose-data.json"


@pytest.fixture
def storage(data_path: Path) -> JsonFileStorage:
    """Empty JSON file storage in a temporary directory."""
    return JsonFileStorage(data_path)


@pytest.fixture
def fake_adapter():
    """The FakeAdapter class, for building scripted adapters in tests."""
    return FakeAdapter


@pytest.fixture
def failing_storage(data_path: Path):
    """Factory for a storage on *data_path* whose writes always fail."""

    def _make(fail_reads: bool = False) -> FailingStorage:
        return FailingStorage(data_path, fail_reads=fail_reads)

    return _make


@pytest.fixture
def make_txn():
    """Factory for candidate transactions with sensible defaults."""

    def _make(
        description: str = "uber",
        amount: str = "-15.50",
        txn_date: date = TODAY,
        type: str = EXPENSE,
        category: str = "Outros",
        subcategory: str | None = None,
        unsigned: bool = False,
    ) -> Transaction:
        return Transaction(
            date=txn_date,
            description=description,
            amount=Decimal(amount),
            type=type,
            category=category,
            subcategory=subcategory,
            unsigned=unsigned,
        )

    return _make
