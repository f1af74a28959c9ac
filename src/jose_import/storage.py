"""Transaction and category-hint storage.

The pipeline talks to storage only through the :class:`Storage` protocol.
:class:`JsonFileStorage` is the bundled implementation: a single JSON
document holding every user's transactions and the shared global category
hints::

    {
        "transactions": [
            {"id": "...", "user_id": "...", "date": "2026-01-20",
             "description": "uber", "amount": "-15.50", "type": "expense",
             "category": "Transporte", "subcategory": null,
             "created_at": "2026-01-20T10:00:00.000000"},
            ...
        ],
        "global_category_hints": [
            {"description_slug": "uber", "category": "Transporte",
             "subcategory": "Uber/App", "votes": 3,
             "updated_at": "..."},
            ...
        ]
    }

Writes go to a uniquely named temporary file that replaces the document
in one ``os.replace``, so a bulk insert lands completely or not at all.
Each read-modify-write holds the instance lock, so threads sharing one
storage (the webhook's threadpool) never overwrite each other's inserts.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import uuid
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Protocol

from jose_import.exceptions import StorageError
from jose_import.models import CategoryHint, StoredTransaction, Transaction

logger = logging.getLogger(__name__)


class Storage(Protocol):
    """Persistence operations used by the pipeline and the learn workflow.

    Every transaction read and write is scoped by ``user_id``. Failures
    raise :class:`~jose_import.exceptions.StorageError`.
    """

    def query_user_transactions(
        self, user_id: str, since: date | None = None
    ) -> list[StoredTransaction]:
        """Return the user's transactions, optionally from *since* onward."""
        ...

    def query_personal_history(
        self, user_id: str, description: str
    ) -> StoredTransaction | None:
        """Return the user's most recent transaction whose description
        contains *description* (case-insensitive)."""
        ...

    def query_global_hint(self, slug: str) -> CategoryHint | None:
        """Return the highest-voted hint for *slug*."""
        ...

    def bulk_insert(
        self, user_id: str, transactions: list[Transaction]
    ) -> list[StoredTransaction]:
        """Insert all *transactions* for the user, or none of them."""
        ...

    def upsert_global_hint(
        self, slug: str, category: str, subcategory: str | None
    ) -> CategoryHint:
        """Add one vote to the hint, creating it with one vote if new."""
        ...

    def update_user_categories(
        self,
        user_id: str,
        description: str,
        type: str,
        category: str,
        subcategory: str | None,
    ) -> int:
        """Rewrite type/category/subcategory of the user's transactions
        with exactly *description*. Returns the number updated."""
        ...


class JsonFileStorage:
    """Storage backed by one JSON file.

    The file is created on the first write; a missing file reads as empty.

    Args:
        path: Location of the JSON document.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    # -- Reads --------------------------------------------------------------

    def query_user_transactions(
        self, user_id: str, since: date | None = None
    ) -> list[StoredTransaction]:
        records = [
            _record_to_stored(r)
            for r in self._load()["transactions"]
            if r.get("user_id") == user_id
        ]
        if since is not None:
            records = [r for r in records if r.date >= since]
        return records

    def query_personal_history(
        self, user_id: str, description: str
    ) -> StoredTransaction | None:
        needle = description.lower()
        matches = [
            r
            for r in self.query_user_transactions(user_id)
            if needle in r.description.lower()
        ]
        if not matches:
            return None
        # Most recent wins: transaction date, then insertion time.
        return max(matches, key=lambda r: (r.date, r.created_at))

    def query_global_hint(self, slug: str) -> CategoryHint | None:
        hints = [h for h in self._load()["global_category_hints"] if h.get("description_slug") == slug]
        if not hints:
            return None
        best = max(hints, key=_hint_rank)
        return _record_to_hint(best)

    # -- Writes -------------------------------------------------------------

    def bulk_insert(
        self, user_id: str, transactions: list[Transaction]
    ) -> list[StoredTransaction]:
        now = datetime.now().isoformat()
        stored = [
            StoredTransaction(
                id=uuid.uuid4().hex,
                user_id=user_id,
                date=txn.date,
                description=txn.description,
                amount=txn.amount,
                type=txn.type,
                category=txn.category,
                subcategory=txn.subcategory,
                created_at=now,
            )
            for txn in transactions
        ]
        with self._lock:
            data = self._load()
            data["transactions"].extend(_stored_to_record(s) for s in stored)
            self._save(data)
        logger.info("Inserted %d transaction(s) for user %s", len(stored), user_id)
        return stored

    def upsert_global_hint(
        self, slug: str, category: str, subcategory: str | None
    ) -> CategoryHint:
        now = datetime.now().isoformat()
        with self._lock:
            data = self._load()
            for record in data["global_category_hints"]:
                if (
                    record.get("description_slug") == slug
                    and record.get("category") == category
                    and record.get("subcategory") == subcategory
                ):
                    record["votes"] = _votes(record) + 1
                    record["updated_at"] = now
                    break
            else:
                record = {
                    "description_slug": slug,
                    "category": category,
                    "subcategory": subcategory,
                    "votes": 1,
                    "updated_at": now,
                }
                data["global_category_hints"].append(record)
            self._save(data)
        return _record_to_hint(record)

    def update_user_categories(
        self,
        user_id: str,
        description: str,
        type: str,
        category: str,
        subcategory: str | None,
    ) -> int:
        with self._lock:
            data = self._load()
            updated = 0
            for record in data["transactions"]:
                if record.get("user_id") == user_id and record.get("description") == description:
                    record["type"] = type
                    record["category"] = category
                    record["subcategory"] = subcategory
                    updated += 1
            if updated:
                self._save(data)
        return updated

    # -- File handling ------------------------------------------------------

    def _load(self) -> dict:
        if not self.path.is_file():
            return {"transactions": [], "global_category_hints": []}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            raise StorageError(f"Could not read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"{self.path}: expected a JSON object")
        data.setdefault("transactions", [])
        data.setdefault("global_category_hints", [])
        return data

    def _save(self, data: dict) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=self.path.name + ".",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                json.dump(data, tmp, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Could not write {self.path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Record conversion
# ---------------------------------------------------------------------------


def _stored_to_record(txn: StoredTransaction) -> dict:
    return {
        "id": txn.id,
        "user_id": txn.user_id,
        "date": txn.date.isoformat(),
        "description": txn.description,
        "amount": str(txn.amount),
        "type": txn.type,
        "category": txn.category,
        "subcategory": txn.subcategory,
        "created_at": txn.created_at,
    }


def _record_to_stored(record: dict) -> StoredTransaction:
    try:
        return StoredTransaction(
            id=record["id"],
            user_id=record["user_id"],
            date=date.fromisoformat(record["date"]),
            description=record["description"],
            amount=Decimal(str(record["amount"])),
            type=record["type"],
            category=record["category"],
            subcategory=record.get("subcategory"),
            created_at=record.get("created_at", ""),
        )
    except (KeyError, ValueError, TypeError, InvalidOperation) as exc:
        raise StorageError(f"Malformed transaction record: {record!r}") from exc


def _record_to_hint(record: dict) -> CategoryHint:
    try:
        return CategoryHint(
            description_slug=record["description_slug"],
            category=record["category"],
            subcategory=record.get("subcategory"),
            votes=int(record.get("votes", 1)),
        )
    except (KeyError, ValueError, TypeError) as exc:
        raise StorageError(f"Malformed category hint: {record!r}") from exc


def _votes(record: dict) -> int:
    try:
        return int(record.get("votes", 0))
    except (ValueError, TypeError) as exc:
        raise StorageError(f"Malformed hint votes: {record!r}") from exc


def _hint_rank(record: dict) -> tuple[int, str]:
    return _votes(record), str(record.get("updated_at", ""))
