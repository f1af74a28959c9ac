"""Core data models for José statement import.

This module defines the dataclasses shared by every pipeline stage. It has
zero internal imports -- everything depends on it, but it depends on nothing
within the package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path

INCOME = "income"
EXPENSE = "expense"
INVESTMENT = "investment"
TRANSFER = "transfer"

TRANSACTION_TYPES = (INCOME, EXPENSE, INVESTMENT, TRANSFER)


@dataclass
class Transaction:
    """A candidate transaction flowing through the import pipeline.

    Parsers fill in every field; later stages overwrite ``type``,
    ``category``, ``subcategory`` and the sign of ``amount``.

    Attributes:
        date: Transaction date, always concrete (``hoje``/``ontem`` are
            resolved at parse time).
        description: Label as extracted from the statement. Never empty.
        amount: Signed decimal amount. Never zero. After the accounting
            stage, negative means money leaving the account.
        type: One of ``income``, ``expense``, ``investment``, ``transfer``.
        category: Human-readable group, e.g. ``"Alimentação"``.
        subcategory: Refinement copied from personal history or global
            hints, otherwise ``None``.
        unsigned: True when the source format cannot carry a sign (block
            text from PDF statements). Not persisted.
    """

    date: date
    description: str
    amount: Decimal
    type: str = EXPENSE
    category: str = "Outros"
    subcategory: str | None = None
    unsigned: bool = False

    def to_dict(self) -> dict:
        """Serialize to the JSON shape returned to callers."""
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": float(self.amount),
            "type": self.type,
            "category": self.category,
            "subcategory": self.subcategory,
        }


@dataclass(frozen=True)
class ParsingContext:
    """Line-scanner state carried from one statement line to the next.

    Only a date-header line produces a new context; block-format lines
    read ``current_date`` from it.
    """

    current_date: date | None = None


@dataclass
class LineResult:
    """Outcome of a pattern that recognized a line.

    ``transaction`` is ``None`` for lines that only update the context
    (date headers).
    """

    context: ParsingContext
    transaction: Transaction | None = None


@dataclass
class StageResult:
    """Return type for pipeline stage functions.

    Each stage processes what it can and reports what it could not. The
    pipeline accumulates warnings across all stages for the final result.

    Attributes:
        transactions: Transactions after this stage's processing.
        warnings: Non-fatal issues, such as dropped AI items.
        errors: Issues that make this stage's output unusable.
    """

    transactions: list[Transaction] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class ScanResult:
    """Output of the local line scanner.

    Attributes:
        transactions: Candidates recognized by one of the local patterns.
        unparsed: Lines no pattern recognized, in input order, to be sent
            to the AI fallback.
        line_count: Number of non-blank input lines.
    """

    transactions: list[Transaction] = field(default_factory=list)
    unparsed: list[str] = field(default_factory=list)
    line_count: int = 0


@dataclass
class DedupResult:
    """Candidates split into new transactions and already-present ones."""

    new: list[Transaction] = field(default_factory=list)
    duplicates: list[Transaction] = field(default_factory=list)


@dataclass
class StoredTransaction:
    """A transaction persisted for one user.

    Attributes:
        id: Storage-assigned identifier.
        user_id: Owner of the record.
        date: Transaction date.
        description: Stored description.
        amount: Signed amount.
        type: Final transaction type.
        category: Final category.
        subcategory: Optional subcategory.
        created_at: ISO timestamp of the insert, used as a recency
            tie-break for personal-history lookups.
    """

    id: str
    user_id: str
    date: date
    description: str
    amount: Decimal
    type: str
    category: str
    subcategory: str | None = None
    created_at: str = ""


@dataclass
class CategoryHint:
    """A crowd-sourced category suggestion keyed by description slug."""

    description_slug: str
    category: str
    subcategory: str | None = None
    votes: int = 1


@dataclass
class CategoryOverride:
    """Type/category/subcategory produced by one categorizer tier."""

    type: str
    category: str
    subcategory: str | None = None
    source: str = ""


@dataclass
class ProcessStats:
    """Counts reported with a successful import."""

    local_parsed: int = 0
    ai_parsed: int = 0
    total: int = 0


@dataclass
class ProcessResult:
    """Result of one ``process_statement_text`` call.

    Every expected failure is represented here with ``success=False``
    rather than raised.
    """

    success: bool
    message: str | None = None
    transactions: list[Transaction] | None = None
    duplicates: list[Transaction] | None = None
    error: str | None = None
    stats: ProcessStats | None = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Render the wire shape, omitting fields that are not set."""
        payload: dict = {"success": self.success}
        if self.message is not None:
            payload["message"] = self.message
        if self.transactions is not None:
            payload["transactions"] = [t.to_dict() for t in self.transactions]
        if self.duplicates is not None:
            payload["duplicates"] = [t.to_dict() for t in self.duplicates]
        if self.error is not None:
            payload["error"] = self.error
        if self.stats is not None:
            payload["stats"] = {
                "localParsed": self.stats.local_parsed,
                "aiParsed": self.stats.ai_parsed,
                "total": self.stats.total,
            }
        if self.warnings:
            payload["warnings"] = list(self.warnings)
        return payload


@dataclass
class LearnResult:
    """Result of recording a user's category correction.

    Attributes:
        description_slug: Slug the global hint was stored under.
        type: Type forced from the corrected category.
        updated: Number of the user's transactions rewritten.
        votes: Vote count of the global hint after the upsert.
    """

    description_slug: str
    type: str
    updated: int = 0
    votes: int = 1


@dataclass
class AppConfig:
    """Top-level application configuration loaded from config.toml.

    Attributes:
        data_file: JSON data file for :class:`JsonFileStorage`, relative
            to the project root. Default: "jose-data.json".
        default_user: User id used by the CLI when ``--user`` is omitted.
        llm_provider: AI provider name. "gemini" or "none".
        llm_model: Model identifier, e.g. "gemini-2.5-flash".
        llm_api_key_env: Name of the environment variable containing
            the API key.
        llm_timeout: HTTP timeout in seconds for the AI request.
        webhook_secret_env: Environment variable holding the shared
            webhook secret.
        webhook_user_id_env: Environment variable holding the user id
            that webhook imports are written for.
    """

    data_file: str = "jose-data.json"
    default_user: str = ""
    llm_provider: str = "gemini"
    llm_model: str = "gemini-2.5-flash"
    llm_api_key_env: str = "GOOGLE_AI_API_KEY"
    llm_timeout: float = 60.0
    webhook_secret_env: str = "WEBHOOK_SECRET"
    webhook_user_id_env: str = "WEBHOOK_USER_ID"

    def data_path(self, root: Path) -> Path:
        """Resolve the data file against the project *root*."""
        return root / self.data_file
