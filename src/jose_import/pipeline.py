"""Pipeline orchestration for statement import.

Composes the stages: split lines, parse locally, AI fallback, accounting,
categorize, deduplicate, persist. Stages that can degrade return a
:class:`~jose_import.models.StageResult`; the pipeline accumulates their
warnings into the final :class:`~jose_import.models.ProcessResult`.

``process_statement_text`` never raises for expected failures. Every
terminal condition (empty input, nothing found, AI overloaded, storage
failure, all duplicates) is returned as ``success=False`` with one of the
user-facing messages below.
"""

from __future__ import annotations

import logging
from datetime import date

from jose_import import accounting, ai_parser, categorizer
from jose_import.dedup import find_duplicates
from jose_import.exceptions import AIOverloadedError, LLMServiceError, StorageError
from jose_import.llm import NullAdapter, TextCompletionAdapter
from jose_import.models import ProcessResult, ProcessStats, StageResult, Transaction
from jose_import.parsers import scan_lines, split_lines
from jose_import.storage import Storage

logger = logging.getLogger(__name__)

MSG_EMPTY_TEXT = "Por favor, cole um extrato para analisar."
MSG_AI_NOT_CONFIGURED = "Configuração de IA não encontrada."
MSG_NOTHING_FOUND = "Nenhuma transação encontrada. Verifique o formato do extrato."
MSG_OVERLOADED = (
    "O José está sobrecarregado. Mas você pode usar o formato CSV do Nubank ou texto direto!"
)
MSG_ALL_DUPLICATES = "Todas as transações já foram importadas anteriormente."
MSG_INSERT_FAILED = "Erro ao salvar transações. Tente novamente."
MSG_READ_FAILED = "Erro ao consultar transações existentes. Tente novamente."


def success_message(count: int) -> str:
    return f"{count} transações importadas com sucesso!"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def process_statement_text(
    text: str,
    user_id: str,
    storage: Storage,
    llm_adapter: TextCompletionAdapter | None = None,
    today: date | None = None,
) -> ProcessResult:
    """Import one block of statement text for *user_id*.

    Stages executed in order:

    1. **Split** -- non-blank, stripped lines.
    2. **Parse locally** -- pattern cascade with carried date context.
    3. **AI fallback** -- one request for every unrecognized line.
    4. **Accounting** -- final type and canonical sign.
    5. **Categorize** -- personal history, then global hints.
    6. **Deduplicate** -- against the user's stored transactions and
       earlier lines of the same batch.
    7. **Persist** -- one all-or-nothing bulk insert.

    Args:
        text: Decoded statement text, one entry per line.
        user_id: Owner of every imported transaction.
        storage: Transaction store.
        llm_adapter: Text-completion adapter for the AI fallback. ``None``
            disables it.
        today: Date that ``hoje``/``ontem`` and missing years resolve
            against. Defaults to the current date.

    Returns:
        A :class:`ProcessResult`.
    """
    if not text or not text.strip():
        return ProcessResult(success=False, error=MSG_EMPTY_TEXT)

    if today is None:
        today = date.today()
    if llm_adapter is None:
        llm_adapter = NullAdapter()

    warnings: list[str] = []

    # -- Stage 1-2: Split and parse locally -----------------------------------
    scan = scan_lines(split_lines(text), today)
    local_transactions = scan.transactions

    # -- Stage 3: AI fallback -------------------------------------------------
    ai_transactions: list[Transaction] = []
    if scan.unparsed:
        if not llm_adapter.is_configured():
            if not local_transactions:
                return ProcessResult(success=False, error=MSG_AI_NOT_CONFIGURED)
            warnings.append(
                f"AI not configured: {len(scan.unparsed)} line(s) left unparsed"
            )
        else:
            try:
                ai_result = ai_parser.extract_transactions(scan.unparsed, llm_adapter)
            except AIOverloadedError as exc:
                logger.warning("AI service overloaded: %s", exc)
                if not local_transactions:
                    return ProcessResult(success=False, error=MSG_OVERLOADED)
                warnings.append("AI service overloaded, continuing with local results only")
            except LLMServiceError as exc:
                logger.error("AI parsing failed, continuing with local results only: %s", exc)
                warnings.append(f"AI parsing failed: {exc}")
            else:
                ai_transactions = ai_result.transactions
                warnings.extend(ai_result.warnings)

    all_transactions = local_transactions + ai_transactions
    if not all_transactions:
        return ProcessResult(success=False, error=MSG_NOTHING_FOUND, warnings=warnings)
    logger.info("Total extracted: %d transaction(s)", len(all_transactions))

    # -- Stage 4: Accounting --------------------------------------------------
    accounting_result = accounting.normalize(all_transactions)
    warnings.extend(accounting_result.warnings)

    # -- Stage 5: Categorize --------------------------------------------------
    cat_result = categorizer.categorize(accounting_result.transactions, user_id, storage)
    warnings.extend(cat_result.warnings)
    transactions = cat_result.transactions

    # -- Stage 6: Deduplicate -------------------------------------------------
    try:
        existing = storage.query_user_transactions(user_id)
    except StorageError as exc:
        logger.error("Could not load existing transactions: %s", exc)
        return ProcessResult(success=False, error=MSG_READ_FAILED, warnings=warnings)

    dedup = find_duplicates(transactions, existing)
    duplicates = dedup.duplicates or None

    if not dedup.new:
        return ProcessResult(
            success=False,
            error=MSG_ALL_DUPLICATES,
            duplicates=duplicates,
            warnings=warnings,
        )

    # -- Stage 7: Persist -----------------------------------------------------
    persist_result = _persist(dedup.new, user_id, storage)
    if persist_result.errors:
        return ProcessResult(success=False, error=MSG_INSERT_FAILED, warnings=warnings)

    logger.info("Successfully inserted %d transaction(s)", len(dedup.new))
    return ProcessResult(
        success=True,
        message=success_message(len(dedup.new)),
        transactions=dedup.new,
        duplicates=duplicates,
        stats=ProcessStats(
            local_parsed=len(local_transactions),
            ai_parsed=len(ai_transactions),
            total=len(all_transactions),
        ),
        warnings=warnings,
    )


# ---------------------------------------------------------------------------
# Stage implementations
# ---------------------------------------------------------------------------


def _persist(transactions: list[Transaction], user_id: str, storage: Storage) -> StageResult:
    """Stage 7: bulk insert, reporting failure for the whole batch."""
    try:
        storage.bulk_insert(user_id, transactions)
    except StorageError as exc:
        logger.error("Insert error: %s", exc)
        return StageResult(errors=[str(exc)])
    return StageResult(transactions=transactions)
