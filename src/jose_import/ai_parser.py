"""AI fallback parser for statement lines the local patterns did not recognize.

All unparsed lines of one statement go out in a single prompt. The
completion is treated as untrusted data: code fences are stripped, the JSON
array is decoded, and every element is validated field by field before it
becomes a :class:`~jose_import.models.Transaction`. A completion that is not
a JSON array yields no transactions and a warning, never an exception.

Service failures (:class:`~jose_import.exceptions.LLMServiceError`) are not
handled here; the pipeline decides how to degrade.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from decimal import Decimal

from jose_import.classifier import classify
from jose_import.llm import TextCompletionAdapter
from jose_import.models import TRANSACTION_TYPES, StageResult, Transaction
from jose_import.parsers.common import parse_plain_amount

logger = logging.getLogger(__name__)

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_OPEN_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_CLOSE_FENCE_RE = re.compile(r"\n?```$")


def build_prompt(lines: list[str]) -> str:
    """Construct the extraction prompt for *lines*.

    The contract asks for a bare JSON array of
    ``{date, description, amount, type, category}`` objects with ISO dates
    and signed amounts (negative for outflows, positive for inflows).
    """
    statement = "\n".join(lines)
    return (
        "Você é o José, um assistente financeiro inteligente para usuários brasileiros.\n"
        "\n"
        "TAREFA: Analise o extrato bancário abaixo e extraia TODAS as transações "
        "como um array JSON.\n"
        "\n"
        "REGRAS CRÍTICAS DE SINAL E TIPO:\n"
        "\n"
        "1. INVESTIMENTOS (type: 'investment'):\n"
        '   - Aplicações (SAÍDA): "Aplicação", "CDB", "Poupança" -> Valor NEGATIVO (ex: -100.00).\n'
        '   - Resgates (ENTRADA): "Resgate", "Rendimento" -> Valor POSITIVO (ex: 100.00).\n'
        "\n"
        "2. RECEITAS (type: 'income'):\n"
        "   - Valor POSITIVO (ex: 1500.00).\n"
        "   - Salários, Pix recebido, Vendas.\n"
        "\n"
        "3. DESPESAS (type: 'expense'):\n"
        "   - Valor NEGATIVO (ex: -50.00).\n"
        "   - Pix enviado, Compras, Boletos.\n"
        "\n"
        "FORMATAÇÃO:\n"
        '- DATAS: Converta para YYYY-MM-DD (exemplo: "05/01/26" → "2026-01-05")\n'
        "- VALORES: Use o sinal correto (negativo para saídas, positivo para entradas).\n"
        "- Use ponto decimal (.).\n"
        "\n"
        "CRÍTICO: Retorne APENAS o array JSON. NÃO adicione texto, markdown ou explicações.\n"
        "\n"
        'Formato: [{"date":"2026-01-05","description":"Descrição","amount":-50.00,'
        '"type":"expense","category":"Alimentação"}]\n'
        "\n"
        "EXTRATO:\n"
        f"{statement}\n"
        "\n"
        "Resposta:"
    )


def strip_code_fence(text: str) -> str:
    """Remove a leading ```` ```json ```` and a trailing ```` ``` ```` if present."""
    text = text.strip()
    text = _OPEN_FENCE_RE.sub("", text)
    text = _CLOSE_FENCE_RE.sub("", text)
    return text.strip()


def _parse_date(value: object) -> date | None:
    if not isinstance(value, str) or not ISO_DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_amount(value: object) -> Decimal | None:
    # bool is an int subclass; true/false are not amounts.
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        amount = parse_plain_amount(value)
    else:
        return None
    if amount is None or not amount.is_finite():
        return None
    return amount


def validate_item(item: object) -> Transaction | None:
    """Turn one element of the AI's array into a Transaction.

    Returns:
        The transaction, or ``None`` if any required field is missing or
        malformed. A missing or blank ``category`` falls back to the
        keyword classifier.
    """
    if not isinstance(item, dict):
        return None

    txn_date = _parse_date(item.get("date"))
    description = item.get("description")
    amount = _parse_amount(item.get("amount"))
    txn_type = item.get("type")

    if txn_date is None:
        return None
    if not isinstance(description, str) or not description.strip():
        return None
    if amount is None or amount == 0:
        return None
    if txn_type not in TRANSACTION_TYPES:
        return None

    category = item.get("category")
    if not isinstance(category, str) or not category.strip():
        category = classify(description).category

    return Transaction(
        date=txn_date,
        description=description.strip(),
        amount=amount,
        type=txn_type,
        category=category.strip(),
    )


def parse_response(text: str) -> StageResult:
    """Decode and validate the completion text.

    Returns:
        A StageResult with the valid transactions and a warning for every
        rejected element or for an undecodable response.
    """
    payload = strip_code_fence(text)
    try:
        items = json.loads(payload)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse JSON from AI response: %s", exc)
        return StageResult(warnings=[f"AI response is not valid JSON: {exc}"])

    if not isinstance(items, list):
        logger.warning("AI response JSON is not a list")
        return StageResult(warnings=["AI response is not a JSON array"])

    transactions: list[Transaction] = []
    warnings: list[str] = []
    for index, item in enumerate(items):
        txn = validate_item(item)
        if txn is None:
            logger.warning("Skipping invalid AI item %d: %r", index, item)
            warnings.append(f"AI: skipped invalid item {index}")
            continue
        transactions.append(txn)

    return StageResult(transactions=transactions, warnings=warnings)


def extract_transactions(lines: list[str], adapter: TextCompletionAdapter) -> StageResult:
    """Send *lines* to the service in one request and validate the answer.

    Raises:
        LLMServiceError: If the service call itself fails.
    """
    if not lines:
        return StageResult()
    logger.info("Sending %d line(s) to AI", len(lines))
    text = adapter.generate(build_prompt(lines))
    result = parse_response(text)
    logger.info("AI parsed: %d transaction(s)", len(result.transactions))
    return result
