"""Keyword classifier shared by the parsers, the accounting stage and the
global-hint tier of the categorizer.

Groups are tested in order against the lower-cased description and the
first group with a matching term wins. Matching is plain substring
matching, so short terms such as ``"mc"`` or ``"99"`` match inside longer
words.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from jose_import.models import EXPENSE, INCOME, INVESTMENT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeywordGroup:
    """An ordered keyword rule: any term present assigns type and category."""

    name: str
    terms: tuple[str, ...]
    type: str
    category: str


@dataclass(frozen=True)
class KeywordMatch:
    """Provisional type and category for a description."""

    type: str
    category: str


TRANSFER_CATEGORY = "Transferência"
INVESTMENT_CATEGORY = "Investimento"
DEFAULT_CATEGORY = "Outros"

KEYWORD_GROUPS: tuple[KeywordGroup, ...] = (
    # Direction of a transfer is decided later from the amount.
    KeywordGroup(
        "transfer",
        ("pix", "transferencia", "ted", "transferência"),
        EXPENSE,
        TRANSFER_CATEGORY,
    ),
    KeywordGroup(
        "investment",
        ("rdb", "resgate", "aplicacao", "aplicação", "investimento", "cdb", "tesouro", "fundo"),
        INVESTMENT,
        INVESTMENT_CATEGORY,
    ),
    KeywordGroup(
        "food",
        (
            "pizza", "ifood", "restaurante", "mercado", "padaria", "lanche",
            "delivery", "food", "mc", "burger", "sushi", "sonda",
            "supermercado", "cafe", "cafeteria", "starbucks", "subway",
        ),
        EXPENSE,
        "Alimentação",
    ),
    KeywordGroup(
        "transport",
        (
            "uber", "99", "posto", "gasolina", "combustivel", "alcool", "taxi",
            "onibus", "metro", "estacionamento", "combustível",
        ),
        EXPENSE,
        "Transporte",
    ),
    KeywordGroup(
        "leisure",
        ("cinema", "show", "netflix", "spotify", "amazon", "disney", "prime"),
        EXPENSE,
        "Lazer",
    ),
    KeywordGroup(
        "health",
        ("farmacia", "farmácia", "drogaria", "medico", "médico", "hospital", "consulta"),
        EXPENSE,
        "Saúde",
    ),
    KeywordGroup(
        "housing",
        (
            "aluguel", "condominio", "condomínio", "agua", "água", "luz",
            "energia", "internet",
        ),
        EXPENSE,
        "Moradia",
    ),
    KeywordGroup(
        "card_payment",
        (
            "compra no debito", "compra no débito", "compra no credito",
            "compra no crédito", "pagamento", "fatura",
        ),
        EXPENSE,
        DEFAULT_CATEGORY,
    ),
    KeywordGroup(
        "salary",
        ("salario", "salário", "deposito", "depósito", "recebimento"),
        INCOME,
        "Salário",
    ),
)

DEFAULT_MATCH = KeywordMatch(type=EXPENSE, category=DEFAULT_CATEGORY)


def classify(description: str) -> KeywordMatch:
    """Return the type and category of the first keyword group that matches.

    Args:
        description: Free-text transaction description.

    Returns:
        The matching group's type and category, or ``expense``/``Outros``
        when no group matches.
    """
    lowered = description.lower()
    for group in KEYWORD_GROUPS:
        if any(term in lowered for term in group.terms):
            logger.debug("Keyword group %s matched %r", group.name, description)
            return KeywordMatch(type=group.type, category=group.category)
    return DEFAULT_MATCH
