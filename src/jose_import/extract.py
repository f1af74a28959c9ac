"""Statement file extraction: turn an uploaded file into pipeline text.

Supported formats, chosen by file extension:

- ``.ofx``: each ``<STMTTRN>`` block becomes one
  ``DD/MM/YYYY - <memo> - <amount>`` line. The amount is rendered in
  Brazilian format (``-1.234,56``) so the delimited pattern reads it back
  exactly.
- ``.csv``: passed through, minus a header line mentioning ``date``,
  ``data`` or ``valor``.
- ``.pdf``: page text extracted with pdfplumber.
- ``.txt``: passed through.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path

import pdfplumber

from jose_import.exceptions import ExtractionError

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024

_STMTTRN_RE = re.compile(r"<STMTTRN>.*?</STMTTRN>", re.DOTALL | re.IGNORECASE)
_DTPOSTED_RE = re.compile(r"<DTPOSTED>(\d{4})(\d{2})(\d{2})", re.IGNORECASE)
_TRNAMT_RE = re.compile(r"<TRNAMT>([-\d.]+)", re.IGNORECASE)
_MEMO_RE = re.compile(r"<MEMO>([^<\r\n]*)", re.IGNORECASE)
_NAME_RE = re.compile(r"<NAME>([^<\r\n]*)", re.IGNORECASE)

_CSV_HEADER_MARKERS = ("date", "data", "valor")


def format_amount_br(amount: Decimal) -> str:
    """Render *amount* as ``-1.234,56``."""
    text = f"{amount.quantize(Decimal('0.01')):,.2f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def ofx_to_text(content: str) -> str:
    """Convert OFX statement content into delimited lines.

    Blocks without a posting date are skipped. A block without a usable
    amount is emitted with ``0,00`` and later rejected by the parser.
    """
    lines: list[str] = []
    for block in _STMTTRN_RE.findall(content):
        date_match = _DTPOSTED_RE.search(block)
        if date_match is None:
            continue
        year, month, day = date_match.groups()

        amount = Decimal("0")
        amount_match = _TRNAMT_RE.search(block)
        if amount_match:
            try:
                amount = Decimal(amount_match.group(1))
            except InvalidOperation:
                logger.warning("Invalid OFX amount %r", amount_match.group(1))

        memo = _MEMO_RE.search(block)
        name = _NAME_RE.search(block)
        description = ((memo and memo.group(1)) or (name and name.group(1)) or "Transação").strip()

        lines.append(f"{day}/{month}/{year} - {description} - {format_amount_br(amount)}")
    return "\n".join(lines)


def csv_to_text(content: str) -> str:
    """Drop the header row of a bank CSV export, if it has one."""
    lines = content.split("\n")
    header = lines[0].lower()
    if any(marker in header for marker in _CSV_HEADER_MARKERS):
        return "\n".join(lines[1:])
    return content


def pdf_to_text(path: Path) -> str:
    """Extract the text of every page of a PDF statement."""
    pages: list[str] = []
    with pdfplumber.open(path) as pdf:
        for page in pdf.pages:
            pages.append(page.extract_text() or "")
    return "\n".join(pages)


def extract_text(path: Path) -> str:
    """Read a statement file and return the text the pipeline consumes.

    Raises:
        ExtractionError: If the file is missing, too large, of an
            unsupported type, unreadable, or yields no text.
    """
    path = Path(path)
    if not path.is_file():
        raise ExtractionError("Nenhum arquivo enviado.")
    if path.stat().st_size > MAX_FILE_SIZE:
        raise ExtractionError("Arquivo muito grande. Máximo: 10MB.")

    suffix = path.suffix.lower()
    try:
        if suffix == ".ofx":
            logger.info("Detected OFX format")
            text = ofx_to_text(path.read_text(encoding="utf-8", errors="replace"))
        elif suffix == ".csv":
            logger.info("Detected CSV format")
            text = csv_to_text(path.read_text(encoding="utf-8"))
        elif suffix == ".pdf":
            logger.info("Detected PDF format")
            text = pdf_to_text(path)
        elif suffix == ".txt":
            text = path.read_text(encoding="utf-8")
        else:
            raise ExtractionError("Formato não suportado. Use .ofx, .csv, .pdf ou .txt")
    except ExtractionError:
        raise
    except Exception as exc:
        raise ExtractionError(f"Erro ao processar arquivo: {exc}") from exc

    if not text.strip():
        raise ExtractionError("Arquivo vazio ou sem transações.")

    logger.debug("Extracted text length: %d", len(text))
    return text
