# api/bankparse/parsers/pdf_text.py
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from .models import HeaderHints, RawRow
from .normalize import (
    UNKNOWN,
    clean_bank_name,
    clean_identifier,
    resolve_row_currency,
    to_iso_date,
)
from .policy_loader import ExtractionPolicy, build_extraction_policy

logger = logging.getLogger(__name__)

ACC_NUM_REGEX = re.compile(r"(?<!Customer )Account\s*Number:\s*([^\n\r]+)", re.I)
CUSTOMER_NUM_REGEX = re.compile(r"Customer\s*(?:Account\s*)?(?:Number|No\.?):\s*([^\n\r]+)", re.I)
STMT_DATE_REGEX = re.compile(r"Statement\s*Date:\s*([^\n\r]+)", re.I)
OPEN_BAL_REGEX = re.compile(r"Opening\s*Balance:\s*([^\n\r]+)", re.I)
CLOSE_BAL_REGEX = re.compile(r"Closing\s*Balance:\s*([^\n\r]+)", re.I)
CURRENCY_REGEX = re.compile(r"Currency:\s*([A-Za-z]{3}|[$₱€¥£])", re.I)

AMT = r"[-(]?\s?[$₱€¥£]?\s?[0-9,]*\.?[0-9]+\)?"

# 1=date, 2=description, 3=amount; ISO dates are tried first
ROW_PATTERNS = (
    re.compile(rf"^(\d{{4}}-\d{{2}}-\d{{2}})\s+(.+?)\s+({AMT})\s*$"),
    re.compile(rf"^(\d{{1,2}}[/-]\d{{1,2}}[/-]\d{{2,4}})\s+(.+?)\s+({AMT})\s*$"),
)

NUMERIC_DATE_TOKEN = re.compile(r"\b\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}\b|\b\d{4}-\d{2}-\d{2}\b")
STATEMENT_DATE_TOKEN = re.compile(
    r"\b(\d{4}-\d{2}-\d{2}|\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}|[A-Za-z]{3,9}\s+\d{1,2},\s*\d{4})\b"
)

BANK_HINTS = (
    "bank", "credit", "card", "mastercard", "visa", "american express", "amex",
    "unionbank", "bpi", "bdo", "citi", "citibank", "hsbc", "chase",
    "wells fargo", "capital one", "discover",
)
MIN_BANK_LINE = 6


@dataclass(frozen=True)
class PdfExtraction:
    rows: List[RawRow] = field(default_factory=list)
    hints: HeaderHints = field(default_factory=HeaderHints)


def _looks_like_table_header(line: str) -> bool:
    s = line.lower()
    return s.startswith("date") or "description" in s or "amount" in s or "balance" in s


def _contains_date_token(line: str) -> bool:
    return bool(NUMERIC_DATE_TOKEN.search(line))


def _top_lines(text: str, window: int) -> List[str]:
    top = [line.strip() for line in text.split("\n")[:window]]
    return [line for line in top if line]


def infer_bank_name(text: str, window: int = 12) -> str:
    eligible = [
        line for line in _top_lines(text, window)
        if not _looks_like_table_header(line) and not _contains_date_token(line)
    ]
    for line in eligible:
        low = line.lower()
        if any(h in low for h in BANK_HINTS):
            return clean_bank_name(line)
    for line in eligible:
        if len(line) >= MIN_BANK_LINE:
            return clean_bank_name(line)
    return UNKNOWN


def infer_statement_date(text: str, window: int = 20) -> str:
    """Latest ISO date among date-shaped tokens near the top of the document."""
    found = []
    for line in text.split("\n")[:window]:
        for m in STATEMENT_DATE_TOKEN.finditer(line):
            iso = to_iso_date(m.group(0))
            if iso != UNKNOWN:
                found.append(iso)
    return max(found) if found else UNKNOWN


def _label(regex: re.Pattern, text: str) -> Optional[str]:
    m = regex.search(text)
    return m.group(1).strip() if m else None


def _clean_line(line: str) -> str:
    line = re.sub(r"\t+", " ", line)
    line = re.sub(r"\s{2,}", " ", line)
    return line.strip()


def match_row(line: str) -> Optional[re.Match]:
    for pattern in ROW_PATTERNS:
        m = pattern.match(line)
        if m:
            return m
    return None


def extract_rows(text: str, header_currency: str = "") -> List[RawRow]:
    rows: List[RawRow] = []
    for raw_line in text.split("\n"):
        line = _clean_line(raw_line)
        if not line:
            continue
        m = match_row(line)
        if not m:
            continue
        date_raw, desc_raw, amt_raw = m.group(1), m.group(2), m.group(3)
        rows.append(
            RawRow(
                date=date_raw,
                description=re.sub(r"\s{2,}", " ", desc_raw).strip() or UNKNOWN,
                amount=amt_raw,
                currency=resolve_row_currency(amt_raw, header_currency),
            )
        )
    return rows


def extract_pdf_fields(text: str, policy: ExtractionPolicy | None = None) -> PdfExtraction:
    policy = policy or build_extraction_policy()
    src = (text or "").replace("\r", "")

    account = _label(ACC_NUM_REGEX, src) or ""
    customer = _label(CUSTOMER_NUM_REGEX, src)

    statement_date = to_iso_date(_label(STMT_DATE_REGEX, src) or "")
    if statement_date == UNKNOWN:
        statement_date = infer_statement_date(src, policy.statement_date_window)

    header_currency = _label(CURRENCY_REGEX, src) or ""

    hints = HeaderHints(
        bank=infer_bank_name(src, policy.bank_name_window),
        bank_account=clean_identifier(account),
        customer_account_number=clean_identifier(customer if customer else account),
        statement_date=statement_date,
        opening_balance=_label(OPEN_BAL_REGEX, src) or "0",
        closing_balance=_label(CLOSE_BAL_REGEX, src) or "0",
        currency=header_currency,
    )
    rows = extract_rows(src, header_currency)
    logger.info("PDF text yielded %s transaction rows", len(rows))
    return PdfExtraction(rows=rows, hints=hints)
