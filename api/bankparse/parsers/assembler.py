# api/bankparse/parsers/assembler.py
"""
Statement assembly: raw rows plus header hints in, canonical statement out.

The steps run in a fixed order because later ones read what earlier ones
produced: rows are normalized and scored, the header is normalized, the
header currency is resolved (explicit, else the rows' majority), rows
without a currency inherit it and are re-scored, then the header and
footer scores are computed.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import asdict, replace
from typing import Any, Iterable, List, Mapping, Optional, Union

from .models import Footer, Header, HeaderHints, RawRow, Statement, Transaction
from .normalize import (
    UNKNOWN,
    clean_bank_name,
    clean_identifier,
    is_iso_currency,
    normalize_amount,
    normalize_currency,
    to_iso_date,
)
from .scoring import footer_stats, header_point, row_point

logger = logging.getLogger(__name__)

RowLike = Union[RawRow, Mapping[str, Any]]
MetaLike = Union[HeaderHints, Mapping[str, Any], None]


def _field(source: Any, name: str) -> Any:
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(name)
    return getattr(source, name, None)


def _str(value: Any, default: str = "") -> str:
    return default if value is None else str(value)


def normalize_row(row: RowLike) -> Transaction:
    date = to_iso_date(_str(_field(row, "date"), UNKNOWN))
    description = _str(_field(row, "description")).strip() or UNKNOWN
    amount = normalize_amount(_str(_field(row, "amount"), "0"))
    currency = normalize_currency(_str(_field(row, "currency")))
    return Transaction(
        date=date,
        description=description,
        amount=amount,
        currency=currency,
        row_point=row_point(date, description, amount, currency),
    )


def majority_iso_currency(rows: Iterable[Transaction]) -> str:
    counts = Counter(r.currency for r in rows if is_iso_currency(r.currency))
    if not counts:
        return UNKNOWN
    # most_common keeps first-seen order among equal counts
    return counts.most_common(1)[0][0]


def resolve_header_currency(explicit: Any, rows: List[Transaction]) -> str:
    header_currency = normalize_currency(_str(explicit))
    if is_iso_currency(header_currency):
        return header_currency
    return majority_iso_currency(rows)


def backfill_currency(rows: List[Transaction], header_currency: str) -> List[Transaction]:
    fill = header_currency if is_iso_currency(header_currency) else UNKNOWN
    out: List[Transaction] = []
    for t in rows:
        if is_iso_currency(t.currency):
            out.append(t)
            continue
        updated = replace(t, currency=fill)
        out.append(replace(updated, row_point=row_point(updated.date, updated.description, updated.amount, fill)))
    return out


def rows_to_statement(rows: Optional[Iterable[RowLike]], meta: MetaLike = None) -> Statement:
    txns = [normalize_row(r) for r in (rows or [])]

    bank = clean_bank_name(_str(_field(meta, "bank"), UNKNOWN))
    bank_account = clean_identifier(_str(_field(meta, "bank_account"), UNKNOWN))
    customer_raw = _field(meta, "customer_account_number")
    customer_account_number = clean_identifier(_str(customer_raw) if customer_raw is not None else bank_account)
    statement_date = to_iso_date(_str(_field(meta, "statement_date"), UNKNOWN))
    opening_balance = normalize_amount(_str(_field(meta, "opening_balance"), "0"))
    closing_balance = normalize_amount(_str(_field(meta, "closing_balance"), "0"))

    currency = resolve_header_currency(_field(meta, "currency"), txns)
    txns = backfill_currency(txns, currency)

    header_fields = {
        "bank": bank,
        "bank_account": bank_account,
        "customer_account_number": customer_account_number,
        "statement_date": statement_date,
        "opening_balance": opening_balance,
        "closing_balance": closing_balance,
        "currency": currency,
    }
    header = Header(**header_fields, row_point=header_point(header_fields))

    footer = Footer(**footer_stats(asdict(header), [asdict(t) for t in txns]))
    logger.debug(
        "Assembled statement: %s rows, currency=%s, doc_point=%s",
        footer.num_transactions, currency, footer.doc_point,
    )
    return Statement(header=header, transactions=tuple(txns), footer=footer)
