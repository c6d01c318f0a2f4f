# api/bankparse/parsers/normalize.py
"""
Field normalizers for statement data.

Every function here is total: any input (including None or garbage) maps to a
valid value of the target type, with "unknown" / "0.00" as the sentinels.
"""
from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Iterable

UNKNOWN = "unknown"
ZERO_AMOUNT = "0.00"

_MON = {
    "jan": "01",
    "feb": "02",
    "mar": "03",
    "apr": "04",
    "may": "05",
    "jun": "06",
    "jul": "07",
    "aug": "08",
    "sep": "09",
    "sept": "09",
    "oct": "10",
    "nov": "11",
    "dec": "12",
}

MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)
_FULL_MON = {name: f"{i:02d}" for i, name in enumerate(MONTH_NAMES, start=1)}

CENT = Decimal("0.01")

SYMBOL_TO_ISO = {
    "$": "USD",
    "₱": "PHP",
    "PHP": "PHP",
    "USD": "USD",
    "€": "EUR",
    "¥": "JPY",
    "£": "GBP",
}

YMD_RE = re.compile(r"^(\d{4})[/\-.](\d{1,2})[/\-.](\d{1,2})$")
NUMERIC_TRIPLE_RE = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})$")
NAMED_MDY_RE = re.compile(r"^([A-Za-z]{3,9})\s+(\d{1,2}),\s*(\d{4})$")
NAMED_DMY_RE = re.compile(r"^(\d{1,2})\s+([A-Za-z]{3,9})\s+(\d{4})$")

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
AMOUNT_RE = re.compile(r"^-?\d+\.\d{2}$")
ISO_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def _text(raw: Any) -> str:
    if raw is None:
        return ""
    return str(raw)


def is_iso_date(value: str) -> bool:
    return value != UNKNOWN and bool(ISO_DATE_RE.match(value or ""))


def is_normalized_amount(value: str) -> bool:
    return bool(AMOUNT_RE.match(value or ""))


def is_iso_currency(value: str) -> bool:
    return bool(ISO_CURRENCY_RE.match(value or ""))


def clean_bank_name(raw: Any) -> str:
    s = _text(raw).strip()
    keep = re.sub(r"[^A-Za-z0-9 ]+", "", s)
    keep = re.sub(r"\s+", "", keep)
    return keep or UNKNOWN


def clean_identifier(raw: Any) -> str:
    out = re.sub(r"[^A-Za-z0-9]", "", _text(raw))
    return out or UNKNOWN


def _month_number(name: str) -> str | None:
    key = name.lower()
    return _MON.get(key) or _FULL_MON.get(key)


def _expand_year(year: str) -> str:
    return f"20{year}" if len(year) == 2 else year


def to_iso_date(raw: Any) -> str:
    t = _text(raw).strip()
    if not t:
        return UNKNOWN

    m = YMD_RE.match(t)
    if m:
        y, mo, d = m.groups()
        return f"{y}-{int(mo):02d}-{int(d):02d}"

    m = NUMERIC_TRIPLE_RE.match(t)
    if m:
        first, second, year = m.groups()
        y = _expand_year(year)
        # day-first only when the first component cannot be a month
        if int(first) > 12:
            return f"{y}-{int(second):02d}-{int(first):02d}"
        return f"{y}-{int(first):02d}-{int(second):02d}"

    m = NAMED_MDY_RE.match(t)
    if m:
        mon, d, y = m.groups()
        month = _month_number(mon)
        if month:
            return f"{y}-{month}-{int(d):02d}"

    m = NAMED_DMY_RE.match(t)
    if m:
        d, mon, y = m.groups()
        month = _month_number(mon)
        if month:
            return f"{y}-{month}-{int(d):02d}"

    return UNKNOWN


def normalize_currency(raw: Any) -> str:
    s = _text(raw).strip().upper()
    if not s:
        return UNKNOWN
    if s in SYMBOL_TO_ISO:
        return SYMBOL_TO_ISO[s]
    if ISO_CURRENCY_RE.match(s):
        return s
    for sym, iso in SYMBOL_TO_ISO.items():
        if sym in s:
            return iso
    return UNKNOWN


def resolve_row_currency(amount_raw: Any, header_currency: Any) -> str:
    """Row currency precedence: token in the amount cell, then header, then unknown."""
    row_currency = normalize_currency(amount_raw)
    if is_iso_currency(row_currency):
        return row_currency
    header = normalize_currency(header_currency)
    if is_iso_currency(header):
        return header
    return UNKNOWN


def _to_decimal(s: str) -> Decimal:
    """Parse a digits/dot/minus string; garbage and values past float range give 0."""
    try:
        d = Decimal(s)
    except InvalidOperation:
        return Decimal(0)
    if not d.is_finite() or not math.isfinite(float(d)):
        return Decimal(0)
    return d


def _round_cents(d: Decimal) -> Decimal:
    # half-up to the cent; precision sized so large amounts never overflow the context
    with localcontext() as ctx:
        ctx.prec = max(28, len(d.as_tuple().digits) + 3)
        q = d.quantize(CENT, rounding=ROUND_HALF_UP)
    return q if q != 0 else Decimal("0.00")


def _format_amount(d: Decimal) -> str:
    return f"{_round_cents(d):f}"


def normalize_amount(raw: Any) -> str:
    s = _text(raw).strip()
    if not s:
        return ZERO_AMOUNT
    paren_neg = bool(re.match(r"^\(.*\)$", s))
    s = re.sub(r"[(),]", "", s)
    s = re.sub(r"[^\d.\-]", "", s)
    if s in ("", "-", "."):
        return ZERO_AMOUNT
    d = _to_decimal(s)
    if paren_neg:
        d = -abs(d)
    return _format_amount(d)


# money math: every value is rounded half-up to the cent, then summed exactly

def _money(value: Any) -> Decimal:
    s = _text(value).replace(",", "").strip() or "0"
    return _round_cents(_to_decimal(s))


def amount_to_number(value: Any) -> float:
    return float(_money(value))


def sum_amounts(values: Iterable[Any]) -> str:
    total = sum((_money(v) for v in values), Decimal("0.00"))
    return _format_amount(total)


def equals_money(a: Any, b: Any) -> bool:
    return _money(a) == _money(b)
