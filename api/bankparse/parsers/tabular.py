# api/bankparse/parsers/tabular.py
"""
Delimited and spreadsheet ingestion.

A CSV of unknown shape is read twice, once assuming the first record holds
column names and once assuming it does not, and the reading whose rows look
more like transactions wins.
"""
from __future__ import annotations

import csv
import io
import logging
import re
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from openpyxl import load_workbook

from .models import RawRow
from .normalize import UNKNOWN, is_normalized_amount, normalize_amount, to_iso_date

logger = logging.getLogger(__name__)

SNIFF_BYTES = 4096

DATE_HEADERS = ("date", "transdate", "transaction date", "posting date")
DESCRIPTION_HEADERS = ("description", "merchant", "details", "description 1", "narration")
AMOUNT_HEADERS = ("amount", "transaction amount", "amount (php)", "amount (usd)")
CURRENCY_HEADERS = ("currency", "ccy", "currency code")

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def sniff_delimiter(data: bytes) -> str:
    sample = data[:SNIFF_BYTES].decode("utf-8", errors="ignore")
    first_line = sample.split("\n", 1)[0]
    return ";" if ";" in first_line else ","


def _decode(data: bytes) -> str:
    return data.decode("utf-8-sig", errors="ignore")


def _read_records(text: str, delimiter: str) -> List[List[str]]:
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    records: List[List[str]] = []
    for record in reader:
        cells = [c.strip() for c in record]
        if not any(cells):
            continue
        records.append(cells)
    return records


def _cell_date(raw: Any) -> str:
    """Normalized date, or the raw text when no date can be read from it."""
    text = str(raw if raw is not None else "").strip()
    iso = to_iso_date(text)
    return iso if iso != UNKNOWN else text


def _pick(row: Mapping[str, Any], synonyms: Sequence[str]) -> str:
    lowered = {str(k).strip().lower(): v for k, v in row.items() if k is not None}
    for name in synonyms:
        value = lowered.get(name)
        if value is not None and str(value).strip() != "":
            return str(value)
    return ""


def map_header_row(row: Mapping[str, Any]) -> RawRow:
    return RawRow(
        date=_cell_date(_pick(row, DATE_HEADERS)),
        description=_pick(row, DESCRIPTION_HEADERS).strip(),
        amount=normalize_amount(_pick(row, AMOUNT_HEADERS)),
        currency=_pick(row, CURRENCY_HEADERS).strip(),
    )


def map_positional_row(cells: Sequence[Any]) -> RawRow:
    padded = list(cells) + [""] * 3
    d, desc, amt = padded[:3]
    return RawRow(
        date=_cell_date(d),
        description=str(desc if desc is not None else "").strip(),
        amount=normalize_amount(amt),
    )


def is_header_like_row(cells: Sequence[Any]) -> bool:
    lowered = [str(c if c is not None else "").strip().lower() for c in cells]
    joined = ",".join(lowered)
    return (
        "date" in lowered
        and ("description" in lowered or "details" in joined)
        and ("amount" in lowered or "debit" in lowered or "credit" in lowered)
    )


def score_rows(rows: Sequence[RawRow]) -> int:
    score = 0
    for r in rows:
        if ISO_DATE_RE.match(r.date) or re.search(r"\d", r.date):
            score += 2
        if is_normalized_amount(r.amount):
            score += 1
        if re.search(r"[A-Za-z]", r.description):
            score += 1
    return score


def _header_candidate(records: List[List[str]]) -> List[RawRow]:
    if not records:
        return []
    columns = records[0]
    rows: List[RawRow] = []
    for cells in records[1:]:
        row = {col: cells[idx] if idx < len(cells) else "" for idx, col in enumerate(columns)}
        rows.append(map_header_row(row))
    return [r for r in rows if r.description]


def _headerless_candidate(records: List[List[str]]) -> List[RawRow]:
    kept = [cells for idx, cells in enumerate(records) if idx != 0 or not is_header_like_row(cells)]
    return [r for r in (map_positional_row(c) for c in kept) if r.description]


def choose_candidate(with_header: List[RawRow], headerless: List[RawRow]) -> List[RawRow]:
    score_header = score_rows(with_header)
    score_simple = score_rows(headerless)
    logger.debug(
        "CSV candidates scored: header=%s (%s rows), headerless=%s (%s rows)",
        score_header, len(with_header), score_simple, len(headerless),
    )
    if score_simple > score_header or (score_simple == score_header and len(headerless) > len(with_header)):
        return headerless
    return with_header


def parse_csv(data: bytes) -> List[RawRow]:
    delimiter = sniff_delimiter(data)
    text = _decode(data)

    try:
        records = _read_records(text, delimiter)
    except csv.Error as exc:
        logger.warning("CSV could not be read with delimiter %r: %s", delimiter, exc)
        records = []

    try:
        with_header = _header_candidate(records)
    except (IndexError, ValueError) as exc:
        logger.warning("Header reading of CSV failed: %s", exc)
        with_header = []
    try:
        headerless = _headerless_candidate(records)
    except (IndexError, ValueError) as exc:
        logger.warning("Headerless reading of CSV failed: %s", exc)
        headerless = []

    return choose_candidate(with_header, headerless)


def _xlsx_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def read_xlsx_records(data: bytes) -> List[Dict[str, str]]:
    """First worksheet as a list of dicts keyed by the first row; blanks become ""."""
    wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header: Optional[List[str]] = None
        out: List[Dict[str, str]] = []
        for values in rows:
            cells = [_xlsx_cell(v) for v in values]
            if header is None:
                header = [c.strip() for c in cells]
                continue
            if not any(c.strip() for c in cells):
                continue
            record = {col: (cells[idx] if idx < len(cells) else "") for idx, col in enumerate(header) if col}
            out.append(record)
        return out
    finally:
        wb.close()


def parse_xlsx(data: bytes) -> List[RawRow]:
    rows = [map_header_row(r) for r in read_xlsx_records(data)]
    return [r for r in rows if r.description]
