import re
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from bankparse.parsers.scoring import (
    doc_point,
    footer_stats,
    header_point,
    row_point,
    tie_breaker,
)

SCORE_SHAPE = re.compile(r"^[01]\.\d{5}$")

FULL_HEADER = {
    "bank": "SampleBank",
    "bank_account": "123456",
    "customer_account_number": "123456",
    "statement_date": "2025-07-31",
    "opening_balance": "100.00",
    "closing_balance": "150.00",
    "currency": "USD",
}

EMPTY_HEADER = {
    "bank": "unknown",
    "bank_account": "unknown",
    "customer_account_number": "unknown",
    "statement_date": "unknown",
    "opening_balance": "n/a",
    "closing_balance": "n/a",
    "currency": "unknown",
}


def test_tie_breaker_is_deterministic_and_small():
    a = tie_breaker("2025-07-01|Coffee|-3.50|USD")
    assert a == tie_breaker("2025-07-01|Coffee|-3.50|USD")
    assert 0.0 <= a < 0.005
    assert tie_breaker("") == tie_breaker("")


def test_row_point_rewards_structural_cues():
    strong = row_point("2025-07-01", "Grocery store purchase downtown branch", "-45.10", "USD")
    weak = row_point("unknown", "x", "n/a", "unknown")
    assert float(strong) > float(weak)
    assert SCORE_SHAPE.match(strong) and SCORE_SHAPE.match(weak)
    # date 0.30 + amount 0.40 + currency 0.10 + 38/40 * 0.20
    assert 0.99 <= float(strong) <= 1.0
    assert float(weak) <= 0.01


def test_row_point_description_is_capped():
    long_desc = "A" * 200
    score = float(row_point("2025-07-01", long_desc, "1.00", "USD"))
    assert score == 1.0


def test_row_point_is_reproducible():
    args = ("2025-07-01", "Coffee", "-3.50", "unknown")
    assert row_point(*args) == row_point(*args)


def test_header_point_weights():
    assert float(header_point(FULL_HEADER)) == 1.0
    assert float(header_point(EMPTY_HEADER)) <= 0.005
    partial = dict(EMPTY_HEADER, bank="SampleBank", statement_date="2025-07-31")
    assert 0.36 <= float(header_point(partial)) <= 0.365


def test_doc_point_applies_reconciliation_bonus():
    rows = [
        {"amount": "70.00", "row_point": "0.50000"},
        {"amount": "-20.00", "row_point": "0.50000"},
    ]
    header = dict(FULL_HEADER, row_point="0.50000")
    stats = footer_stats(header, rows)
    assert stats["num_transactions"] == 2
    assert stats["total_amount_parsed"] == "50.00"
    assert stats["balanced"] is True
    assert stats["doc_point"] == "0.60000"

    unbalanced = dict(header, closing_balance="151.00")
    assert doc_point(unbalanced, rows) == "0.50000"
    assert footer_stats(unbalanced, rows)["balanced"] is False


def test_doc_point_caps_at_one():
    rows = [{"amount": "50.00", "row_point": "1.00000"}]
    header = dict(FULL_HEADER, row_point="1.00000")
    assert doc_point(header, rows) == "1.00000"


def test_doc_point_with_no_rows():
    header = dict(FULL_HEADER, opening_balance="0.00", closing_balance="0.00", row_point="0.80000")
    # mean row point is 0 without rows; an empty statement still reconciles
    assert doc_point(header, []) == "0.50000"
    stats = footer_stats(header, [])
    assert stats["num_transactions"] == 0
    assert stats["total_amount_parsed"] == "0.00"
