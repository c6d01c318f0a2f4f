import re
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from bankparse.parsers.normalize import (
    amount_to_number,
    clean_bank_name,
    clean_identifier,
    equals_money,
    normalize_amount,
    normalize_currency,
    resolve_row_currency,
    sum_amounts,
    to_iso_date,
)

AMOUNT_SHAPE = re.compile(r"^-?\d+\.\d{2}$")


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2025-07-31", "2025-07-31"),
        ("2025/7/3", "2025-07-03"),
        ("2025.12.01", "2025-12-01"),
        ("31/07/2025", "2025-07-31"),
        ("07/31/2025", "2025-07-31"),
        ("03/04/2025", "2025-03-04"),
        ("13-01-25", "2025-01-13"),
        ("Aug 31, 2025", "2025-08-31"),
        ("31 Aug 2025", "2025-08-31"),
        ("Sept 5, 2024", "2024-09-05"),
        ("5 December 2024", "2024-12-05"),
        ("September 30, 2024", "2024-09-30"),
        ("3 june 2025", "2025-06-03"),
    ],
)
def test_to_iso_date_formats(raw, expected):
    assert to_iso_date(raw) == expected


@pytest.mark.parametrize("raw", ["", None, "   ", "yesterday", "Foo 3, 2025", "Mayo 3, 2025", "3 Janu 2025", "2025-07", "31/07"])
def test_to_iso_date_unknown(raw):
    assert to_iso_date(raw) == "unknown"


def test_to_iso_date_is_identity_on_iso_dates():
    for value in ("2024-02-29", "1999-12-31", "2025-01-01"):
        assert to_iso_date(value) == value
        assert to_iso_date(to_iso_date(value)) == value


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("$", "USD"),
        ("php", "PHP"),
        ("₱", "PHP"),
        ("€", "EUR"),
        ("¥", "JPY"),
        ("£", "GBP"),
        ("eur", "EUR"),
        ("US$", "USD"),
        ("$1,200.00", "USD"),
        ("xyz!", "unknown"),
        ("", "unknown"),
        (None, "unknown"),
        ("12.00", "unknown"),
    ],
)
def test_normalize_currency(raw, expected):
    assert normalize_currency(raw) == expected


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("1,234.5", "1234.50"),
        ("(45.10)", "-45.10"),
        ("-12", "-12.00"),
        ("$ 99.999", "100.00"),
        ("PHP 2,500", "2500.00"),
        ("", "0.00"),
        (None, "0.00"),
        ("abc", "0.00"),
        ("-", "0.00"),
        ("1.2.3", "0.00"),
        ("(0)", "0.00"),
        ("-0.00", "0.00"),
    ],
)
def test_normalize_amount(raw, expected):
    assert normalize_amount(raw) == expected


def test_normalize_amount_always_has_two_decimals():
    samples = ["", "x", "1", "1.", ".5", "--3", "(1,000)", "9" * 400, "1e5", "−7.25", "12,34,567.891"]
    for raw in samples:
        assert AMOUNT_SHAPE.match(normalize_amount(raw)), raw


def test_normalize_amount_idempotent():
    for raw in ["(45.10)", "1,234.5", "abc", "-12"]:
        once = normalize_amount(raw)
        assert normalize_amount(once) == once


def test_identifier_and_bank_name_scrubbing():
    assert clean_identifier("1234-5678 90") == "1234567890"
    assert clean_identifier("---") == "unknown"
    assert clean_identifier(None) == "unknown"
    assert clean_bank_name("Union Bank of the Philippines, Inc.") == "UnionBankofthePhilippinesInc"
    assert clean_bank_name("  !! ") == "unknown"
    assert clean_identifier(clean_identifier("AB-12")) == "AB12"


def test_sum_amounts_is_cent_accurate():
    assert sum_amounts(["10.00", "-3.33", "0.01"]) == "6.68"
    assert sum_amounts(["0.10"] * 1000) == "100.00"
    assert sum_amounts([]) == "0.00"
    results = {sum_amounts(["0.1", "0.2", "-0.3"]) for _ in range(50)}
    assert results == {"0.00"}


def test_money_helpers():
    assert amount_to_number("1,234.567") == 1234.57
    assert amount_to_number("garbage") == 0.0
    assert equals_money("150.00", "150")
    assert not equals_money("150.00", "150.01")


def test_resolve_row_currency_precedence():
    assert resolve_row_currency("€12.00", "USD") == "EUR"
    assert resolve_row_currency("12.00", "USD") == "USD"
    assert resolve_row_currency("12.00", "$") == "USD"
    assert resolve_row_currency("12.00", "") == "unknown"


def test_half_cents_round_up():
    assert normalize_amount("0.125") == "0.13"
    assert normalize_amount("(2.675)") == "-2.68"
    assert amount_to_number("0.125") == 0.13
    assert sum_amounts(["0.125", "0.125"]) == "0.26"
    assert equals_money("0.125", "0.13")


def test_large_amounts_keep_every_digit():
    assert normalize_amount("9" * 30) == "9" * 30 + ".00"
    assert sum_amounts(["9" * 30, "0.01"]) == "9" * 30 + ".01"
