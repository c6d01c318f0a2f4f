import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from bankparse.parsers.pdf_text import (
    extract_pdf_fields,
    extract_rows,
    infer_bank_name,
    infer_statement_date,
    match_row,
)
from bankparse.parsers.policy_loader import ExtractionPolicy

SAMPLE = Path(__file__).resolve().parent / "fixtures" / "statements" / "sample_statement.txt"


def test_sample_statement_fields():
    parsed = extract_pdf_fields(SAMPLE.read_text(encoding="utf-8"), ExtractionPolicy())
    hints = parsed.hints

    assert hints.bank == "SampleSavingsBank"
    assert hints.bank_account == "0012345678"
    assert hints.customer_account_number == "0012345678"
    assert hints.statement_date == "2025-07-31"
    assert hints.opening_balance == "1,000.00"
    assert hints.closing_balance == "2,158.65"
    assert hints.currency == "USD"

    assert [r.description for r in parsed.rows] == [
        "Salary July",
        "Grocery Store",
        "Coffee Shop",
        "Rent payment",
        "Interest credit",
    ]
    assert [r.amount for r in parsed.rows] == ["2,500.00", "(45.10)", "-12.00", "-1,300.00", "€15.75"]
    assert [r.currency for r in parsed.rows] == ["USD", "USD", "USD", "USD", "EUR"]


def test_iso_row_pattern_is_tried_first():
    m = match_row("2025-07-01 Transfer 01/07/2025 ref 100.00")
    assert m.group(1) == "2025-07-01"
    assert m.group(3) == "100.00"
    assert match_row("Closing Balance: 2,158.65") is None


def test_row_currency_falls_back_to_unknown_without_header():
    rows = extract_rows("2025-07-01 Coffee 3.50\n2025-07-02 Lunch £12.00")
    assert [r.currency for r in rows] == ["unknown", "GBP"]


def test_bank_name_skips_table_headers_and_dated_lines():
    text = "Statement 07/31/2025\nDate Description Amount\nACME Credit Union\nBranch 42"
    assert infer_bank_name(text) == "ACMECreditUnion"


def test_bank_name_falls_back_to_first_long_line():
    assert infer_bank_name("Hi\nNorthwind Savings Co.\nx") == "NorthwindSavingsCo"
    assert infer_bank_name("Hi\nok\n") == "unknown"
    assert infer_bank_name("") == "unknown"


def test_bank_name_window_is_respected():
    text = "\n".join(["---"] * 12 + ["First National Bank"])
    assert infer_bank_name(text, window=12) == "unknown"
    assert infer_bank_name(text, window=13) == "FirstNationalBank"


def test_statement_date_inferred_as_latest_top_date():
    text = "Period 07/01/2025 to 07/31/2025\nPrinted 2025-08-02\nJun 30, 2025 summary"
    assert infer_statement_date(text) == "2025-08-02"
    assert infer_statement_date("no dates here") == "unknown"


def test_statement_date_reads_every_token_on_a_line():
    assert infer_statement_date("Period 07/01/2025 to 07/31/2025") == "2025-07-31"
    assert infer_statement_date("From Jun 1, 2025 through Jun 30, 2025") == "2025-06-30"


def test_unlabelled_statement_date_uses_inference():
    text = "Metro Bank\nIssued Aug 5, 2025\n2025-07-01 Coffee 3.50"
    parsed = extract_pdf_fields(text, ExtractionPolicy())
    assert parsed.hints.statement_date == "2025-08-05"
    assert parsed.hints.bank_account == "unknown"
    assert parsed.hints.opening_balance == "0"


def test_customer_number_label_overrides_account_number():
    text = "Account Number: 111-222\nCustomer Account Number: C-998\n"
    hints = extract_pdf_fields(text, ExtractionPolicy()).hints
    assert hints.bank_account == "111222"
    assert hints.customer_account_number == "C998"
