# api/scripts/eval_statements.py
import os, argparse, csv, sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))  # make 'bankparse' importable from a checkout
from bankparse.parsers.detect import detect_kind
from bankparse.parsers.errors import StatementError
from bankparse.parsers.router import parse_statement

COLUMNS = ["file", "kind", "strategy", "num_transactions", "total_amount_parsed", "balanced", "doc_point", "ok"]


def load_expected(base: str):
    exp = {}
    path = os.path.join(base, "expected.csv")
    if not os.path.exists(path):
        return exp
    with open(path, newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            exp[row["file"]] = row
    return exp


def _norm(s):
    return ("" if s is None else str(s)).strip()


def _num_or_none(s):
    try:
        return round(float(str(s).replace(",", "").strip()), 2)
    except ValueError:
        return None


def _match_field(exp, got, *, numeric=False, integer=False, casefold=False):
    exp = _norm(exp)
    got = _norm(got)
    if exp == "":  # blank expected = wildcard (don't check)
        return True
    if numeric:
        return _num_or_none(exp) == _num_or_none(got)
    if integer:
        return (got.isdigit() and exp.isdigit() and int(got) == int(exp))
    if casefold:
        return got.lower() == exp.lower()
    return got == exp


def evaluate_file(fp: str) -> dict:
    name = os.path.basename(fp)
    with open(fp, "rb") as fh:
        data = fh.read()

    kind = detect_kind(name, None, data)
    row = {"file": name, "kind": kind, "strategy": "", "num_transactions": "",
           "total_amount_parsed": "", "balanced": "", "doc_point": ""}
    try:
        parsed = parse_statement(kind, data)
    except StatementError as e:
        print(f"{name}: {e}", file=sys.stderr)
        return row

    footer = parsed.statement.footer
    row.update({
        "strategy": parsed.strategy or "",
        "num_transactions": str(footer.num_transactions),
        "total_amount_parsed": footer.total_amount_parsed,
        "balanced": str(footer.balanced).lower(),
        "doc_point": footer.doc_point,
    })
    return row


def check_row(row: dict, exp_row: dict) -> bool:
    return (
        _match_field(exp_row.get("kind"), row["kind"], casefold=True)
        and _match_field(exp_row.get("num_transactions"), row["num_transactions"], integer=True)
        and _match_field(exp_row.get("total_amount_parsed"), row["total_amount_parsed"], numeric=True)
        and _match_field(exp_row.get("balanced"), row["balanced"], casefold=True)
    )


def main(argv=None):
    p = argparse.ArgumentParser(description="Run the statement pipeline over sample files")
    p.add_argument("path", help="File or directory of samples")
    args = p.parse_args(argv)

    base = args.path
    files = []
    if os.path.isdir(base):
        for f in sorted(os.listdir(base)):
            fp = os.path.join(base, f)
            if os.path.isfile(fp) and f != "expected.csv":
                files.append(fp)
    else:
        files = [base]
        base = os.path.dirname(base) or "."

    expected = load_expected(base)

    writer = csv.DictWriter(sys.stdout, fieldnames=COLUMNS)
    writer.writeheader()
    ok_total = 0

    for fp in files:
        row = evaluate_file(fp)
        exp_row = expected.get(row["file"])
        row["ok"] = ""
        if exp_row:
            row["ok"] = "pass" if check_row(row, exp_row) else "FAIL"
            if row["ok"] == "pass":
                ok_total += 1
        writer.writerow(row)

    if expected:
        print(f"Summary: {ok_total}/{len(expected)} passing")
    return 0


if __name__ == "__main__":
    sys.exit(main())
