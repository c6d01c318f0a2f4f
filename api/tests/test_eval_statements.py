import csv
import io
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from scripts import eval_statements

FIXTURES = Path(__file__).resolve().parent / "fixtures" / "statements"


def test_eval_reports_against_expected(tmp_path, capsys):
    (tmp_path / "july.csv").write_bytes((FIXTURES / "reordered_header.csv").read_bytes())
    (tmp_path / "notes.txt").write_text("hello", encoding="utf-8")
    (tmp_path / "expected.csv").write_text(
        "file,kind,num_transactions,total_amount_parsed,balanced\n"
        "july.csv,csv,5,2158.65,false\n"
        "notes.txt,csv,,,\n",
        encoding="utf-8",
    )

    assert eval_statements.main([str(tmp_path)]) == 0

    out = capsys.readouterr().out
    table, summary = out.rsplit("Summary:", 1)
    rows = {r["file"]: r for r in csv.DictReader(io.StringIO(table))}
    assert rows["july.csv"]["ok"] == "pass"
    assert rows["july.csv"]["doc_point"]
    assert rows["notes.txt"]["kind"] == "unknown"
    assert rows["notes.txt"]["ok"] == "FAIL"
    assert summary.strip() == "1/2 passing"
