# api/bankparse/parsers/detect.py
from typing import Optional

SUPPORTED_KINDS = ("csv", "xlsx", "pdf")

PDF_MAGIC = b"%PDF"


def detect_kind(filename: Optional[str], content_type: Optional[str], data: bytes) -> str:
    """Upload kind from name, MIME type and magic bytes: csv, pdf, xlsx or unknown."""
    name = (filename or "").lower()
    mime = (content_type or "").lower()

    if name.endswith(".csv") or "text/csv" in mime:
        return "csv"
    if data[:4] == PDF_MAGIC or name.endswith(".pdf") or "pdf" in mime:
        return "pdf"
    if name.endswith(".xlsx") or "spreadsheet" in mime:
        return "xlsx"
    return "unknown"
