from __future__ import annotations

from typing import Iterable, List


class StatementError(Exception):
    """Base class for fatal statement-processing errors."""


class UnsupportedFormat(StatementError):
    def __init__(self, kind: str | None):
        self.kind = kind or "unknown"
        super().__init__(f"Unsupported file type: {self.kind}")


class ExtractionExhausted(StatementError):
    """Every text extraction stage failed; carries the accumulated warnings in order."""

    def __init__(self, warnings: Iterable[str]):
        self.warnings: List[str] = list(warnings)
        super().__init__(" | ".join(self.warnings) or "Text extraction failed")
