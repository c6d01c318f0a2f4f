from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class RawRow:
    """A transaction row as a producer saw it, before normalization."""

    date: str = ""
    description: str = ""
    amount: str = ""
    currency: str = ""


@dataclass(frozen=True)
class HeaderHints:
    bank: str = "unknown"
    bank_account: str = "unknown"
    customer_account_number: Optional[str] = None
    statement_date: str = "unknown"
    opening_balance: str = "0"
    closing_balance: str = "0"
    currency: str = ""


@dataclass(frozen=True)
class Header:
    bank: str
    bank_account: str
    customer_account_number: str
    statement_date: str
    opening_balance: str
    closing_balance: str
    currency: str
    row_point: str


@dataclass(frozen=True)
class Transaction:
    date: str
    description: str
    amount: str
    currency: str
    row_point: str


@dataclass(frozen=True)
class Footer:
    num_transactions: int
    total_amount_parsed: str
    balanced: bool
    doc_point: str


@dataclass(frozen=True)
class Statement:
    header: Header
    transactions: Tuple[Transaction, ...]
    footer: Footer

    def to_dict(self) -> Dict[str, Any]:
        return {
            "header": asdict(self.header),
            "transactions": [asdict(t) for t in self.transactions],
            "footer": asdict(self.footer),
        }


@dataclass(frozen=True)
class ParsedStatement:
    kind: str
    statement: Statement
    warnings: List[str] = field(default_factory=list)
    strategy: Optional[str] = None
    processing_ms: int = 0
