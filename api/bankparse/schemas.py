from pydantic import BaseModel
from typing import Optional, Dict, Any, List


class HeaderOut(BaseModel):
    bank: str
    bank_account: str
    customer_account_number: str
    statement_date: str
    opening_balance: str
    closing_balance: str
    currency: str
    row_point: str


class TransactionOut(BaseModel):
    date: str
    description: str
    amount: str
    currency: str
    row_point: str


class FooterOut(BaseModel):
    num_transactions: int
    total_amount_parsed: str
    balanced: bool
    doc_point: str


class StatementOut(BaseModel):
    header: HeaderOut
    transactions: List[TransactionOut]
    footer: FooterOut


class ParseResponse(BaseModel):
    kind: str
    statement: StatementOut
    warnings: List[str] = []
    strategy: Optional[str] = None
    meta: Dict[str, Any] = {}
