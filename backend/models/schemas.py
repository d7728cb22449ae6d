from datetime import date as Date
from enum import Enum
from typing import Optional, List, Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class SplitType(str, Enum):
    equal = "equal"
    personal = "personal"


class SyncOp(str, Enum):
    insert = "insert"
    update = "update"
    delete = "delete"


# ── Expense ────────────────────────────────────────────
class Expense(BaseModel):
    id: str
    item_name: str
    amount: float
    buyer: str
    date: Date
    split_type: SplitType = SplitType.equal
    category: str
    provider: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        use_enum_values = True

class ExpenseCreate(BaseModel):
    """Sent by the entry form. Amount may arrive as raw text from the input box."""
    item_name: str = ""
    amount: Any = None
    buyer: Optional[str] = None
    date: Optional[Date] = None
    split_type: SplitType = SplitType.equal
    category: Optional[str] = None
    provider: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

class ExpenseWriteResult(BaseModel):
    expense: Optional[Expense] = None
    removed: int = 0
    sync_error: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ── Realtime sync ──────────────────────────────────────
class SyncMessage(BaseModel):
    op: SyncOp
    record: dict = Field(default_factory=dict)


# ── Receipt scanning ───────────────────────────────────
class ReceiptLine(BaseModel):
    line: str
    label: str
    amount: float

class TotalCandidate(BaseModel):
    line: str
    amount: float
    score: int

class ParsedLines(BaseModel):
    items: List[ReceiptLine] = []
    totals: List[TotalCandidate] = []

class ParseRequest(BaseModel):
    text: str
    total_only: bool = True
    ignore_fees: bool = True

class ScanResult(BaseModel):
    items: List[ReceiptLine]
    totals: List[TotalCandidate]
    total: Optional[float] = None
    status: str


# ── Settlement ─────────────────────────────────────────
class Summary(BaseModel):
    total_spent: float
    paid: dict[str, float]
    owed: dict[str, float]
    net: dict[str, float]
    balance: str

class CategoryTotal(BaseModel):
    name: str
    total: float
    percent: float

class ProviderTotal(BaseModel):
    name: str
    total: float

class MonthSummary(BaseModel):
    month: str             # e.g. "2026-02"
    month_label: str       # e.g. "Feb 2026"
    expense_count: int
    summary: Summary
    categories: List[CategoryTotal]
    providers: List[ProviderTotal]

class MonthlyTotal(BaseModel):
    month: str
    month_label: str
    total: float

class TrendsResponse(BaseModel):
    months: List[MonthlyTotal]
