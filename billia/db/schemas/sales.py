import uuid
from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class SalesCategoryCreate(BaseModel):
    name: str


class SalesCategory(BaseModel):
    id: uuid.UUID
    name: str
    display_order: int
    entry_count: int = 0
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class SalesEntry(BaseModel):
    id: uuid.UUID
    category_id: uuid.UUID
    month: str
    amount: int
    model_config = ConfigDict(from_attributes=True)


class SalesEntryInput(BaseModel):
    category_id: uuid.UUID
    amount: int


class SalesEntriesUpsert(BaseModel):
    month: str
    entries: List[SalesEntryInput]


class MonthEntries(BaseModel):
    month: str
    categories: List[SalesCategory]
    entries: List[SalesEntry]


class MonthlySalesSummary(BaseModel):
    month: str
    total: int
    by_category: Dict[str, int] = Field(default_factory=dict)


class CategoryAssignment(BaseModel):
    item_index: int
    category_name: str
    amount: int


class CategorizeResult(BaseModel):
    invoice_id: uuid.UUID
    month: str
    assignments: List[CategoryAssignment]
    totals: Dict[str, int]


class MemoParseRequest(BaseModel):
    text: str
    # "invoice" | "quote"
    kind: str = "invoice"


class DraftItem(BaseModel):
    name: str
    quantity: float = 1
    unit_price: int = 0


class InvoiceDraft(BaseModel):
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_address: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    valid_until: Optional[date] = None
    items: List[DraftItem] = Field(default_factory=list)
    note: Optional[str] = None
