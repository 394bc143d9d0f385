import uuid
import datetime as dt
from typing import Optional
from pydantic import BaseModel, ConfigDict


class ExpenseBase(BaseModel):
    title: str
    amount: int
    date: dt.date
    category: str
    note: Optional[str] = None
    receipt_url: Optional[str] = None


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(BaseModel):
    title: Optional[str] = None
    amount: Optional[int] = None
    date: Optional[dt.date] = None
    category: Optional[str] = None
    note: Optional[str] = None
    receipt_url: Optional[str] = None


class Expense(ExpenseBase):
    id: uuid.UUID
    created_at: Optional[dt.datetime] = None
    model_config = ConfigDict(from_attributes=True)


class BillBase(BaseModel):
    vendor_name: str
    title: str
    amount: int
    issue_date: dt.date
    due_date: dt.date
    memo: Optional[str] = None
    file_url: Optional[str] = None


class BillCreate(BillBase):
    pass


class BillUpdate(BaseModel):
    vendor_name: Optional[str] = None
    title: Optional[str] = None
    amount: Optional[int] = None
    issue_date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None
    memo: Optional[str] = None
    file_url: Optional[str] = None


class Bill(BillBase):
    id: uuid.UUID
    status: str
    paid_date: Optional[dt.date] = None
    category: Optional[str] = None
    expense_id: Optional[uuid.UUID] = None
    created_at: Optional[dt.datetime] = None
    model_config = ConfigDict(from_attributes=True)


class MarkBillPaid(BaseModel):
    paid_date: dt.date
    category: str
