import uuid
from datetime import date
from typing import Optional
from pydantic import BaseModel


class MonthlyFinancial(BaseModel):
    month: str
    income: int
    expense: int
    profit: int


class CategoryBreakdown(BaseModel):
    category: str
    amount: int
    percentage: int


class TopClient(BaseModel):
    client_id: uuid.UUID
    client_name: str
    total: int


class UpcomingPayment(BaseModel):
    invoice_id: uuid.UUID
    invoice_number: str
    client_name: Optional[str] = None
    due_date: date
    total_amount: int
    status: str
    is_overdue: bool


class FinanceKpi(BaseModel):
    month: str
    income: int
    expense: int
    profit: int
    unpaid_total: int
