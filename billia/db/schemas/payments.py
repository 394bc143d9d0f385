import uuid
from datetime import date, datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


LedgerStatus = Literal['PAID', 'UNPAID', 'PARTIAL']


class PaymentCreate(BaseModel):
    # Raw values; save_payment validates them with readable messages
    tenant_id: str
    amount: int
    payment_date: str
    target_month: Optional[str] = None


class Payment(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    payment_status_id: Optional[uuid.UUID] = None
    amount: int
    payment_date: date
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class PaymentStatus(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    tenant_name: Optional[str] = None
    target_month: str
    expected_amount: int
    paid_amount: int
    status: str
    payments: List[Payment] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


class PaymentStatusUpdate(BaseModel):
    status: LedgerStatus


class ReconcileRow(BaseModel):
    date: str
    amount: int
    raw_name: str
    # 'matched' | 'error' | 'review' | 'unmatched'
    status: str
    message: str = ''
    tenant_id: Optional[uuid.UUID] = None
    tenant_name: Optional[str] = None
    invoice_id: Optional[uuid.UUID] = None
    score: Optional[float] = None


class ReconcileResult(BaseModel):
    mode: str
    rows: List[ReconcileRow]
    matched: int = 0
    review: int = 0
    unmatched: int = 0
    errors: int = 0
    applied_count: int = 0
