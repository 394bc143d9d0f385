import uuid
from datetime import date, datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


Interval = Literal['MONTHLY', 'WEEKLY', 'YEARLY']


class RecurringItemInput(BaseModel):
    name: str
    quantity: float = 1
    unit_price: int
    tax_rate: float = 10


class RecurringItem(RecurringItemInput):
    id: uuid.UUID
    position: int
    model_config = ConfigDict(from_attributes=True)


class RecurringTemplateBase(BaseModel):
    tenant_id: uuid.UUID
    interval: Interval = 'MONTHLY'
    creation_day: int
    send_day: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None
    note: Optional[str] = None


class RecurringTemplateCreate(RecurringTemplateBase):
    items: List[RecurringItemInput]


class RecurringTemplateUpdate(RecurringTemplateCreate):
    pass


class RecurringTemplate(RecurringTemplateBase):
    id: uuid.UUID
    client_id: uuid.UUID
    tenant_name: Optional[str] = None
    next_execution_date: date
    last_executed_at: Optional[datetime] = None
    is_active: bool
    items: List[RecurringItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class ToggleActive(BaseModel):
    is_active: bool


class RunResultItem(BaseModel):
    template_id: uuid.UUID
    tenant_name: Optional[str] = None
    # 'created' | 'skipped' | 'error'
    status: str
    invoice_id: Optional[uuid.UUID] = None
    message: str = ''


class RunReport(BaseModel):
    processed: int
    results: List[RunResultItem] = Field(default_factory=list)
