import uuid
from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class LineItemInput(BaseModel):
    # Loose on purpose: blank rows are filtered out, not rejected
    name: str = ''
    quantity: float = 0
    unit: Optional[str] = None
    unit_price: int = 0


class DocumentItem(BaseModel):
    id: uuid.UUID
    position: int
    name: str
    quantity: float
    unit: Optional[str] = None
    unit_price: int
    tax_rate: float
    amount: int
    model_config = ConfigDict(from_attributes=True)


class ClientChoice(BaseModel):
    """Either an existing client id or the name of a client to create."""
    client_id: Optional[uuid.UUID] = None
    new_client_name: Optional[str] = None


class QuoteCreate(ClientChoice):
    issue_date: date
    valid_until: date
    items: List[LineItemInput]
    notes: Optional[str] = None


class Quote(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    client_name: Optional[str] = None
    quote_number: str
    issue_date: date
    valid_until: date
    subtotal: int
    tax_amount: int
    total_amount: int
    status: str
    notes: Optional[str] = None
    accepted_at: Optional[datetime] = None
    converted_invoice_id: Optional[uuid.UUID] = None
    items: List[DocumentItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class PublicQuoteItem(BaseModel):
    name: str
    quantity: float
    unit: Optional[str] = None
    unit_price: int
    amount: int
    model_config = ConfigDict(from_attributes=True)


class PublicQuote(BaseModel):
    quote_number: str
    client_name: Optional[str] = None
    valid_until: date
    total_amount: int
    status: str
    items: List[PublicQuoteItem] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


class AcceptLink(BaseModel):
    token: str
    url: str


class BulkConvertRequest(BaseModel):
    quote_ids: List[uuid.UUID]


class BulkConvertResult(BaseModel):
    converted_count: int
    invoice_ids: List[uuid.UUID] = Field(default_factory=list)


class InvoiceCreate(ClientChoice):
    issue_date: date
    due_date: date
    items: List[LineItemInput]
    notes: Optional[str] = None
    withholding_tax: int = 0


class InvoiceUpdate(BaseModel):
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    items: Optional[List[LineItemInput]] = None
    notes: Optional[str] = None
    withholding_tax: Optional[int] = None


class Invoice(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    client_name: Optional[str] = None
    invoice_number: str
    issue_date: date
    due_date: date
    subtotal: int
    tax_amount: int
    withholding_tax: int
    total_amount: int
    tax_rate: float
    status: str
    notes: Optional[str] = None
    paid_date: Optional[date] = None
    recurring_template_id: Optional[uuid.UUID] = None
    items: List[DocumentItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class StatusUpdate(BaseModel):
    status: str


class BulkStatusUpdate(BaseModel):
    ids: List[uuid.UUID]
    status: str


class BulkStatusResult(BaseModel):
    updated_count: int


class Receipt(BaseModel):
    invoice_id: uuid.UUID
    invoice_number: str
    client_name: Optional[str] = None
    total_amount: int
    paid_date: Optional[date] = None
    issue_date: date
    issuer_company_name: Optional[str] = None
    issuer_address: Optional[str] = None
    issuer_invoice_reg_number: Optional[str] = None
    stamp_url: Optional[str] = None


class AgingRow(BaseModel):
    invoice_id: uuid.UUID
    invoice_number: str
    client_name: Optional[str] = None
    due_date: date
    total_amount: int
    status: str
    days_overdue: int
    bucket: str


class AgingReport(BaseModel):
    rows: List[AgingRow]
    bucket_totals: Dict[str, int]
    grand_total: int


class RecurringInvoiceSummary(BaseModel):
    id: uuid.UUID
    issue_date: date
    total_amount: int
    client_name: Optional[str] = None
    client_email: Optional[str] = None
