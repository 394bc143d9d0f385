import uuid
from sqlalchemy import Column, String, DateTime, Date, Integer, Float, ForeignKey, Text, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Quote(Base):
    __tablename__ = 'quotes'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    client_id = Column(UUID(as_uuid=True), ForeignKey('clients.id'), nullable=False)
    quote_number = Column(String(32), nullable=False)
    issue_date = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=False)
    subtotal = Column(Integer, nullable=False, default=0)
    tax_amount = Column(Integer, nullable=False, default=0)
    total_amount = Column(Integer, nullable=False, default=0)
    # 'draft' | 'sent' | 'accepted' | 'rejected'
    status = Column(String(20), nullable=False, default='draft')
    notes = Column(Text, nullable=True)
    accept_token = Column(String(64), nullable=True, unique=True)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    converted_invoice_id = Column(UUID(as_uuid=True), ForeignKey('invoices.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    client = relationship("Client")
    items = relationship(
        "QuoteItem",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteItem.position",
    )

    @property
    def client_name(self):
        return self.client.name if self.client else None

    __table_args__ = (
        UniqueConstraint('user_id', 'quote_number', name='uq_quotes_user_number'),
        Index('ix_quotes_user_id_issue_date', 'user_id', 'issue_date'),
    )


class QuoteItem(Base):
    __tablename__ = 'quote_items'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quote_id = Column(UUID(as_uuid=True), ForeignKey('quotes.id', ondelete='CASCADE'), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(200), nullable=False)
    quantity = Column(Float, nullable=False, default=1)
    unit = Column(String(20), nullable=True)
    unit_price = Column(Integer, nullable=False, default=0)
    tax_rate = Column(Float, nullable=False, default=10)
    amount = Column(Integer, nullable=False, default=0)

    quote = relationship("Quote", back_populates="items")


class Invoice(Base):
    __tablename__ = 'invoices'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    client_id = Column(UUID(as_uuid=True), ForeignKey('clients.id'), nullable=False)
    invoice_number = Column(String(32), nullable=False)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    subtotal = Column(Integer, nullable=False, default=0)
    tax_amount = Column(Integer, nullable=False, default=0)
    withholding_tax = Column(Integer, nullable=False, default=0)
    total_amount = Column(Integer, nullable=False, default=0)
    tax_rate = Column(Float, nullable=False, default=10)
    tax_rounding = Column(String(10), nullable=False, default='floor')
    # 'draft' | 'unpaid' | 'partial' | 'paid'
    status = Column(String(20), nullable=False, default='unpaid')
    notes = Column(Text, nullable=True)
    paid_date = Column(Date, nullable=True)
    recurring_template_id = Column(
        UUID(as_uuid=True), ForeignKey('recurring_templates.id', ondelete='SET NULL'), nullable=True
    )
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    client = relationship("Client")
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )

    @property
    def client_name(self):
        return self.client.name if self.client else None

    __table_args__ = (
        UniqueConstraint('user_id', 'invoice_number', name='uq_invoices_user_number'),
        Index('ix_invoices_user_id_status', 'user_id', 'status'),
        Index('ix_invoices_user_id_issue_date', 'user_id', 'issue_date'),
    )


class InvoiceItem(Base):
    __tablename__ = 'invoice_items'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    invoice_id = Column(UUID(as_uuid=True), ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(200), nullable=False)
    quantity = Column(Float, nullable=False, default=1)
    unit = Column(String(20), nullable=True)
    unit_price = Column(Integer, nullable=False, default=0)
    tax_rate = Column(Float, nullable=False, default=10)
    amount = Column(Integer, nullable=False, default=0)

    invoice = relationship("Invoice", back_populates="items")
