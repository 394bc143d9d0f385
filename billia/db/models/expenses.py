import uuid
from sqlalchemy import Column, String, DateTime, Date, Integer, ForeignKey, Text, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Expense(Base):
    __tablename__ = 'expenses'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    title = Column(String(200), nullable=False)
    amount = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    category = Column(String(50), nullable=False)
    note = Column(Text, nullable=True)
    receipt_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('ix_expenses_user_id_date', 'user_id', 'date'),
    )


class Bill(Base):
    """A payable received from a vendor."""
    __tablename__ = 'bills'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    vendor_name = Column(String(100), nullable=False)
    title = Column(String(200), nullable=False)
    amount = Column(Integer, nullable=False)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    # 'UNPAID' | 'PAID'
    status = Column(String(10), nullable=False, default='UNPAID')
    paid_date = Column(Date, nullable=True)
    category = Column(String(50), nullable=True)
    memo = Column(Text, nullable=True)
    file_url = Column(Text, nullable=True)
    expense_id = Column(UUID(as_uuid=True), ForeignKey('expenses.id', ondelete='SET NULL'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    expense = relationship("Expense")

    __table_args__ = (
        Index('ix_bills_user_id_due_date', 'user_id', 'due_date'),
    )
