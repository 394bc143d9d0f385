import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Integer, Float, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class UserProfile(Base):
    """Issuer details printed on every document, plus billing defaults."""
    __tablename__ = 'user_profiles'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    company_name = Column(String(100), nullable=True)
    representative_name = Column(String(100), nullable=True)
    address = Column(Text, nullable=True)
    phone_number = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    invoice_reg_number = Column(String(20), nullable=True)
    # 'end_of_next_month' | 'days_after_issue'
    default_payment_term = Column(String(32), nullable=False, default='end_of_next_month')
    default_payment_terms = Column(Integer, nullable=False, default=30)
    invoice_number_prefix = Column(String(20), nullable=False, default='INV-')
    invoice_number_start = Column(Integer, nullable=False, default=1)
    tax_rate = Column(Float, nullable=False, default=10)
    # 'floor' | 'ceil' | 'round'
    tax_rounding = Column(String(10), nullable=False, default='floor')
    invoice_design = Column(String(32), nullable=False, default='classic')
    logo_url = Column(Text, nullable=True)
    stamp_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    user = relationship("User", back_populates="profile")


class BankAccount(Base):
    __tablename__ = 'bank_accounts'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    bank_name = Column(String(100), nullable=False)
    branch_name = Column(String(100), nullable=False)
    account_type = Column(String(20), nullable=False, default='普通')
    account_number = Column(String(20), nullable=False)
    account_holder = Column(String(100), nullable=False)
    is_default = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)
