import uuid
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class SalesCategory(Base):
    __tablename__ = 'sales_categories'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(50), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    entries = relationship("CategorySalesEntry", back_populates="category", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('user_id', 'name', name='uq_sales_categories_user_name'),
    )


class CategorySalesEntry(Base):
    __tablename__ = 'category_sales_entries'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    category_id = Column(UUID(as_uuid=True), ForeignKey('sales_categories.id', ondelete='CASCADE'), nullable=False)
    # "YYYY-MM"
    month = Column(String(7), nullable=False)
    amount = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    category = relationship("SalesCategory", back_populates="entries")

    __table_args__ = (
        UniqueConstraint('user_id', 'category_id', 'month', name='uq_category_sales_entries_month'),
    )
