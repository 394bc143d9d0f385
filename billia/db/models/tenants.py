import uuid
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class TenantGroup(Base):
    __tablename__ = 'tenant_groups'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    tenants = relationship("Tenant", back_populates="group")


class Tenant(Base):
    """A rent-paying party whose bank deposits are reconciled monthly."""
    __tablename__ = 'tenants'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    group_id = Column(UUID(as_uuid=True), ForeignKey('tenant_groups.id', ondelete='SET NULL'), nullable=True)
    name = Column(String(100), nullable=False)
    # Half-width katakana as it appears on bank statements
    name_kana = Column(String(100), nullable=False)
    amount = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    group = relationship("TenantGroup", back_populates="tenants")

    @property
    def group_name(self):
        return self.group.name if self.group else None

    __table_args__ = (
        Index('ix_tenants_user_id_amount', 'user_id', 'amount'),
    )
