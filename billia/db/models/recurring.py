import uuid
from sqlalchemy import Column, String, DateTime, Date, Boolean, Integer, Float, ForeignKey, Text, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class RecurringTemplate(Base):
    __tablename__ = 'recurring_templates'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    client_id = Column(UUID(as_uuid=True), ForeignKey('clients.id'), nullable=False)
    # 'MONTHLY' | 'WEEKLY' | 'YEARLY'
    interval = Column(String(10), nullable=False, default='MONTHLY')
    creation_day = Column(Integer, nullable=False)
    send_day = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    next_execution_date = Column(Date, nullable=False)
    last_executed_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    tenant = relationship("Tenant")
    client = relationship("Client")
    items = relationship(
        "RecurringTemplateItem",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="RecurringTemplateItem.position",
    )

    @property
    def tenant_name(self):
        return self.tenant.name if self.tenant else None

    __table_args__ = (
        Index('ix_recurring_templates_due', 'is_active', 'next_execution_date'),
    )


class RecurringTemplateItem(Base):
    __tablename__ = 'recurring_template_items'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    template_id = Column(
        UUID(as_uuid=True), ForeignKey('recurring_templates.id', ondelete='CASCADE'), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(200), nullable=False)
    quantity = Column(Float, nullable=False, default=1)
    unit_price = Column(Integer, nullable=False, default=0)
    tax_rate = Column(Float, nullable=False, default=10)

    template = relationship("RecurringTemplate", back_populates="items")
