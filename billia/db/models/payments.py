import uuid
from sqlalchemy import Column, String, DateTime, Date, Integer, ForeignKey, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class PaymentStatus(Base):
    __tablename__ = 'payment_statuses'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False)
    # "YYYY-MM"
    target_month = Column(String(7), nullable=False)
    expected_amount = Column(Integer, nullable=False, default=0)
    paid_amount = Column(Integer, nullable=False, default=0)
    # 'PAID' | 'UNPAID' | 'PARTIAL'
    status = Column(String(10), nullable=False, default='UNPAID')
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    tenant = relationship("Tenant")
    payments = relationship("Payment", back_populates="payment_status", order_by="desc(Payment.payment_date)")

    @property
    def tenant_name(self):
        return self.tenant.name if self.tenant else None

    __table_args__ = (
        UniqueConstraint('tenant_id', 'target_month', name='uq_payment_statuses_tenant_month'),
    )


class Payment(Base):
    __tablename__ = 'payments'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False, index=True)
    payment_status_id = Column(
        UUID(as_uuid=True), ForeignKey('payment_statuses.id', ondelete='SET NULL'), nullable=True
    )
    amount = Column(Integer, nullable=False)
    payment_date = Column(Date, nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    payment_status = relationship("PaymentStatus", back_populates="payments")
