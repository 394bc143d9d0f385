"""
Payment-status ledger.

One ``PaymentStatus`` row per tenant per month tracks the expected rent
against the sum of recorded payments. The status is always derived from the
two amounts, except when the caller overrides it by hand.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session

from billia.db import models
from billia.db.repositories import tenants as tenant_repo
from billia.errors import NotFoundError, ValidationError
from billia.utils import calendar
from billia.utils.validation import (
    MAX_PAYMENT_AMOUNT,
    validate_date,
    validate_positive_integer,
    validate_uuid,
)

logger = logging.getLogger(__name__)

STATUS_PAID = "PAID"
STATUS_UNPAID = "UNPAID"
STATUS_PARTIAL = "PARTIAL"
LEDGER_STATUSES = (STATUS_PAID, STATUS_UNPAID, STATUS_PARTIAL)


def compute_status(paid_amount: int, expected_amount: int) -> str:
    if paid_amount >= expected_amount:
        return STATUS_PAID
    if paid_amount == 0:
        return STATUS_UNPAID
    return STATUS_PARTIAL


def _find_status(db: Session, tenant_id: uuid.UUID, target_month: str) -> Optional[models.PaymentStatus]:
    return (
        db.query(models.PaymentStatus)
        .filter(models.PaymentStatus.tenant_id == tenant_id, models.PaymentStatus.target_month == target_month)
        .first()
    )


def get_or_create_payment_status(db: Session, *, tenant: models.Tenant, target_month: str) -> models.PaymentStatus:
    """Return the month's row, building it from recorded payments when missing."""
    start, end = calendar.month_bounds(target_month)
    row = _find_status(db, tenant.id, target_month)
    if row is not None:
        return row
    payments = (
        db.query(models.Payment)
        .filter(
            models.Payment.tenant_id == tenant.id,
            models.Payment.payment_date >= start,
            models.Payment.payment_date < end,
        )
        .all()
    )
    paid = sum(p.amount for p in payments)
    row = models.PaymentStatus(
        user_id=tenant.user_id,
        tenant_id=tenant.id,
        target_month=target_month,
        expected_amount=tenant.amount,
        paid_amount=paid,
        status=compute_status(paid, tenant.amount),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def create_payment_with_status(
    db: Session,
    *,
    tenant: models.Tenant,
    amount: int,
    payment_date: date,
    target_month: Optional[str] = None,
    commit: bool = True,
) -> models.Payment:
    """Record a payment and roll it into the month's status row."""
    target_month = target_month or calendar.month_key(payment_date)
    calendar.parse_month_key(target_month)
    status_row = _find_status(db, tenant.id, target_month)
    if status_row is None:
        status_row = models.PaymentStatus(
            user_id=tenant.user_id,
            tenant_id=tenant.id,
            target_month=target_month,
            expected_amount=tenant.amount,
            paid_amount=0,
            status=STATUS_UNPAID,
        )
        db.add(status_row)
        db.flush()

    payment = models.Payment(
        user_id=tenant.user_id,
        tenant_id=tenant.id,
        payment_status_id=status_row.id,
        amount=amount,
        payment_date=payment_date,
        note=f"{target_month}分",
    )
    db.add(payment)
    status_row.paid_amount = (status_row.paid_amount or 0) + amount
    status_row.status = compute_status(status_row.paid_amount, status_row.expected_amount)
    if commit:
        db.commit()
        db.refresh(payment)
    else:
        db.flush()
    logger.info(
        "payment_recorded: tenant_id=%s month=%s amount=%s status=%s",
        tenant.id, target_month, amount, status_row.status,
    )
    return payment


def save_payment(
    db: Session,
    *,
    user_id: uuid.UUID,
    tenant_id,
    amount,
    payment_date,
    target_month: Optional[str] = None,
) -> models.Payment:
    """Validate raw input, then record the payment."""
    tenant_uuid = validate_uuid(tenant_id, "tenant_id")
    amount = validate_positive_integer(amount, "Amount")
    if amount > MAX_PAYMENT_AMOUNT:
        raise ValidationError(f"Amount must be at most {MAX_PAYMENT_AMOUNT:,}")
    paid_on = validate_date(payment_date, "Payment date")
    if target_month:
        calendar.parse_month_key(target_month)
    tenant = tenant_repo.require_tenant(db, user_id=user_id, tenant_id=tenant_uuid)
    return create_payment_with_status(db, tenant=tenant, amount=amount, payment_date=paid_on, target_month=target_month)


def delete_payment(db: Session, *, user_id: uuid.UUID, payment_id: uuid.UUID) -> None:
    payment = (
        db.query(models.Payment)
        .filter(models.Payment.id == payment_id, models.Payment.user_id == user_id)
        .first()
    )
    if payment is None:
        raise NotFoundError("Payment not found")
    status_row = payment.payment_status
    if status_row is not None:
        status_row.paid_amount = max(0, status_row.paid_amount - payment.amount)
        status_row.status = compute_status(status_row.paid_amount, status_row.expected_amount)
    db.delete(payment)
    db.commit()


def list_payments_for_tenant(db: Session, *, user_id: uuid.UUID, tenant_id: uuid.UUID) -> List[models.Payment]:
    tenant_repo.require_tenant(db, user_id=user_id, tenant_id=tenant_id)
    return (
        db.query(models.Payment)
        .filter(models.Payment.tenant_id == tenant_id, models.Payment.user_id == user_id)
        .order_by(models.Payment.payment_date.desc(), models.Payment.created_at.desc())
        .all()
    )


def list_statuses_for_tenant(db: Session, *, user_id: uuid.UUID, tenant_id: uuid.UUID) -> List[models.PaymentStatus]:
    tenant_repo.require_tenant(db, user_id=user_id, tenant_id=tenant_id)
    return (
        db.query(models.PaymentStatus)
        .filter(models.PaymentStatus.tenant_id == tenant_id, models.PaymentStatus.user_id == user_id)
        .order_by(models.PaymentStatus.target_month.desc())
        .all()
    )


def list_statuses(
    db: Session,
    *,
    user_id: uuid.UUID,
    group_id: Optional[uuid.UUID] = None,
    target_month: Optional[str] = None,
) -> List[models.PaymentStatus]:
    """Statuses for a group or every tenant: newest month first, then tenant name."""
    query = (
        db.query(models.PaymentStatus)
        .join(models.Tenant, models.Tenant.id == models.PaymentStatus.tenant_id)
        .filter(models.PaymentStatus.user_id == user_id)
    )
    if group_id:
        query = query.filter(models.Tenant.group_id == group_id)
    if target_month:
        calendar.parse_month_key(target_month)
        query = query.filter(models.PaymentStatus.target_month == target_month)
    return query.order_by(models.PaymentStatus.target_month.desc(), models.Tenant.name.asc()).all()


def update_payment_status(db: Session, *, user_id: uuid.UUID, status_id: uuid.UUID, status: str) -> models.PaymentStatus:
    if status not in LEDGER_STATUSES:
        raise ValidationError("status must be PAID, UNPAID or PARTIAL")
    row = (
        db.query(models.PaymentStatus)
        .filter(models.PaymentStatus.id == status_id, models.PaymentStatus.user_id == user_id)
        .first()
    )
    if row is None:
        raise NotFoundError("Payment status not found")
    row.status = status
    db.commit()
    db.refresh(row)
    return row
