"""
Payment and payment-status ledger API endpoints.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from billia import audit
from billia.audit import AuditAction
from billia.api.deps import get_current_user
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import payments as payment_repo

router = APIRouter(prefix="/payments", tags=["payments"])
statuses_router = APIRouter(prefix="/payment-statuses", tags=["payments"])


@router.post("/", response_model=schemas.Payment, status_code=status.HTTP_201_CREATED)
def create_payment_endpoint(
    payment: schemas.PaymentCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    db_payment = payment_repo.save_payment(
        db,
        user_id=user.id,
        tenant_id=payment.tenant_id,
        amount=payment.amount,
        payment_date=payment.payment_date,
        target_month=payment.target_month,
    )
    audit.record(
        db,
        action=AuditAction.PAYMENT_CREATE,
        target_type="payment",
        target_id=db_payment.id,
        actor_user_id=user.id,
        metadata={"tenant_id": str(db_payment.tenant_id), "amount": db_payment.amount},
    )
    return db_payment


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment_endpoint(
    payment_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    payment_repo.delete_payment(db, user_id=user.id, payment_id=payment_id)
    audit.record(
        db,
        action=AuditAction.PAYMENT_DELETE,
        target_type="payment",
        target_id=payment_id,
        actor_user_id=user.id,
    )


@statuses_router.get("/", response_model=List[schemas.PaymentStatus])
def list_statuses_endpoint(
    group_id: Optional[uuid.UUID] = None,
    month: Optional[str] = None,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return payment_repo.list_statuses(db, user_id=user.id, group_id=group_id, target_month=month)


@statuses_router.put("/{status_id}", response_model=schemas.PaymentStatus)
def override_status_endpoint(
    status_id: uuid.UUID,
    body: schemas.PaymentStatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    row = payment_repo.update_payment_status(db, user_id=user.id, status_id=status_id, status=body.status)
    audit.record(
        db,
        action=AuditAction.PAYMENT_STATUS_OVERRIDE,
        target_type="payment_status",
        target_id=status_id,
        actor_user_id=user.id,
        metadata={"status": body.status, "target_month": row.target_month},
    )
    return row
