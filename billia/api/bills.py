"""
Bills (payables) API endpoints.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from billia.api.deps import get_current_user
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import bills as bill_repo

router = APIRouter(prefix="/bills", tags=["bills"])


@router.post("/", response_model=schemas.Bill, status_code=status.HTTP_201_CREATED)
def create_bill_endpoint(
    bill: schemas.BillCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return bill_repo.create_bill(db, user_id=user.id, bill=bill)


@router.get("/", response_model=List[schemas.Bill])
def list_bills_endpoint(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return bill_repo.list_bills(db, user_id=user.id, status=status)


@router.get("/{bill_id}", response_model=schemas.Bill)
def get_bill_endpoint(
    bill_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return bill_repo.require_bill(db, user_id=user.id, bill_id=bill_id)


@router.put("/{bill_id}", response_model=schemas.Bill)
def update_bill_endpoint(
    bill_id: uuid.UUID,
    update: schemas.BillUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return bill_repo.update_bill(db, user_id=user.id, bill_id=bill_id, update=update)


@router.delete("/{bill_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_bill_endpoint(
    bill_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    bill_repo.delete_bill(db, user_id=user.id, bill_id=bill_id)


@router.post("/{bill_id}/pay", response_model=schemas.Bill)
def pay_bill_endpoint(
    bill_id: uuid.UUID,
    body: schemas.MarkBillPaid,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return bill_repo.mark_bill_paid(
        db, user_id=user.id, bill_id=bill_id, paid_date=body.paid_date, category=body.category
    )
