"""
Bill (payable) repository functions.

Paying a bill books the matching expense so the finance dashboard sees it.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from billia.db import models, schemas
from billia.db.repositories import expenses as expense_repo
from billia.errors import ConflictError, NotFoundError, ValidationError
from billia.utils.validation import MAX_LENGTHS, validate_length, validate_positive_integer, validate_required

logger = logging.getLogger(__name__)

STATUS_UNPAID = "UNPAID"
STATUS_PAID = "PAID"


def _validate_bill_fields(data: dict) -> dict:
    if "vendor_name" in data:
        data["vendor_name"] = validate_required(data["vendor_name"], "Vendor name")
        validate_length(data["vendor_name"], MAX_LENGTHS["name"], "Vendor name")
    if "title" in data:
        data["title"] = validate_required(data["title"], "Title")
        validate_length(data["title"], MAX_LENGTHS["title"], "Title")
    if "amount" in data:
        validate_positive_integer(data["amount"], "Amount")
    validate_length(data.get("memo"), MAX_LENGTHS["note"], "Memo")
    return data


def create_bill(db: Session, *, user_id: uuid.UUID, bill: schemas.BillCreate) -> models.Bill:
    data = _validate_bill_fields(bill.model_dump())
    if data["due_date"] < data["issue_date"]:
        raise ValidationError("due_date must not be before issue_date")
    db_bill = models.Bill(user_id=user_id, status=STATUS_UNPAID, **data)
    db.add(db_bill)
    db.commit()
    db.refresh(db_bill)
    return db_bill


def get_bill(db: Session, *, user_id: uuid.UUID, bill_id: uuid.UUID) -> Optional[models.Bill]:
    return (
        db.query(models.Bill)
        .filter(models.Bill.id == bill_id, models.Bill.user_id == user_id)
        .first()
    )


def require_bill(db: Session, *, user_id: uuid.UUID, bill_id: uuid.UUID) -> models.Bill:
    db_bill = get_bill(db, user_id=user_id, bill_id=bill_id)
    if db_bill is None:
        raise NotFoundError("Bill not found")
    return db_bill


def list_bills(db: Session, *, user_id: uuid.UUID, status: Optional[str] = None):
    query = db.query(models.Bill).filter(models.Bill.user_id == user_id)
    if status:
        query = query.filter(models.Bill.status == status)
    return query.order_by(models.Bill.due_date.asc()).all()


def update_bill(db: Session, *, user_id: uuid.UUID, bill_id: uuid.UUID, update: schemas.BillUpdate) -> models.Bill:
    db_bill = require_bill(db, user_id=user_id, bill_id=bill_id)
    data = {k: v for k, v in update.model_dump(exclude_unset=True).items() if v is not None or k in ("memo", "file_url")}
    data = _validate_bill_fields(data)
    for key, value in data.items():
        setattr(db_bill, key, value)
    if db_bill.due_date < db_bill.issue_date:
        raise ValidationError("due_date must not be before issue_date")
    db.commit()
    db.refresh(db_bill)
    return db_bill


def delete_bill(db: Session, *, user_id: uuid.UUID, bill_id: uuid.UUID) -> None:
    db_bill = require_bill(db, user_id=user_id, bill_id=bill_id)
    db.delete(db_bill)
    db.commit()


def mark_bill_paid(db: Session, *, user_id: uuid.UUID, bill_id: uuid.UUID, paid_date: date, category: str) -> models.Bill:
    db_bill = require_bill(db, user_id=user_id, bill_id=bill_id)
    if db_bill.status == STATUS_PAID:
        raise ConflictError("Bill is already paid")
    expense = expense_repo.create_expense(
        db,
        user_id=user_id,
        expense=schemas.ExpenseCreate(
            title=f"{db_bill.vendor_name} / {db_bill.title}"[:MAX_LENGTHS["title"]],
            amount=db_bill.amount,
            date=paid_date,
            category=category,
            note=db_bill.memo,
            receipt_url=db_bill.file_url,
        ),
        commit=False,
    )
    db_bill.status = STATUS_PAID
    db_bill.paid_date = paid_date
    db_bill.category = expense.category
    db_bill.expense_id = expense.id
    db.commit()
    db.refresh(db_bill)
    logger.info("bill_paid: bill_id=%s expense_id=%s", db_bill.id, expense.id)
    return db_bill
