"""
Expense repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from billia.db import models, schemas
from billia.errors import NotFoundError
from billia.utils.validation import MAX_LENGTHS, validate_length, validate_positive_integer, validate_required


def _validate_expense_fields(data: dict) -> dict:
    if "title" in data:
        data["title"] = validate_required(data["title"], "Title")
        validate_length(data["title"], MAX_LENGTHS["title"], "Title")
    if "category" in data:
        data["category"] = validate_required(data["category"], "Category")
        validate_length(data["category"], MAX_LENGTHS["category"], "Category")
    if "amount" in data:
        validate_positive_integer(data["amount"], "Amount")
    validate_length(data.get("note"), MAX_LENGTHS["note"], "Note")
    return data


def create_expense(db: Session, *, user_id: uuid.UUID, expense: schemas.ExpenseCreate, commit: bool = True) -> models.Expense:
    data = _validate_expense_fields(expense.model_dump())
    db_expense = models.Expense(user_id=user_id, **data)
    db.add(db_expense)
    if commit:
        db.commit()
        db.refresh(db_expense)
    else:
        db.flush()
    return db_expense


def get_expense(db: Session, *, user_id: uuid.UUID, expense_id: uuid.UUID) -> Optional[models.Expense]:
    return (
        db.query(models.Expense)
        .filter(models.Expense.id == expense_id, models.Expense.user_id == user_id)
        .first()
    )


def list_expenses(db: Session, *, user_id: uuid.UUID, skip: int = 0, limit: int = 500):
    return (
        db.query(models.Expense)
        .filter(models.Expense.user_id == user_id)
        .order_by(models.Expense.date.desc(), models.Expense.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def update_expense(db: Session, *, user_id: uuid.UUID, expense_id: uuid.UUID, update: schemas.ExpenseUpdate) -> models.Expense:
    db_expense = get_expense(db, user_id=user_id, expense_id=expense_id)
    if db_expense is None:
        raise NotFoundError("Expense not found")
    data = {k: v for k, v in update.model_dump(exclude_unset=True).items() if v is not None or k in ("note", "receipt_url")}
    data = _validate_expense_fields(data)
    for key, value in data.items():
        setattr(db_expense, key, value)
    db.commit()
    db.refresh(db_expense)
    return db_expense


def delete_expense(db: Session, *, user_id: uuid.UUID, expense_id: uuid.UUID) -> None:
    db_expense = get_expense(db, user_id=user_id, expense_id=expense_id)
    if db_expense is None:
        raise NotFoundError("Expense not found")
    (
        db.query(models.Bill)
        .filter(models.Bill.expense_id == db_expense.id)
        .update({models.Bill.expense_id: None}, synchronize_session=False)
    )
    db.delete(db_expense)
    db.commit()
