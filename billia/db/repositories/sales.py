"""
Sales category and monthly sales entry repository functions.
"""
from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import date
from typing import Iterable, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from billia.db import models
from billia.errors import ConflictError, NotFoundError, ValidationError
from billia.utils import calendar
from billia.utils.validation import MAX_LENGTHS, validate_length, validate_required


def create_category(db: Session, *, user_id: uuid.UUID, name: str) -> models.SalesCategory:
    name = validate_required(name, "Category name")
    validate_length(name, MAX_LENGTHS["category"], "Category name")
    duplicate = (
        db.query(models.SalesCategory.id)
        .filter(models.SalesCategory.user_id == user_id, models.SalesCategory.name == name)
        .first()
    )
    if duplicate:
        raise ConflictError(f"Category '{name}' already exists")
    max_order = (
        db.query(func.max(models.SalesCategory.display_order))
        .filter(models.SalesCategory.user_id == user_id)
        .scalar()
    )
    db_category = models.SalesCategory(
        user_id=user_id,
        name=name,
        display_order=(max_order if max_order is not None else -1) + 1,
    )
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


def list_categories(db: Session, *, user_id: uuid.UUID) -> List[models.SalesCategory]:
    return (
        db.query(models.SalesCategory)
        .filter(models.SalesCategory.user_id == user_id)
        .order_by(models.SalesCategory.display_order.asc(), models.SalesCategory.name.asc())
        .all()
    )


def list_categories_with_counts(db: Session, *, user_id: uuid.UUID) -> List[dict]:
    rows = (
        db.query(models.SalesCategory, func.count(models.CategorySalesEntry.id))
        .outerjoin(models.CategorySalesEntry, models.CategorySalesEntry.category_id == models.SalesCategory.id)
        .filter(models.SalesCategory.user_id == user_id)
        .group_by(models.SalesCategory.id)
        .order_by(models.SalesCategory.display_order.asc(), models.SalesCategory.name.asc())
        .all()
    )
    return [
        {
            "id": category.id,
            "name": category.name,
            "display_order": category.display_order,
            "entry_count": int(count),
            "created_at": category.created_at,
        }
        for category, count in rows
    ]


def _require_category(db: Session, user_id: uuid.UUID, category_id: uuid.UUID) -> models.SalesCategory:
    db_category = (
        db.query(models.SalesCategory)
        .filter(models.SalesCategory.id == category_id, models.SalesCategory.user_id == user_id)
        .first()
    )
    if db_category is None:
        raise NotFoundError("Sales category not found")
    return db_category


def delete_category(db: Session, *, user_id: uuid.UUID, category_id: uuid.UUID) -> None:
    db_category = _require_category(db, user_id, category_id)
    db.delete(db_category)
    db.commit()


def list_entries(db: Session, *, user_id: uuid.UUID, month: str) -> List[models.CategorySalesEntry]:
    calendar.parse_month_key(month)
    return (
        db.query(models.CategorySalesEntry)
        .filter(models.CategorySalesEntry.user_id == user_id, models.CategorySalesEntry.month == month)
        .all()
    )


def _get_entry(db: Session, user_id: uuid.UUID, category_id: uuid.UUID, month: str):
    return (
        db.query(models.CategorySalesEntry)
        .filter(
            models.CategorySalesEntry.user_id == user_id,
            models.CategorySalesEntry.category_id == category_id,
            models.CategorySalesEntry.month == month,
        )
        .first()
    )


def upsert_entries(db: Session, *, user_id: uuid.UUID, month: str, entries: Iterable) -> List[models.CategorySalesEntry]:
    """Set amounts for the month; one entry per category."""
    calendar.parse_month_key(month)
    saved = []
    for entry in entries:
        if entry.amount < 0:
            raise ValidationError("Sales amount must not be negative")
        _require_category(db, user_id, entry.category_id)
        db_entry = _get_entry(db, user_id, entry.category_id, month)
        if db_entry is None:
            db_entry = models.CategorySalesEntry(
                user_id=user_id, category_id=entry.category_id, month=month, amount=entry.amount
            )
            db.add(db_entry)
        else:
            db_entry.amount = entry.amount
        db.flush()
        saved.append(db_entry)
    db.commit()
    return saved


def add_to_entry(db: Session, *, user_id: uuid.UUID, category_id: uuid.UUID, month: str, amount: int) -> models.CategorySalesEntry:
    """Increase the month's entry by `amount`, creating it when missing (flush only)."""
    db_entry = _get_entry(db, user_id, category_id, month)
    if db_entry is None:
        db_entry = models.CategorySalesEntry(user_id=user_id, category_id=category_id, month=month, amount=0)
        db.add(db_entry)
    db_entry.amount = (db_entry.amount or 0) + amount
    db.flush()
    return db_entry


def monthly_summary(db: Session, *, user_id: uuid.UUID, months: int = 12, today: Optional[date] = None) -> List[dict]:
    today = today or calendar.today()
    keys = calendar.recent_month_keys(months, today)
    rows = (
        db.query(models.CategorySalesEntry, models.SalesCategory.name)
        .join(models.SalesCategory, models.SalesCategory.id == models.CategorySalesEntry.category_id)
        .filter(
            models.CategorySalesEntry.user_id == user_id,
            models.CategorySalesEntry.month.in_(keys),
        )
        .all()
    )
    by_month = defaultdict(lambda: defaultdict(int))
    for entry, name in rows:
        by_month[entry.month][name] += entry.amount
    return [
        {"month": key, "total": sum(by_month[key].values()), "by_category": dict(by_month[key])}
        for key in keys
    ]
