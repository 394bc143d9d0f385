"""
User repository functions.
"""
from __future__ import annotations

import uuid
from typing import List, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from billia.db import models


def get_user(db: Session, user_id: uuid.UUID):
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def list_users_with_invoice_counts(db: Session, skip: int = 0, limit: int = 100) -> List[Tuple[models.User, int]]:
    counts = (
        db.query(models.Invoice.user_id, func.count(models.Invoice.id).label("invoice_count"))
        .group_by(models.Invoice.user_id)
        .subquery()
    )
    rows = (
        db.query(models.User, func.coalesce(counts.c.invoice_count, 0))
        .outerjoin(counts, counts.c.user_id == models.User.id)
        .order_by(models.User.created_at.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return [(user, int(count)) for user, count in rows]
