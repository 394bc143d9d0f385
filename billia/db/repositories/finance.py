"""
Finance dashboard aggregations.

Aggregation happens in Python over the caller's rows so the same code runs
on PostgreSQL and on the SQLite test database.
"""
from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import date
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from billia.db import models
from billia.db.repositories.invoices import OPEN_STATUSES, STATUS_DRAFT
from billia.utils import calendar
from billia.utils.money import round_yen


def _issued_invoices(db: Session, user_id: uuid.UUID, since: date):
    return (
        db.query(models.Invoice)
        .filter(
            models.Invoice.user_id == user_id,
            models.Invoice.status != STATUS_DRAFT,
            models.Invoice.issue_date >= since,
        )
        .all()
    )


def _expenses_since(db: Session, user_id: uuid.UUID, since: date):
    return (
        db.query(models.Expense)
        .filter(models.Expense.user_id == user_id, models.Expense.date >= since)
        .all()
    )


def monthly_financials(db: Session, *, user_id: uuid.UUID, months: int = 6, today: Optional[date] = None) -> List[dict]:
    today = today or calendar.today()
    keys = calendar.recent_month_keys(months, today)
    since, _ = calendar.month_bounds(keys[0])
    income = defaultdict(int)
    expense = defaultdict(int)
    for db_invoice in _issued_invoices(db, user_id, since):
        income[calendar.month_key(db_invoice.issue_date)] += db_invoice.total_amount
    for db_expense in _expenses_since(db, user_id, since):
        expense[calendar.month_key(db_expense.date)] += db_expense.amount
    return [
        {"month": key, "income": income[key], "expense": expense[key], "profit": income[key] - expense[key]}
        for key in keys
    ]


def expenses_by_category(db: Session, *, user_id: uuid.UUID, months: int = 3, today: Optional[date] = None) -> List[dict]:
    today = today or calendar.today()
    since, _ = calendar.month_bounds(calendar.recent_month_keys(months, today)[0])
    totals = defaultdict(int)
    for db_expense in _expenses_since(db, user_id, since):
        totals[db_expense.category] += db_expense.amount
    grand_total = sum(totals.values())
    rows = [
        {
            "category": category,
            "amount": amount,
            "percentage": round_yen(amount * 100 / grand_total) if grand_total else 0,
        }
        for category, amount in totals.items()
    ]
    rows.sort(key=lambda r: r["amount"], reverse=True)
    return rows


def top_clients(db: Session, *, user_id: uuid.UUID, limit: int = 5) -> List[dict]:
    total = func.sum(models.Invoice.total_amount).label("total")
    rows = (
        db.query(models.Client.id, models.Client.name, total)
        .join(models.Invoice, models.Invoice.client_id == models.Client.id)
        .filter(models.Invoice.user_id == user_id, models.Invoice.status != STATUS_DRAFT)
        .group_by(models.Client.id, models.Client.name)
        .order_by(total.desc())
        .limit(limit)
        .all()
    )
    return [{"client_id": cid, "client_name": name, "total": int(amount or 0)} for cid, name, amount in rows]


def upcoming_payments(db: Session, *, user_id: uuid.UUID, limit: int = 10, today: Optional[date] = None) -> List[dict]:
    today = today or calendar.today()
    rows = (
        db.query(models.Invoice)
        .filter(models.Invoice.user_id == user_id, models.Invoice.status.in_(OPEN_STATUSES))
        .order_by(models.Invoice.due_date.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "invoice_id": db_invoice.id,
            "invoice_number": db_invoice.invoice_number,
            "client_name": db_invoice.client_name,
            "due_date": db_invoice.due_date,
            "total_amount": db_invoice.total_amount,
            "status": db_invoice.status,
            "is_overdue": db_invoice.due_date < today,
        }
        for db_invoice in rows
    ]


def current_month_kpi(db: Session, *, user_id: uuid.UUID, today: Optional[date] = None) -> dict:
    today = today or calendar.today()
    current = monthly_financials(db, user_id=user_id, months=1, today=today)[0]
    unpaid_total = (
        db.query(func.coalesce(func.sum(models.Invoice.total_amount), 0))
        .filter(models.Invoice.user_id == user_id, models.Invoice.status.in_(OPEN_STATUSES))
        .scalar()
    )
    return {**current, "unpaid_total": int(unpaid_total or 0)}
