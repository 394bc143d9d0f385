"""
Invoice repository functions.

Covers creation (manual, from quotes, from recurring templates), edits,
status transitions, receipts and the receivables aging report.
"""
from __future__ import annotations

import uuid
from datetime import date
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session

from billia.db import models, schemas
from billia.db.repositories import clients as client_repo
from billia.db.repositories import profiles as profile_repo
from billia.db.repositories.line_items import build_item_rows, compute_totals, filter_line_items
from billia.db.repositories.numbering import next_invoice_number
from billia.errors import ConflictError, NotFoundError, ValidationError
from billia.utils import calendar
from billia.utils.validation import MAX_LENGTHS, validate_length

STATUS_DRAFT = "draft"
STATUS_UNPAID = "unpaid"
STATUS_PARTIAL = "partial"
STATUS_PAID = "paid"
INVOICE_STATUSES = (STATUS_DRAFT, STATUS_UNPAID, STATUS_PARTIAL, STATUS_PAID)
OPEN_STATUSES = (STATUS_UNPAID, STATUS_PARTIAL)

AGING_BUCKETS = ("0-30", "31-60", "61-90", "90+")


def aging_bucket(days_overdue: int) -> str:
    if days_overdue <= 30:
        return "0-30"
    if days_overdue <= 60:
        return "31-60"
    if days_overdue <= 90:
        return "61-90"
    return "90+"


def _validate_status(status: str) -> str:
    if status not in INVOICE_STATUSES:
        raise ValidationError(f"Unknown invoice status: {status}")
    return status


def _validate_withholding(withholding_tax: int) -> int:
    if withholding_tax is None:
        return 0
    if withholding_tax < 0:
        raise ValidationError("withholding_tax must not be negative")
    return withholding_tax


def create_invoice_record(
    db: Session,
    *,
    user_id: uuid.UUID,
    client_id: uuid.UUID,
    issue_date: date,
    due_date: date,
    items: List[dict],
    tax_rate: float,
    tax_rounding: str,
    status: str = STATUS_UNPAID,
    notes: Optional[str] = None,
    withholding_tax: int = 0,
    recurring_template_id: Optional[uuid.UUID] = None,
    profile: Optional[models.UserProfile] = None,
) -> models.Invoice:
    """Build and flush an invoice with a freshly allocated number. Does not commit."""
    subtotal, tax_amount, total_amount = compute_totals(items, tax_rate, tax_rounding, withholding_tax)
    invoice = models.Invoice(
        user_id=user_id,
        client_id=client_id,
        invoice_number=next_invoice_number(db, user_id=user_id, issue_date=issue_date, profile=profile),
        issue_date=issue_date,
        due_date=due_date,
        subtotal=subtotal,
        tax_amount=tax_amount,
        withholding_tax=withholding_tax,
        total_amount=total_amount,
        tax_rate=tax_rate,
        tax_rounding=tax_rounding,
        status=status,
        notes=notes,
        recurring_template_id=recurring_template_id,
    )
    invoice.items = build_item_rows(models.InvoiceItem, items, tax_rate)
    db.add(invoice)
    db.flush()
    return invoice


def create_invoice(db: Session, *, user_id: uuid.UUID, invoice: schemas.InvoiceCreate) -> models.Invoice:
    items = filter_line_items(invoice.items)
    validate_length(invoice.notes, MAX_LENGTHS["note"], "Notes")
    withholding_tax = _validate_withholding(invoice.withholding_tax)
    client = client_repo.resolve_client_choice(
        db, user_id=user_id, client_id=invoice.client_id, new_client_name=invoice.new_client_name
    )
    profile = profile_repo.get_profile(db, user_id=user_id)
    tax_rate, tax_rounding = profile_repo.tax_settings(profile)
    db_invoice = create_invoice_record(
        db,
        user_id=user_id,
        client_id=client.id,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        items=items,
        tax_rate=tax_rate,
        tax_rounding=tax_rounding,
        notes=invoice.notes,
        withholding_tax=withholding_tax,
        profile=profile,
    )
    db.commit()
    db.refresh(db_invoice)
    return db_invoice


def get_invoice(db: Session, *, user_id: uuid.UUID, invoice_id: uuid.UUID) -> Optional[models.Invoice]:
    return (
        db.query(models.Invoice)
        .filter(models.Invoice.id == invoice_id, models.Invoice.user_id == user_id)
        .first()
    )


def require_invoice(db: Session, *, user_id: uuid.UUID, invoice_id: uuid.UUID) -> models.Invoice:
    db_invoice = get_invoice(db, user_id=user_id, invoice_id=invoice_id)
    if db_invoice is None:
        raise NotFoundError("Invoice not found")
    return db_invoice


def list_invoices(db: Session, *, user_id: uuid.UUID, status: Optional[str] = None, skip: int = 0, limit: int = 500):
    query = db.query(models.Invoice).filter(models.Invoice.user_id == user_id)
    if status:
        query = query.filter(models.Invoice.status == _validate_status(status))
    return (
        query.order_by(models.Invoice.issue_date.desc(), models.Invoice.invoice_number.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def update_invoice(db: Session, *, user_id: uuid.UUID, invoice_id: uuid.UUID, update: schemas.InvoiceUpdate) -> models.Invoice:
    """Edit dates, items, notes and withholding; totals use the stored tax rate."""
    db_invoice = require_invoice(db, user_id=user_id, invoice_id=invoice_id)
    data = update.model_dump(exclude_unset=True)

    if data.get("issue_date") is not None:
        db_invoice.issue_date = data["issue_date"]
    if data.get("due_date") is not None:
        db_invoice.due_date = data["due_date"]
    if "notes" in data:
        validate_length(data["notes"], MAX_LENGTHS["note"], "Notes")
        db_invoice.notes = data["notes"]
    if data.get("withholding_tax") is not None:
        db_invoice.withholding_tax = _validate_withholding(data["withholding_tax"])

    if update.items is not None:
        items = filter_line_items(update.items)
        db_invoice.items = build_item_rows(models.InvoiceItem, items, db_invoice.tax_rate)
    else:
        items = [
            {"quantity": item.quantity, "unit_price": item.unit_price}
            for item in db_invoice.items
        ]
    subtotal, tax_amount, total_amount = compute_totals(
        items, db_invoice.tax_rate, db_invoice.tax_rounding, db_invoice.withholding_tax
    )
    db_invoice.subtotal = subtotal
    db_invoice.tax_amount = tax_amount
    db_invoice.total_amount = total_amount
    db.commit()
    db.refresh(db_invoice)
    return db_invoice


def delete_invoice(db: Session, *, user_id: uuid.UUID, invoice_id: uuid.UUID) -> None:
    db_invoice = require_invoice(db, user_id=user_id, invoice_id=invoice_id)
    (
        db.query(models.Quote)
        .filter(models.Quote.converted_invoice_id == db_invoice.id)
        .update({models.Quote.converted_invoice_id: None}, synchronize_session=False)
    )
    db.delete(db_invoice)
    db.commit()


def _apply_status(db_invoice: models.Invoice, status: str, today: date) -> None:
    db_invoice.status = status
    if status == STATUS_PAID:
        db_invoice.paid_date = db_invoice.paid_date or today
    else:
        db_invoice.paid_date = None


def set_invoice_status(
    db: Session, *, user_id: uuid.UUID, invoice_id: uuid.UUID, status: str, today: Optional[date] = None
) -> models.Invoice:
    _validate_status(status)
    db_invoice = require_invoice(db, user_id=user_id, invoice_id=invoice_id)
    _apply_status(db_invoice, status, today or calendar.today())
    db.commit()
    db.refresh(db_invoice)
    return db_invoice


def bulk_set_status(
    db: Session, *, user_id: uuid.UUID, invoice_ids: Iterable[uuid.UUID], status: str, today: Optional[date] = None
) -> int:
    _validate_status(status)
    ids = list(invoice_ids)
    if not ids:
        return 0
    rows = (
        db.query(models.Invoice)
        .filter(models.Invoice.user_id == user_id, models.Invoice.id.in_(ids))
        .all()
    )
    for db_invoice in rows:
        _apply_status(db_invoice, status, today or calendar.today())
    db.commit()
    return len(rows)


def build_receipt(db: Session, *, user_id: uuid.UUID, invoice_id: uuid.UUID) -> dict:
    db_invoice = require_invoice(db, user_id=user_id, invoice_id=invoice_id)
    if db_invoice.status != STATUS_PAID:
        raise ConflictError("A receipt can only be issued for a paid invoice")
    profile = profile_repo.get_profile(db, user_id=user_id)
    return {
        "invoice_id": db_invoice.id,
        "invoice_number": db_invoice.invoice_number,
        "client_name": db_invoice.client_name,
        "total_amount": db_invoice.total_amount,
        "paid_date": db_invoice.paid_date,
        "issue_date": db_invoice.issue_date,
        "issuer_company_name": profile.company_name if profile else None,
        "issuer_address": profile.address if profile else None,
        "issuer_invoice_reg_number": profile.invoice_reg_number if profile else None,
        "stamp_url": profile.stamp_url if profile else None,
    }


def list_open_invoices(db: Session, *, user_id: uuid.UUID):
    return (
        db.query(models.Invoice)
        .filter(models.Invoice.user_id == user_id, models.Invoice.status.in_(OPEN_STATUSES))
        .order_by(models.Invoice.due_date.asc())
        .all()
    )


def aging_report(db: Session, *, user_id: uuid.UUID, today: Optional[date] = None) -> dict:
    today = today or calendar.today()
    rows = []
    bucket_totals = {bucket: 0 for bucket in AGING_BUCKETS}
    for db_invoice in list_open_invoices(db, user_id=user_id):
        days_overdue = max(0, calendar.days_between(db_invoice.due_date, today))
        bucket = aging_bucket(days_overdue)
        bucket_totals[bucket] += db_invoice.total_amount
        rows.append({
            "invoice_id": db_invoice.id,
            "invoice_number": db_invoice.invoice_number,
            "client_name": db_invoice.client_name,
            "due_date": db_invoice.due_date,
            "total_amount": db_invoice.total_amount,
            "status": db_invoice.status,
            "days_overdue": days_overdue,
            "bucket": bucket,
        })
    return {
        "rows": rows,
        "bucket_totals": bucket_totals,
        "grand_total": sum(bucket_totals.values()),
    }


def recurring_invoices_this_month(db: Session, *, user_id: uuid.UUID, today: Optional[date] = None) -> List[dict]:
    today = today or calendar.today()
    rows = (
        db.query(models.Invoice)
        .filter(
            models.Invoice.user_id == user_id,
            models.Invoice.recurring_template_id.isnot(None),
            models.Invoice.issue_date >= calendar.first_of_month(today),
        )
        .order_by(models.Invoice.issue_date.desc())
        .all()
    )
    return [
        {
            "id": db_invoice.id,
            "issue_date": db_invoice.issue_date,
            "total_amount": db_invoice.total_amount,
            "client_name": db_invoice.client.name if db_invoice.client else None,
            "client_email": db_invoice.client.email if db_invoice.client else None,
        }
        for db_invoice in rows
    ]
