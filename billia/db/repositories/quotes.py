"""
Quote repository functions.

Quotes go out with a public acceptance link and are later converted into
invoices, one at a time or in bulk.
"""
from __future__ import annotations

import logging
import secrets
import uuid
from datetime import date
from typing import Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session

from billia.db import models, schemas
from billia.db.models.base import now_utc
from billia.db.repositories import clients as client_repo
from billia.db.repositories import invoices as invoice_repo
from billia.db.repositories import profiles as profile_repo
from billia.db.repositories.line_items import build_item_rows, compute_totals, filter_line_items
from billia.db.repositories.numbering import next_quote_number
from billia.errors import ConflictError, NotFoundError
from billia.utils import calendar
from billia.utils.urls import build_quote_accept_link
from billia.utils.validation import MAX_LENGTHS, validate_length

logger = logging.getLogger(__name__)

STATUS_DRAFT = "draft"
STATUS_ACCEPTED = "accepted"


def create_quote(db: Session, *, user_id: uuid.UUID, quote: schemas.QuoteCreate) -> models.Quote:
    items = filter_line_items(quote.items)
    validate_length(quote.notes, MAX_LENGTHS["note"], "Notes")
    client = client_repo.resolve_client_choice(
        db, user_id=user_id, client_id=quote.client_id, new_client_name=quote.new_client_name
    )
    profile = profile_repo.get_profile(db, user_id=user_id)
    tax_rate, tax_rounding = profile_repo.tax_settings(profile)
    subtotal, tax_amount, total_amount = compute_totals(items, tax_rate, tax_rounding)

    db_quote = models.Quote(
        user_id=user_id,
        client_id=client.id,
        quote_number=next_quote_number(db, user_id=user_id, issue_date=quote.issue_date),
        issue_date=quote.issue_date,
        valid_until=quote.valid_until,
        subtotal=subtotal,
        tax_amount=tax_amount,
        total_amount=total_amount,
        status=STATUS_DRAFT,
        notes=quote.notes,
    )
    db_quote.items = build_item_rows(models.QuoteItem, items, tax_rate)
    db.add(db_quote)
    db.commit()
    db.refresh(db_quote)
    return db_quote


def get_quote(db: Session, *, user_id: uuid.UUID, quote_id: uuid.UUID) -> Optional[models.Quote]:
    return (
        db.query(models.Quote)
        .filter(models.Quote.id == quote_id, models.Quote.user_id == user_id)
        .first()
    )


def require_quote(db: Session, *, user_id: uuid.UUID, quote_id: uuid.UUID) -> models.Quote:
    db_quote = get_quote(db, user_id=user_id, quote_id=quote_id)
    if db_quote is None:
        raise NotFoundError("Quote not found")
    return db_quote


def list_quotes(db: Session, *, user_id: uuid.UUID, skip: int = 0, limit: int = 500):
    return (
        db.query(models.Quote)
        .filter(models.Quote.user_id == user_id)
        .order_by(models.Quote.issue_date.desc(), models.Quote.quote_number.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def delete_quote(db: Session, *, user_id: uuid.UUID, quote_id: uuid.UUID) -> None:
    db_quote = require_quote(db, user_id=user_id, quote_id=quote_id)
    db.delete(db_quote)
    db.commit()


def ensure_accept_token(db: Session, *, user_id: uuid.UUID, quote_id: uuid.UUID) -> Tuple[str, str]:
    """Return (token, public url), minting the token on first use."""
    db_quote = require_quote(db, user_id=user_id, quote_id=quote_id)
    if not db_quote.accept_token:
        db_quote.accept_token = secrets.token_urlsafe(24)
        db.commit()
        db.refresh(db_quote)
    return db_quote.accept_token, build_quote_accept_link(db_quote.accept_token)


def get_quote_by_token(db: Session, token: str) -> Optional[models.Quote]:
    if not token:
        return None
    return db.query(models.Quote).filter(models.Quote.accept_token == token).first()


def accept_quote_by_token(db: Session, token: str, *, today: Optional[date] = None) -> models.Quote:
    db_quote = get_quote_by_token(db, token)
    if db_quote is None:
        raise NotFoundError("Quote not found")
    if db_quote.status == STATUS_ACCEPTED:
        return db_quote
    if db_quote.valid_until < (today or calendar.today()):
        raise ConflictError("This quote has expired")
    db_quote.status = STATUS_ACCEPTED
    db_quote.accepted_at = now_utc()
    db.commit()
    db.refresh(db_quote)
    logger.info("quote_accepted: quote_id=%s", db_quote.id)
    return db_quote


def _convert(db: Session, db_quote: models.Quote, today: date, profile) -> models.Invoice:
    tax_rate, tax_rounding = profile_repo.tax_settings(profile)
    items = [
        {"name": item.name, "quantity": item.quantity, "unit": item.unit, "unit_price": item.unit_price}
        for item in db_quote.items
    ]
    rate = db_quote.items[0].tax_rate if db_quote.items else tax_rate
    db_invoice = invoice_repo.create_invoice_record(
        db,
        user_id=db_quote.user_id,
        client_id=db_quote.client_id,
        issue_date=today,
        due_date=calendar.end_of_next_month(today),
        items=items,
        tax_rate=rate,
        tax_rounding=tax_rounding,
        status=invoice_repo.STATUS_UNPAID,
        notes=db_quote.notes,
        profile=profile,
    )
    # Keep the totals the customer agreed to
    db_invoice.subtotal = db_quote.subtotal
    db_invoice.tax_amount = db_quote.tax_amount
    db_invoice.total_amount = db_quote.total_amount
    db_quote.status = STATUS_ACCEPTED
    if db_quote.accepted_at is None:
        db_quote.accepted_at = now_utc()
    db_quote.converted_invoice_id = db_invoice.id
    db.flush()
    return db_invoice


def convert_quote_to_invoice(
    db: Session, *, user_id: uuid.UUID, quote_id: uuid.UUID, today: Optional[date] = None
) -> models.Invoice:
    db_quote = require_quote(db, user_id=user_id, quote_id=quote_id)
    if db_quote.converted_invoice_id is not None:
        raise ConflictError("Quote has already been converted to an invoice")
    profile = profile_repo.get_profile(db, user_id=user_id)
    db_invoice = _convert(db, db_quote, today or calendar.today(), profile)
    db.commit()
    db.refresh(db_invoice)
    return db_invoice


def bulk_convert_quotes(
    db: Session, *, user_id: uuid.UUID, quote_ids: Iterable[uuid.UUID], today: Optional[date] = None
) -> List[models.Invoice]:
    """Convert in the given order; unknown or already converted quotes are skipped."""
    today = today or calendar.today()
    profile = profile_repo.get_profile(db, user_id=user_id)
    invoices: List[models.Invoice] = []
    for quote_id in quote_ids:
        db_quote = get_quote(db, user_id=user_id, quote_id=quote_id)
        if db_quote is None or db_quote.converted_invoice_id is not None:
            continue
        invoices.append(_convert(db, db_quote, today, profile))
    db.commit()
    for db_invoice in invoices:
        db.refresh(db_invoice)
    return invoices
