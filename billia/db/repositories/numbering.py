"""
Document number allocation.

Numbers look like ``<prefix><YYYYMM>-<NNN>`` and restart every issue month.
Callers must flush pending documents before asking for the next number.
"""
from __future__ import annotations

import uuid
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from billia.db import models
from billia.utils.money import (
    DEFAULT_INVOICE_PREFIX,
    QUOTE_PREFIX,
    format_document_number,
    parse_document_sequence,
)


def _next_sequence(db: Session, column, user_column, user_id: uuid.UUID, prefix: str, issue_date: date, start: int) -> int:
    head = f"{prefix}{issue_date.year}{issue_date.month:02d}-"
    existing = (
        db.query(column)
        .filter(user_column == user_id, column.like(f"{head}%"))
        .all()
    )
    sequences = []
    for (number,) in existing:
        seq = parse_document_sequence(number, prefix, issue_date)
        if seq is not None:
            sequences.append(seq)
    if not sequences:
        return start
    return max(sequences) + 1


def next_invoice_number(db: Session, *, user_id: uuid.UUID, issue_date: date, profile: Optional[models.UserProfile] = None) -> str:
    prefix = (profile.invoice_number_prefix if profile else None) or DEFAULT_INVOICE_PREFIX
    start = (profile.invoice_number_start if profile else None) or 1
    seq = _next_sequence(
        db, models.Invoice.invoice_number, models.Invoice.user_id, user_id, prefix, issue_date, start
    )
    return format_document_number(prefix, issue_date, seq)


def next_quote_number(db: Session, *, user_id: uuid.UUID, issue_date: date) -> str:
    seq = _next_sequence(
        db, models.Quote.quote_number, models.Quote.user_id, user_id, QUOTE_PREFIX, issue_date, 1
    )
    return format_document_number(QUOTE_PREFIX, issue_date, seq)
