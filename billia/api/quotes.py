"""
Quotes API endpoints.

Authenticated CRUD and conversion live on `router`; the token-based
acceptance pages customers open live on `public_router`.
"""
import logging
from typing import List
import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from billia import audit
from billia.audit import AuditAction
from billia.api.deps import get_current_user
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import quotes as quote_repo
from billia.errors import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["quotes"])
public_router = APIRouter(prefix="/public/quotes", tags=["public"])


@router.post("/", response_model=schemas.Quote, status_code=status.HTTP_201_CREATED)
def create_quote_endpoint(
    quote: schemas.QuoteCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    db_quote = quote_repo.create_quote(db, user_id=user.id, quote=quote)
    audit.record(
        db,
        action=AuditAction.QUOTE_CREATE,
        target_type="quote",
        target_id=db_quote.id,
        actor_user_id=user.id,
        metadata={"quote_number": db_quote.quote_number, "total_amount": db_quote.total_amount},
    )
    return db_quote


@router.get("/", response_model=List[schemas.Quote])
def list_quotes_endpoint(
    skip: int = 0,
    limit: int = 500,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return quote_repo.list_quotes(db, user_id=user.id, skip=skip, limit=limit)


@router.post("/bulk-convert", response_model=schemas.BulkConvertResult)
def bulk_convert_endpoint(
    body: schemas.BulkConvertRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    invoices = quote_repo.bulk_convert_quotes(db, user_id=user.id, quote_ids=body.quote_ids)
    invoice_ids = [db_invoice.id for db_invoice in invoices]
    audit.record(
        db,
        action=AuditAction.QUOTE_CONVERT,
        target_type="quote",
        actor_user_id=user.id,
        metadata={"requested": len(body.quote_ids), "invoice_ids": [str(i) for i in invoice_ids]},
    )
    return {"converted_count": len(invoice_ids), "invoice_ids": invoice_ids}


@router.get("/{quote_id}", response_model=schemas.Quote)
def get_quote_endpoint(
    quote_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return quote_repo.require_quote(db, user_id=user.id, quote_id=quote_id)


@router.delete("/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quote_endpoint(
    quote_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    quote_repo.delete_quote(db, user_id=user.id, quote_id=quote_id)
    audit.record(
        db,
        action=AuditAction.QUOTE_DELETE,
        target_type="quote",
        target_id=quote_id,
        actor_user_id=user.id,
    )


@router.post("/{quote_id}/accept-link", response_model=schemas.AcceptLink)
def accept_link_endpoint(
    quote_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    token, url = quote_repo.ensure_accept_token(db, user_id=user.id, quote_id=quote_id)
    return {"token": token, "url": url}


@router.post("/{quote_id}/convert", response_model=schemas.Invoice, status_code=status.HTTP_201_CREATED)
def convert_quote_endpoint(
    quote_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    db_invoice = quote_repo.convert_quote_to_invoice(db, user_id=user.id, quote_id=quote_id)
    audit.record(
        db,
        action=AuditAction.QUOTE_CONVERT,
        target_type="quote",
        target_id=quote_id,
        actor_user_id=user.id,
        metadata={"invoice_id": str(db_invoice.id), "invoice_number": db_invoice.invoice_number},
    )
    return db_invoice


@public_router.get("/{token}", response_model=schemas.PublicQuote)
def get_public_quote_endpoint(token: str, db: Session = Depends(get_db)):
    db_quote = quote_repo.get_quote_by_token(db, token)
    if db_quote is None:
        raise NotFoundError("Quote not found")
    return db_quote


@public_router.post("/{token}/accept", response_model=schemas.PublicQuote)
def accept_public_quote_endpoint(token: str, db: Session = Depends(get_db)):
    db_quote = quote_repo.accept_quote_by_token(db, token)
    audit.record(
        db,
        action=AuditAction.QUOTE_ACCEPT,
        target_type="quote",
        target_id=db_quote.id,
        actor_user_id=None,
    )
    return db_quote
