"""
Invoices API endpoints.

Static report paths (`/aging`, `/recurring-this-month`, `/bulk-status`) are
declared ahead of the `/{invoice_id}` routes.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from billia import audit
from billia.audit import AuditAction
from billia.api.deps import get_current_user
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import invoices as invoice_repo

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("/", response_model=schemas.Invoice, status_code=status.HTTP_201_CREATED)
def create_invoice_endpoint(
    invoice: schemas.InvoiceCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    db_invoice = invoice_repo.create_invoice(db, user_id=user.id, invoice=invoice)
    audit.record(
        db,
        action=AuditAction.INVOICE_CREATE,
        target_type="invoice",
        target_id=db_invoice.id,
        actor_user_id=user.id,
        metadata={"invoice_number": db_invoice.invoice_number, "total_amount": db_invoice.total_amount},
    )
    return db_invoice


@router.get("/", response_model=List[schemas.Invoice])
def list_invoices_endpoint(
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 500,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return invoice_repo.list_invoices(db, user_id=user.id, status=status, skip=skip, limit=limit)


@router.get("/aging", response_model=schemas.AgingReport)
def aging_report_endpoint(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return invoice_repo.aging_report(db, user_id=user.id)


@router.get("/recurring-this-month", response_model=List[schemas.RecurringInvoiceSummary])
def recurring_this_month_endpoint(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return invoice_repo.recurring_invoices_this_month(db, user_id=user.id)


@router.post("/bulk-status", response_model=schemas.BulkStatusResult)
def bulk_status_endpoint(
    body: schemas.BulkStatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    updated = invoice_repo.bulk_set_status(db, user_id=user.id, invoice_ids=body.ids, status=body.status)
    audit.record(
        db,
        action=AuditAction.INVOICE_STATUS_CHANGE,
        target_type="invoice",
        actor_user_id=user.id,
        metadata={"status": body.status, "updated_count": updated},
    )
    return {"updated_count": updated}


@router.get("/{invoice_id}", response_model=schemas.Invoice)
def get_invoice_endpoint(
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return invoice_repo.require_invoice(db, user_id=user.id, invoice_id=invoice_id)


@router.put("/{invoice_id}", response_model=schemas.Invoice)
def update_invoice_endpoint(
    invoice_id: uuid.UUID,
    update: schemas.InvoiceUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    db_invoice = invoice_repo.update_invoice(db, user_id=user.id, invoice_id=invoice_id, update=update)
    audit.record(
        db,
        action=AuditAction.INVOICE_UPDATE,
        target_type="invoice",
        target_id=invoice_id,
        actor_user_id=user.id,
        metadata={"total_amount": db_invoice.total_amount},
    )
    return db_invoice


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice_endpoint(
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    invoice_repo.delete_invoice(db, user_id=user.id, invoice_id=invoice_id)
    audit.record(
        db,
        action=AuditAction.INVOICE_DELETE,
        target_type="invoice",
        target_id=invoice_id,
        actor_user_id=user.id,
    )


@router.put("/{invoice_id}/status", response_model=schemas.Invoice)
def set_status_endpoint(
    invoice_id: uuid.UUID,
    body: schemas.StatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    db_invoice = invoice_repo.set_invoice_status(db, user_id=user.id, invoice_id=invoice_id, status=body.status)
    audit.record(
        db,
        action=AuditAction.INVOICE_STATUS_CHANGE,
        target_type="invoice",
        target_id=invoice_id,
        actor_user_id=user.id,
        metadata={"status": body.status},
    )
    return db_invoice


@router.get("/{invoice_id}/receipt", response_model=schemas.Receipt)
def receipt_endpoint(
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return invoice_repo.build_receipt(db, user_id=user.id, invoice_id=invoice_id)
