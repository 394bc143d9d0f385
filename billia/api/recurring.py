"""
Recurring template API endpoints and expander triggers.
"""
import hmac
import logging
import os
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from billia import audit
from billia.audit import AuditAction
from billia.api.deps import get_current_user, require_superadmin
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import recurring as recurring_repo
from billia.services.recurring_expander import run_due_templates
from billia.utils.feature_flags import recurring_feature_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recurring", tags=["recurring"])


def _ensure_enabled() -> None:
    if not recurring_feature_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Recurring invoices are disabled")


def _verify_cron_secret(authorization: Optional[str]) -> None:
    secret = os.getenv("CRON_SECRET")
    if not secret:
        return
    expected = f"Bearer {secret}"
    if not authorization or not hmac.compare_digest(authorization.strip(), expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid cron secret")


def _run_and_audit(db: Session, actor_user_id: Optional[uuid.UUID], trigger: str) -> dict:
    report = run_due_templates(db)
    created = sum(1 for r in report["results"] if r["status"] == "created")
    errors = sum(1 for r in report["results"] if r["status"] == "error")
    audit.record(
        db,
        action=AuditAction.RECURRING_RUN,
        status=audit.AuditStatus.FAILURE if errors else audit.AuditStatus.SUCCESS,
        target_type="recurring_template",
        actor_user_id=actor_user_id,
        metadata={"trigger": trigger, "processed": report["processed"], "created": created, "errors": errors},
    )
    return report


@router.post("/execute", response_model=schemas.RunReport)
def execute_endpoint(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
):
    """Cron entrypoint guarded by CRON_SECRET when one is configured."""
    _verify_cron_secret(authorization)
    _ensure_enabled()
    return _run_and_audit(db, None, "cron")


@router.post("/run", response_model=schemas.RunReport)
def run_endpoint(db: Session = Depends(get_db), admin=Depends(require_superadmin)):
    _ensure_enabled()
    return _run_and_audit(db, admin.id, "manual")


@router.post("/", response_model=schemas.RecurringTemplate, status_code=status.HTTP_201_CREATED)
def create_template_endpoint(
    template: schemas.RecurringTemplateCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    db_template = recurring_repo.create_template(db, user_id=user.id, template=template)
    audit.record(
        db,
        action=AuditAction.RECURRING_CREATE,
        target_type="recurring_template",
        target_id=db_template.id,
        actor_user_id=user.id,
        metadata={"interval": db_template.interval, "next_execution_date": db_template.next_execution_date.isoformat()},
    )
    return db_template


@router.get("/", response_model=List[schemas.RecurringTemplate])
def list_templates_endpoint(
    tenant_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return recurring_repo.list_templates(db, user_id=user.id, tenant_id=tenant_id)


@router.get("/{template_id}", response_model=schemas.RecurringTemplate)
def get_template_endpoint(
    template_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return recurring_repo.require_template(db, user_id=user.id, template_id=template_id)


@router.put("/{template_id}", response_model=schemas.RecurringTemplate)
def update_template_endpoint(
    template_id: uuid.UUID,
    template: schemas.RecurringTemplateUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    db_template = recurring_repo.update_template(db, user_id=user.id, template_id=template_id, template=template)
    audit.record(
        db,
        action=AuditAction.RECURRING_UPDATE,
        target_type="recurring_template",
        target_id=template_id,
        actor_user_id=user.id,
    )
    return db_template


@router.put("/{template_id}/active", response_model=schemas.RecurringTemplate)
def toggle_active_endpoint(
    template_id: uuid.UUID,
    body: schemas.ToggleActive,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    db_template = recurring_repo.set_active(db, user_id=user.id, template_id=template_id, is_active=body.is_active)
    audit.record(
        db,
        action=AuditAction.RECURRING_UPDATE,
        target_type="recurring_template",
        target_id=template_id,
        actor_user_id=user.id,
        metadata={"is_active": body.is_active},
    )
    return db_template


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template_endpoint(
    template_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    recurring_repo.delete_template(db, user_id=user.id, template_id=template_id)
    audit.record(
        db,
        action=AuditAction.RECURRING_DELETE,
        target_type="recurring_template",
        target_id=template_id,
        actor_user_id=user.id,
    )
