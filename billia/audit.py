"""
Audit logging helpers and enums.

Centralized helper to persist normalized audit records for billing
documents, recurring runs and reconciliation.
"""
from __future__ import annotations
import uuid
from enum import Enum
from typing import Any, Optional, Dict
import logging
from sqlalchemy.orm import Session

from billia.db import schemas
from billia.db.repositories import audits as audit_repo

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    # Invoices
    INVOICE_CREATE = "invoice_create"
    INVOICE_UPDATE = "invoice_update"
    INVOICE_DELETE = "invoice_delete"
    INVOICE_STATUS_CHANGE = "invoice_status_change"
    # Quotes
    QUOTE_CREATE = "quote_create"
    QUOTE_DELETE = "quote_delete"
    QUOTE_ACCEPT = "quote_accept"
    QUOTE_CONVERT = "quote_convert"
    # Recurring templates
    RECURRING_CREATE = "recurring_create"
    RECURRING_UPDATE = "recurring_update"
    RECURRING_DELETE = "recurring_delete"
    RECURRING_RUN = "recurring_run"
    # Ledger
    PAYMENT_CREATE = "payment_create"
    PAYMENT_DELETE = "payment_delete"
    PAYMENT_STATUS_OVERRIDE = "payment_status_override"
    RECONCILE_RUN = "reconcile_run"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[uuid.UUID] = None,
    actor_user_id: Optional[uuid.UUID],
    metadata: Optional[Dict[str, Any]] = None,
):
    """Central audit logging helper."""
    # Persist plain string values, not Enum reprs
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    audit_log = schemas.AuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata or {},
    )
    return audit_repo.create_audit_log(db, audit_log=audit_log, actor_user_id=actor_user_id)


def record(db: Session, **kwargs):
    """Like `log`, but an audit failure never fails the request that triggered it."""
    try:
        return log(db, **kwargs)
    except Exception:
        db.rollback()
        logger.warning("audit_log_failed: action=%s", kwargs.get("action"), exc_info=True)
        return None


__all__ = ["AuditAction", "AuditStatus", "log", "record"]
