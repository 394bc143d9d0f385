"""
Audit log API endpoints.

Callers read their own trail; superadmins may filter by any actor.
"""
from typing import Optional, List
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from billia.api.deps import get_current_user_context
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import audits as audit_repo

router = APIRouter(prefix="/audit-logs", tags=["audits"])


@router.get("/", response_model=List[schemas.AuditLog])
def list_audit_logs(
    user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    target_type: Optional[str] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, current_user = user_context
    if user_id and user_id != user.id and not current_user.get("is_superadmin"):
        raise HTTPException(status_code=403, detail="Forbidden")
    return audit_repo.get_audit_logs(
        db,
        user_id=user_id or user.id,
        action_type=action_type,
        target_type=target_type,
        status=status,
        skip=skip,
        limit=limit,
    )
