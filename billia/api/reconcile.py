"""
Bank statement reconciliation upload.
"""
import logging
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from billia import audit
from billia.audit import AuditAction
from billia.api.deps import get_current_user
from billia.db import schemas
from billia.db.database import get_db
from billia.services import reconciliation
from billia.utils.feature_flags import reconciliation_feature_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reconcile", tags=["reconcile"])


@router.post("", response_model=schemas.ReconcileResult)
def reconcile_endpoint(
    file: UploadFile = File(..., description="Bank statement CSV"),
    mode: str = Form(reconciliation.MODE_PAYEE),
    apply: bool = Form(False),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    if not reconciliation_feature_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Reconciliation is disabled")
    # One byte past the limit is enough to reject oversized files
    data = file.file.read(reconciliation.MAX_FILE_SIZE + 1)
    result = reconciliation.reconcile_upload(
        db,
        user_id=user.id,
        filename=file.filename,
        content_type=file.content_type,
        data=data,
        mode=mode,
        apply=apply,
    )
    audit.record(
        db,
        action=AuditAction.RECONCILE_RUN,
        target_type="reconciliation",
        actor_user_id=user.id,
        metadata={
            "filename": file.filename,
            "mode": mode,
            "apply": apply,
            "rows": len(result["rows"]),
            "matched": result["matched"],
            "applied_count": result["applied_count"],
        },
    )
    return result
