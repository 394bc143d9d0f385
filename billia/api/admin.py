"""
Superadmin endpoints.
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from billia.api.deps import require_superadmin
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import users as user_repo

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=List[schemas.AdminUserSummary])
def list_users_endpoint(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    _admin=Depends(require_superadmin),
):
    rows = user_repo.list_users_with_invoice_counts(db, skip=skip, limit=limit)
    return [
        schemas.AdminUserSummary(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            is_superadmin=bool(user.is_superadmin),
            created_at=user.created_at,
            invoice_count=count,
        )
        for user, count in rows
    ]
