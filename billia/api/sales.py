"""
Sales categories and monthly per-category entries.
"""
from typing import List
import uuid
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from billia.api.deps import get_current_user
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import sales as sales_repo

router = APIRouter(prefix="/sales", tags=["sales"])


@router.post("/categories", response_model=schemas.SalesCategory, status_code=status.HTTP_201_CREATED)
def create_category_endpoint(
    category: schemas.SalesCategoryCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return sales_repo.create_category(db, user_id=user.id, name=category.name)


@router.get("/categories", response_model=List[schemas.SalesCategory])
def list_categories_endpoint(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return sales_repo.list_categories_with_counts(db, user_id=user.id)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category_endpoint(
    category_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    sales_repo.delete_category(db, user_id=user.id, category_id=category_id)


@router.get("/entries", response_model=schemas.MonthEntries)
def get_entries_endpoint(
    month: str = Query(..., description="YYYY-MM"),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    entries = sales_repo.list_entries(db, user_id=user.id, month=month)
    return {
        "month": month,
        "categories": sales_repo.list_categories_with_counts(db, user_id=user.id),
        "entries": entries,
    }


@router.put("/entries", response_model=List[schemas.SalesEntry])
def upsert_entries_endpoint(
    body: schemas.SalesEntriesUpsert,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return sales_repo.upsert_entries(db, user_id=user.id, month=body.month, entries=body.entries)


@router.get("/summary", response_model=List[schemas.MonthlySalesSummary])
def summary_endpoint(
    months: int = Query(default=12, ge=1, le=60),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return sales_repo.monthly_summary(db, user_id=user.id, months=months)
