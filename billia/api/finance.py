"""
Finance dashboard endpoints.
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from billia.api.deps import get_current_user
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import finance as finance_repo

router = APIRouter(prefix="/finance", tags=["finance"])


@router.get("/monthly", response_model=List[schemas.MonthlyFinancial])
def monthly_endpoint(
    months: int = Query(default=6, ge=1, le=36),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return finance_repo.monthly_financials(db, user_id=user.id, months=months)


@router.get("/expenses-by-category", response_model=List[schemas.CategoryBreakdown])
def expenses_by_category_endpoint(
    months: int = Query(default=3, ge=1, le=36),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return finance_repo.expenses_by_category(db, user_id=user.id, months=months)


@router.get("/top-clients", response_model=List[schemas.TopClient])
def top_clients_endpoint(
    limit: int = Query(default=5, ge=1, le=50),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return finance_repo.top_clients(db, user_id=user.id, limit=limit)


@router.get("/upcoming", response_model=List[schemas.UpcomingPayment])
def upcoming_endpoint(
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return finance_repo.upcoming_payments(db, user_id=user.id, limit=limit)


@router.get("/kpi", response_model=schemas.FinanceKpi)
def kpi_endpoint(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return finance_repo.current_month_kpi(db, user_id=user.id)
