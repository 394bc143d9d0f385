"""
Expenses API endpoints.
"""
from typing import List
import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from billia.api.deps import get_current_user
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import expenses as expense_repo
from billia.errors import NotFoundError

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.post("/", response_model=schemas.Expense, status_code=status.HTTP_201_CREATED)
def create_expense_endpoint(
    expense: schemas.ExpenseCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return expense_repo.create_expense(db, user_id=user.id, expense=expense)


@router.get("/", response_model=List[schemas.Expense])
def list_expenses_endpoint(
    skip: int = 0,
    limit: int = 500,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return expense_repo.list_expenses(db, user_id=user.id, skip=skip, limit=limit)


@router.get("/{expense_id}", response_model=schemas.Expense)
def get_expense_endpoint(
    expense_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    db_expense = expense_repo.get_expense(db, user_id=user.id, expense_id=expense_id)
    if db_expense is None:
        raise NotFoundError("Expense not found")
    return db_expense


@router.put("/{expense_id}", response_model=schemas.Expense)
def update_expense_endpoint(
    expense_id: uuid.UUID,
    update: schemas.ExpenseUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return expense_repo.update_expense(db, user_id=user.id, expense_id=expense_id, update=update)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense_endpoint(
    expense_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    expense_repo.delete_expense(db, user_id=user.id, expense_id=expense_id)
