"""
Clients API endpoints.
"""
from typing import List
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from billia.api.deps import get_current_user
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import clients as client_repo

router = APIRouter(prefix="/clients", tags=["clients"])


@router.post("/", response_model=schemas.Client, status_code=status.HTTP_201_CREATED)
def create_client_endpoint(
    client: schemas.ClientCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return client_repo.create_client(db, user_id=user.id, client=client)


@router.get("/", response_model=List[schemas.Client])
def list_clients_endpoint(
    skip: int = 0,
    limit: int = 500,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return client_repo.list_clients(db, user_id=user.id, skip=skip, limit=limit)


@router.get("/{client_id}", response_model=schemas.Client)
def get_client_endpoint(
    client_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    db_client = client_repo.get_client(db, user_id=user.id, client_id=client_id)
    if not db_client:
        raise HTTPException(status_code=404, detail="Client not found")
    return db_client


@router.put("/{client_id}", response_model=schemas.Client)
def update_client_endpoint(
    client_id: uuid.UUID,
    update: schemas.ClientUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return client_repo.update_client(db, user_id=user.id, client_id=client_id, update=update)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client_endpoint(
    client_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    client_repo.delete_client(db, user_id=user.id, client_id=client_id)
