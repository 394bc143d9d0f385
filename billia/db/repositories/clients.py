"""
Client repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from billia.db import models, schemas
from billia.errors import ConflictError, NotFoundError, ValidationError
from billia.utils.validation import MAX_LENGTHS, validate_email, validate_length, validate_required


def _validate_client_fields(data: dict) -> None:
    if "name" in data:
        validate_required(data["name"], "Client name")
        validate_length(data["name"].strip(), MAX_LENGTHS["name"], "Client name")
    if data.get("email"):
        validate_email(data["email"])
    validate_length(data.get("address"), MAX_LENGTHS["address"], "Address")
    validate_length(data.get("phone_number"), MAX_LENGTHS["phone_number"], "Phone number")
    validate_length(data.get("note"), MAX_LENGTHS["note"], "Note")


def create_client(db: Session, *, user_id: uuid.UUID, client: schemas.ClientCreate) -> models.Client:
    data = client.model_dump()
    _validate_client_fields(data)
    data["name"] = data["name"].strip()
    db_client = models.Client(user_id=user_id, **data)
    db.add(db_client)
    db.commit()
    db.refresh(db_client)
    return db_client


def get_client(db: Session, *, user_id: uuid.UUID, client_id: uuid.UUID) -> Optional[models.Client]:
    return (
        db.query(models.Client)
        .filter(models.Client.id == client_id, models.Client.user_id == user_id)
        .first()
    )


def list_clients(db: Session, *, user_id: uuid.UUID, skip: int = 0, limit: int = 500):
    return (
        db.query(models.Client)
        .filter(models.Client.user_id == user_id)
        .order_by(models.Client.name.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def update_client(db: Session, *, user_id: uuid.UUID, client_id: uuid.UUID, update: schemas.ClientUpdate) -> models.Client:
    db_client = get_client(db, user_id=user_id, client_id=client_id)
    if db_client is None:
        raise NotFoundError("Client not found")
    data = update.model_dump(exclude_unset=True)
    _validate_client_fields(data)
    for key, value in data.items():
        setattr(db_client, key, value.strip() if key == "name" else value)
    db.commit()
    db.refresh(db_client)
    return db_client


def delete_client(db: Session, *, user_id: uuid.UUID, client_id: uuid.UUID) -> None:
    db_client = get_client(db, user_id=user_id, client_id=client_id)
    if db_client is None:
        raise NotFoundError("Client not found")
    in_use = (
        db.query(models.Invoice.id).filter(models.Invoice.client_id == client_id).first()
        or db.query(models.Quote.id).filter(models.Quote.client_id == client_id).first()
    )
    if in_use:
        raise ConflictError("Client has invoices or quotes and cannot be deleted")
    db.delete(db_client)
    db.commit()


def find_or_create_client_by_name(db: Session, *, user_id: uuid.UUID, name: str) -> models.Client:
    """Return the caller's client named `name`, creating it if missing (flush only)."""
    name = validate_required(name, "Client name")
    validate_length(name, MAX_LENGTHS["name"], "Client name")
    db_client = (
        db.query(models.Client)
        .filter(models.Client.user_id == user_id, models.Client.name == name)
        .first()
    )
    if db_client is None:
        db_client = models.Client(user_id=user_id, name=name)
        db.add(db_client)
        db.flush()
    return db_client


def resolve_client_choice(
    db: Session,
    *,
    user_id: uuid.UUID,
    client_id: Optional[uuid.UUID],
    new_client_name: Optional[str],
) -> models.Client:
    """Pick an existing client or create one from a typed-in name."""
    if client_id:
        db_client = get_client(db, user_id=user_id, client_id=client_id)
        if db_client is None:
            raise NotFoundError("Client not found")
        return db_client
    if new_client_name and new_client_name.strip():
        name = new_client_name.strip()
        validate_length(name, MAX_LENGTHS["name"], "Client name")
        db_client = models.Client(user_id=user_id, name=name)
        db.add(db_client)
        db.flush()
        return db_client
    raise ValidationError("Select a client or enter a new client name")
