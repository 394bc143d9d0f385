"""
Tenant and tenant group repository functions.
"""
from __future__ import annotations

import uuid
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from billia.db import models, schemas
from billia.errors import ConflictError, NotFoundError, ValidationError
from billia.utils.validation import MAX_LENGTHS, validate_length, validate_positive_integer, validate_required


def _require_group(db: Session, user_id: uuid.UUID, group_id: uuid.UUID) -> models.TenantGroup:
    group = get_group(db, user_id=user_id, group_id=group_id)
    if group is None:
        raise NotFoundError("Tenant group not found")
    return group


def _validate_tenant_fields(data: dict) -> dict:
    if "name" in data:
        data["name"] = validate_required(data["name"], "Tenant name")
        validate_length(data["name"], MAX_LENGTHS["name"], "Tenant name")
    if "name_kana" in data:
        data["name_kana"] = validate_required(data["name_kana"], "Tenant name (kana)")
        validate_length(data["name_kana"], MAX_LENGTHS["name_kana"], "Tenant name (kana)")
    if "amount" in data:
        validate_positive_integer(data["amount"], "Amount")
    return data


def create_tenant(db: Session, *, user_id: uuid.UUID, tenant: schemas.TenantCreate) -> models.Tenant:
    data = _validate_tenant_fields(tenant.model_dump())
    if data.get("group_id"):
        _require_group(db, user_id, data["group_id"])
    db_tenant = models.Tenant(user_id=user_id, **data)
    db.add(db_tenant)
    db.commit()
    db.refresh(db_tenant)
    return db_tenant


def get_tenant(db: Session, *, user_id: uuid.UUID, tenant_id: uuid.UUID) -> Optional[models.Tenant]:
    return (
        db.query(models.Tenant)
        .filter(models.Tenant.id == tenant_id, models.Tenant.user_id == user_id)
        .first()
    )


def require_tenant(db: Session, *, user_id: uuid.UUID, tenant_id: uuid.UUID) -> models.Tenant:
    db_tenant = get_tenant(db, user_id=user_id, tenant_id=tenant_id)
    if db_tenant is None:
        raise NotFoundError("Tenant not found")
    return db_tenant


def list_tenants(db: Session, *, user_id: uuid.UUID, group_id: Optional[uuid.UUID] = None) -> List[models.Tenant]:
    query = db.query(models.Tenant).filter(models.Tenant.user_id == user_id)
    if group_id:
        query = query.filter(models.Tenant.group_id == group_id)
    return query.order_by(models.Tenant.name.asc()).all()


def list_tenants_by_amount(db: Session, *, user_id: uuid.UUID, amount: int) -> List[models.Tenant]:
    return (
        db.query(models.Tenant)
        .filter(models.Tenant.user_id == user_id, models.Tenant.amount == amount)
        .all()
    )


def update_tenant(db: Session, *, user_id: uuid.UUID, tenant_id: uuid.UUID, update: schemas.TenantUpdate) -> models.Tenant:
    db_tenant = require_tenant(db, user_id=user_id, tenant_id=tenant_id)
    data = update.model_dump(exclude_unset=True)
    for key in ("name", "name_kana", "amount"):
        if key in data and data[key] is None:
            data.pop(key)
    data = _validate_tenant_fields(data)
    if data.get("group_id"):
        _require_group(db, user_id, data["group_id"])
    for key, value in data.items():
        setattr(db_tenant, key, value)
    db.commit()
    db.refresh(db_tenant)
    return db_tenant


def delete_tenant(db: Session, *, user_id: uuid.UUID, tenant_id: uuid.UUID) -> None:
    db_tenant = require_tenant(db, user_id=user_id, tenant_id=tenant_id)
    has_templates = (
        db.query(models.RecurringTemplate.id)
        .filter(models.RecurringTemplate.tenant_id == db_tenant.id)
        .first()
    )
    if has_templates:
        raise ConflictError("Tenant has recurring templates; delete them first")
    db.query(models.Payment).filter(models.Payment.tenant_id == db_tenant.id).delete(synchronize_session=False)
    db.query(models.PaymentStatus).filter(models.PaymentStatus.tenant_id == db_tenant.id).delete(synchronize_session=False)
    db.delete(db_tenant)
    db.commit()


def _validate_group_name(name: str) -> str:
    name = validate_required(name, "Group name")
    validate_length(name, MAX_LENGTHS["name"], "Group name")
    return name


def create_group(db: Session, *, user_id: uuid.UUID, group: schemas.TenantGroupCreate) -> models.TenantGroup:
    db_group = models.TenantGroup(user_id=user_id, name=_validate_group_name(group.name))
    db.add(db_group)
    db.commit()
    db.refresh(db_group)
    return db_group


def get_group(db: Session, *, user_id: uuid.UUID, group_id: uuid.UUID) -> Optional[models.TenantGroup]:
    return (
        db.query(models.TenantGroup)
        .filter(models.TenantGroup.id == group_id, models.TenantGroup.user_id == user_id)
        .first()
    )


def list_groups_with_counts(db: Session, *, user_id: uuid.UUID) -> List[dict]:
    rows = (
        db.query(models.TenantGroup, func.count(models.Tenant.id))
        .outerjoin(models.Tenant, models.Tenant.group_id == models.TenantGroup.id)
        .filter(models.TenantGroup.user_id == user_id)
        .group_by(models.TenantGroup.id)
        .order_by(models.TenantGroup.created_at.asc())
        .all()
    )
    return [
        {"id": group.id, "name": group.name, "tenant_count": int(count), "created_at": group.created_at}
        for group, count in rows
    ]


def rename_group(db: Session, *, user_id: uuid.UUID, group_id: uuid.UUID, name: str) -> models.TenantGroup:
    db_group = _require_group(db, user_id, group_id)
    db_group.name = _validate_group_name(name)
    db.commit()
    db.refresh(db_group)
    return db_group


def delete_group(db: Session, *, user_id: uuid.UUID, group_id: uuid.UUID) -> None:
    """Delete a group; its tenants stay, detached."""
    db_group = _require_group(db, user_id, group_id)
    (
        db.query(models.Tenant)
        .filter(models.Tenant.group_id == db_group.id)
        .update({models.Tenant.group_id: None}, synchronize_session=False)
    )
    db.delete(db_group)
    db.commit()


def import_clients_as_tenants(db: Session, *, user_id: uuid.UUID) -> int:
    clients = db.query(models.Client).filter(models.Client.user_id == user_id).all()
    if not clients:
        raise ValidationError("There are no clients to import")
    existing = {
        name for (name,) in db.query(models.Tenant.name).filter(models.Tenant.user_id == user_id).all()
    }
    imported = 0
    for db_client in clients:
        if db_client.name in existing:
            continue
        db.add(models.Tenant(user_id=user_id, name=db_client.name, name_kana=db_client.name, amount=0))
        existing.add(db_client.name)
        imported += 1
    db.commit()
    return imported
