"""
Tenant and tenant group API endpoints, plus per-tenant ledger reads.
"""
from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from billia.api.deps import get_current_user
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import payments as payment_repo
from billia.db.repositories import tenants as tenant_repo
from billia.utils import calendar

router = APIRouter(prefix="/tenants", tags=["tenants"])
groups_router = APIRouter(prefix="/tenant-groups", tags=["tenants"])


@groups_router.post("/", response_model=schemas.TenantGroup, status_code=status.HTTP_201_CREATED)
def create_group_endpoint(
    group: schemas.TenantGroupCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return tenant_repo.create_group(db, user_id=user.id, group=group)


@groups_router.get("/", response_model=List[schemas.TenantGroup])
def list_groups_endpoint(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return tenant_repo.list_groups_with_counts(db, user_id=user.id)


@groups_router.put("/{group_id}", response_model=schemas.TenantGroup)
def rename_group_endpoint(
    group_id: uuid.UUID,
    group: schemas.TenantGroupCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return tenant_repo.rename_group(db, user_id=user.id, group_id=group_id, name=group.name)


@groups_router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_group_endpoint(
    group_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    tenant_repo.delete_group(db, user_id=user.id, group_id=group_id)


@router.post("/", response_model=schemas.Tenant, status_code=status.HTTP_201_CREATED)
def create_tenant_endpoint(
    tenant: schemas.TenantCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return tenant_repo.create_tenant(db, user_id=user.id, tenant=tenant)


@router.get("/", response_model=List[schemas.Tenant])
def list_tenants_endpoint(
    group_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return tenant_repo.list_tenants(db, user_id=user.id, group_id=group_id)


@router.post("/import-clients", response_model=schemas.ImportResult)
def import_clients_endpoint(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return {"imported_count": tenant_repo.import_clients_as_tenants(db, user_id=user.id)}


@router.get("/{tenant_id}", response_model=schemas.Tenant)
def get_tenant_endpoint(
    tenant_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return tenant_repo.require_tenant(db, user_id=user.id, tenant_id=tenant_id)


@router.put("/{tenant_id}", response_model=schemas.Tenant)
def update_tenant_endpoint(
    tenant_id: uuid.UUID,
    update: schemas.TenantUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return tenant_repo.update_tenant(db, user_id=user.id, tenant_id=tenant_id, update=update)


@router.delete("/{tenant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tenant_endpoint(
    tenant_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    tenant_repo.delete_tenant(db, user_id=user.id, tenant_id=tenant_id)


@router.get("/{tenant_id}/payments", response_model=List[schemas.Payment])
def list_tenant_payments_endpoint(
    tenant_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return payment_repo.list_payments_for_tenant(db, user_id=user.id, tenant_id=tenant_id)


@router.get("/{tenant_id}/payment-statuses", response_model=List[schemas.PaymentStatus])
def list_tenant_statuses_endpoint(
    tenant_id: uuid.UUID,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return payment_repo.list_statuses_for_tenant(db, user_id=user.id, tenant_id=tenant_id)


@router.get("/{tenant_id}/payment-status", response_model=schemas.PaymentStatus)
def get_tenant_month_status_endpoint(
    tenant_id: uuid.UUID,
    month: Optional[str] = Query(default=None, description="YYYY-MM; defaults to the current month"),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    tenant = tenant_repo.require_tenant(db, user_id=user.id, tenant_id=tenant_id)
    target_month = month or calendar.month_key(calendar.today())
    return payment_repo.get_or_create_payment_status(db, tenant=tenant, target_month=target_month)
