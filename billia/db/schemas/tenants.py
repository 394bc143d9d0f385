import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class TenantBase(BaseModel):
    name: str
    name_kana: str
    amount: int
    group_id: Optional[uuid.UUID] = None


class TenantCreate(TenantBase):
    pass


class TenantUpdate(BaseModel):
    name: Optional[str] = None
    name_kana: Optional[str] = None
    amount: Optional[int] = None
    # Sending an explicit null detaches the tenant from its group
    group_id: Optional[uuid.UUID] = None


class Tenant(TenantBase):
    id: uuid.UUID
    group_name: Optional[str] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class TenantGroupCreate(BaseModel):
    name: str


class TenantGroup(BaseModel):
    id: uuid.UUID
    name: str
    tenant_count: int = 0
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class ImportResult(BaseModel):
    imported_count: int
