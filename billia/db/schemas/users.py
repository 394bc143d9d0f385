import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class UserBase(BaseModel):
    email: str
    display_name: Optional[str] = None


class User(UserBase):
    id: uuid.UUID
    is_superadmin: bool = False
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class AdminUserSummary(User):
    invoice_count: int = 0
