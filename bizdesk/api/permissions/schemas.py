from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

class PermissionFlags(BaseModel):
    can_view: bool = False
    can_edit: bool = False
    can_create: bool = False
    can_delete: bool = False

class PermissionCreate(PermissionFlags):
    role_id: int
    page: str = Field(..., min_length=1, max_length=50)

class PermissionResponse(PermissionFlags):
    id: int
    role_id: int
    page: str
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
