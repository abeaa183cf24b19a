from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    telegram: Optional[str] = Field(None, max_length=100)
    role: str = Field("user", min_length=1, max_length=50)

class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    password: Optional[str] = Field(None, min_length=6)
    telegram: Optional[str] = Field(None, max_length=100)

class RoleChange(BaseModel):
    role: str = Field(..., min_length=1, max_length=50)

class UserResponse(BaseModel):
    id: int
    username: str
    telegram: Optional[str] = None
    role_id: int
    role: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class VisibilitySettingCreate(BaseModel):
    user_id: int
    stage: str = Field(..., min_length=1, max_length=50)
    visible: bool = False

class VisibilitySettingUpdate(BaseModel):
    stage: Optional[str] = Field(None, min_length=1, max_length=50)
    visible: Optional[bool] = None

class VisibilitySettingResponse(BaseModel):
    id: int
    user_id: int
    stage: str
    visible: bool

    class Config:
        from_attributes = True
