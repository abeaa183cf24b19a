from pydantic import BaseModel, Field
from typing import Optional

class LoginRequest(BaseModel):
    # Both optional so a missing field yields the login-specific 400 message
    username: Optional[str] = None
    password: Optional[str] = None

class LoginUser(BaseModel):
    id: int
    username: str
    telegram: Optional[str] = None
    role: str
    role_id: int

class LoginResponse(BaseModel):
    token: str
    user: LoginUser

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    telegram: Optional[str] = Field(None, max_length=100)
    role: str = Field("user", min_length=1, max_length=50)

class RegisterResponse(BaseModel):
    message: str
    userId: int
