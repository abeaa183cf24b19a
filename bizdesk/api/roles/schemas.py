from pydantic import AfterValidator, BaseModel, Field
from typing import Annotated, Optional

RoleName = Annotated[str, Field(min_length=1, max_length=50), AfterValidator(str.lower)]

class RoleCreate(BaseModel):
    name: RoleName
    description: Optional[str] = Field(None, max_length=255)

class RoleUpdate(BaseModel):
    name: Optional[RoleName] = None
    description: Optional[str] = Field(None, max_length=255)

class RoleResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True
