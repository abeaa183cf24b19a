from pydantic import AfterValidator, BaseModel, Field
from datetime import datetime
from typing import Annotated, Optional
from ...models.models import TENDER_STAGES, TENDER_STATUSES

def _check_stage(value: str) -> str:
    if value not in TENDER_STAGES:
        raise ValueError(f"unknown tender stage: {value}")
    return value

def _check_status(value: str) -> str:
    if value not in TENDER_STATUSES:
        raise ValueError(f"status must be one of {', '.join(TENDER_STATUSES)}")
    return value

Stage = Annotated[str, AfterValidator(_check_stage)]
Status = Annotated[str, AfterValidator(_check_status)]

class TenderCreate(BaseModel):
    stage: Stage
    status: Status = "active"
    subject: Optional[str] = Field(None, max_length=10000)
    purchase_number: Optional[str] = Field(None, max_length=100)
    amount: Optional[float] = Field(None, ge=0)
    end_date: Optional[datetime] = None

class TenderUpdate(BaseModel):
    stage: Optional[Stage] = None
    status: Optional[Status] = None
    subject: Optional[str] = Field(None, max_length=10000)
    purchase_number: Optional[str] = Field(None, max_length=100)
    amount: Optional[float] = Field(None, ge=0)
    end_date: Optional[datetime] = None

class TenderResponse(BaseModel):
    id: int
    user_id: int
    stage: str
    status: str
    subject: Optional[str] = None
    purchase_number: Optional[str] = None
    amount: Optional[float] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TenderBudgetCreate(BaseModel):
    amount: float = Field(..., ge=0)
    description: Optional[str] = Field(None, max_length=255)

class TenderBudgetUpdate(BaseModel):
    amount: Optional[float] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=255)

class TenderBudgetResponse(BaseModel):
    id: int
    user_id: int
    amount: float
    description: Optional[str] = None

    class Config:
        from_attributes = True

class HeaderNoteCreate(BaseModel):
    content: Optional[str] = Field(None, max_length=10000)

class HeaderNoteUpdate(BaseModel):
    content: Optional[str] = Field(None, max_length=10000)

class HeaderNoteResponse(BaseModel):
    id: int
    user_id: int
    content: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class DocumentCreate(BaseModel):
    tender_id: Optional[int] = None
    file_name: str = Field(..., min_length=1, max_length=255)
    file_path: str = Field(..., min_length=1, max_length=512)
    file_size: Optional[int] = Field(None, ge=0)
    file_type: Optional[str] = Field(None, max_length=50)

class DocumentResponse(BaseModel):
    id: int
    tender_id: Optional[int] = None
    file_name: str
    file_path: str
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    uploaded_by: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
