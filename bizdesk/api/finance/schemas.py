from pydantic import AfterValidator, BaseModel, Field
from datetime import datetime
from typing import Annotated, Dict, List, Optional
from ...models.models import ACCOUNT_STATUSES, TRANSACTION_TYPES

def _check_account_status(value: str) -> str:
    if value not in ACCOUNT_STATUSES:
        raise ValueError(f"status must be one of {', '.join(ACCOUNT_STATUSES)}")
    return value

def _check_transaction_type(value: str) -> str:
    if value not in TRANSACTION_TYPES:
        raise ValueError("type must be income or expense")
    return value

AccountStatus = Annotated[str, AfterValidator(_check_account_status)]
TransactionType = Annotated[str, AfterValidator(_check_transaction_type)]

# Debts ("dolg" table, also served as /accounts)
class DolgCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    amount: float = Field(..., ge=0)
    total_debt: float = Field(0, ge=0)
    due_date: datetime
    is_paid: bool = False

class DolgUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[float] = Field(None, ge=0)
    total_debt: Optional[float] = Field(None, ge=0)
    due_date: Optional[datetime] = None
    is_paid: Optional[bool] = None

class DolgResponse(BaseModel):
    id: int
    user_id: int
    name: str
    amount: float
    total_debt: float
    due_date: datetime
    is_paid: bool

    class Config:
        from_attributes = True

class LoanCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    amount: float = Field(..., gt=0)
    interest_rate: Optional[float] = Field(None, ge=0, le=100)
    term: int = Field(..., gt=0, description="Loan term in months")
    payment_due_day: Optional[int] = Field(None, ge=1, le=31)
    is_paid: bool = False
    due_date: Optional[datetime] = None
    description: Optional[str] = Field(None, max_length=255)
    status: AccountStatus = "active"

class LoanUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[float] = Field(None, gt=0)
    interest_rate: Optional[float] = Field(None, ge=0, le=100)
    term: Optional[int] = Field(None, gt=0)
    payment_due_day: Optional[int] = Field(None, ge=1, le=31)
    is_paid: Optional[bool] = None
    due_date: Optional[datetime] = None
    description: Optional[str] = Field(None, max_length=255)
    status: Optional[AccountStatus] = None

class LoanResponse(BaseModel):
    id: int
    user_id: int
    name: str
    amount: float
    interest_rate: Optional[float] = None
    term: int
    payment_due_day: Optional[int] = None
    is_paid: bool
    due_date: Optional[datetime] = None
    description: Optional[str] = None
    status: str
    monthly_payment: float

    class Config:
        from_attributes = True

class DebitCardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    balance: float = Field(0, ge=0)
    card_number: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=255)
    status: AccountStatus = "active"

class DebitCardUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    balance: Optional[float] = Field(None, ge=0)
    card_number: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=255)
    status: Optional[AccountStatus] = None

class DebitCardResponse(BaseModel):
    id: int
    user_id: int
    name: str
    balance: float
    card_number: Optional[str] = None
    description: Optional[str] = None
    status: str

    class Config:
        from_attributes = True

class CreditCardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    credit_limit: float = Field(..., gt=0)
    debt: float = Field(0, ge=0)
    grace_period: Optional[int] = Field(None, ge=0)
    min_payment: Optional[float] = Field(None, ge=0)
    payment_due_date: Optional[datetime] = None
    is_paid: bool = False
    description: Optional[str] = Field(None, max_length=255)
    status: AccountStatus = "active"

class CreditCardUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    credit_limit: Optional[float] = Field(None, gt=0)
    debt: Optional[float] = Field(None, ge=0)
    grace_period: Optional[int] = Field(None, ge=0)
    min_payment: Optional[float] = Field(None, ge=0)
    payment_due_date: Optional[datetime] = None
    is_paid: Optional[bool] = None
    description: Optional[str] = Field(None, max_length=255)
    status: Optional[AccountStatus] = None

class CreditCardResponse(BaseModel):
    id: int
    user_id: int
    name: str
    credit_limit: float
    debt: float
    grace_period: Optional[int] = None
    min_payment: Optional[float] = None
    payment_due_date: Optional[datetime] = None
    is_paid: bool
    description: Optional[str] = None
    status: str

    class Config:
        from_attributes = True

class TransactionCreate(BaseModel):
    type: TransactionType
    amount: float = Field(..., gt=0)
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    date: Optional[datetime] = None
    debit_card_id: Optional[int] = None
    credit_card_id: Optional[int] = None

class TransactionUpdate(BaseModel):
    # Amount, type and card are fixed once the card balance has been adjusted
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    date: Optional[datetime] = None

class TransactionResponse(BaseModel):
    id: int
    user_id: int
    type: str
    amount: float
    category: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    debit_card_id: Optional[int] = None
    credit_card_id: Optional[int] = None

    class Config:
        from_attributes = True

class CreditSummary(BaseModel):
    count: int
    total_limit: float
    total_debt: float
    available: float

class TotalsSummary(BaseModel):
    count: int
    total: float

class CashflowSummary(BaseModel):
    income: float
    expense: float
    net: float

class FinanceOverviewResponse(BaseModel):
    debitCards: TotalsSummary
    creditCards: CreditSummary
    debts: TotalsSummary
    loans: TotalsSummary
    transactions: CashflowSummary
    tenderBudget: float

class TypeBreakdown(BaseModel):
    count: int
    total: float

class TransactionAnalyticsResponse(BaseModel):
    totalTransactions: int
    byType: Dict[str, TypeBreakdown]
    byCategory: Dict[str, float]
    byMonth: Dict[str, CashflowSummary]
    totalIncome: float
    totalExpense: float
    averageTransaction: float
    topTransactions: List[TransactionResponse]
