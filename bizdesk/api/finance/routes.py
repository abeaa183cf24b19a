# bizdesk/api/finance/routes.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from collections import defaultdict
from decimal import Decimal
from typing import List, Optional
import logging

from ..crud import build_crud_router, commit_or_400, get_or_404, scope_to_owner
from ...core.auth import require_permission
from ...core.errors import BadRequestError
from ...core.security import Identity
from ...db.database import get_db
from ...models.models import CreditCard, DebitCard, DolgTable, Loan, TenderBudget, Transaction
from .schemas import (
    DolgCreate, DolgUpdate, DolgResponse,
    LoanCreate, LoanUpdate, LoanResponse,
    DebitCardCreate, DebitCardUpdate, DebitCardResponse,
    CreditCardCreate, CreditCardUpdate, CreditCardResponse,
    TransactionCreate, TransactionUpdate, TransactionResponse,
    FinanceOverviewResponse, TransactionAnalyticsResponse
)

logger = logging.getLogger(__name__)

FINANCE_PAGE = "finance"

dolg_table_router = build_crud_router(
    DolgTable,
    resource="Debt",
    page=FINANCE_PAGE,
    read_schema=DolgResponse,
    create_schema=DolgCreate,
    update_schema=DolgUpdate,
    order_by=DolgTable.due_date,
)

loans_router = build_crud_router(
    Loan,
    resource="Loan",
    page=FINANCE_PAGE,
    read_schema=LoanResponse,
    create_schema=LoanCreate,
    update_schema=LoanUpdate,
)

debit_cards_router = build_crud_router(
    DebitCard,
    resource="Debit card",
    page=FINANCE_PAGE,
    read_schema=DebitCardResponse,
    create_schema=DebitCardCreate,
    update_schema=DebitCardUpdate,
)

credit_cards_router = build_crud_router(
    CreditCard,
    resource="Credit card",
    page=FINANCE_PAGE,
    read_schema=CreditCardResponse,
    create_schema=CreditCardCreate,
    update_schema=CreditCardUpdate,
)

def _to_float(value) -> float:
    return float(value or 0)

def _own_card(db: Session, model, card_id: int, user: Identity, label: str):
    card = db.query(model).filter(model.id == card_id, model.user_id == user.id).first()
    if card is None:
        raise BadRequestError(f"{label} {card_id} not found or not owned by user")
    if card.status != "active":
        raise BadRequestError(f"{label} {card_id} is not active")
    return card

def apply_card_effect(card, tx_type: str, amount: Decimal, reverse: bool = False) -> None:
    """
    Move money on the card attached to a transaction.

    Expenses draw from a debit card's balance or add to a credit card's
    debt; income does the opposite. `reverse` undoes a previous effect.
    """
    if isinstance(card, DebitCard):
        balance = Decimal(card.balance or 0)
        delta = amount if tx_type == "income" else -amount
        if reverse:
            delta = -delta
        if balance + delta < 0:
            raise BadRequestError(f"Insufficient funds on debit card {card.id}")
        card.balance = balance + delta
    else:
        debt = Decimal(card.debt or 0)
        delta = amount if tx_type == "expense" else -amount
        if reverse:
            delta = -delta
        if debt + delta > Decimal(card.credit_limit):
            raise BadRequestError(f"Credit limit exceeded on credit card {card.id}")
        card.debt = max(debt + delta, Decimal(0))

transactions_router = APIRouter()

@transactions_router.get("", response_model=List[TransactionResponse])
def list_transactions(
    type: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    user: Identity = Depends(require_permission(FINANCE_PAGE, "view")),
    db: Session = Depends(get_db)
):
    query = scope_to_owner(db.query(Transaction), Transaction, user)
    if type:
        query = query.filter(Transaction.type == type)
    if category:
        query = query.filter(Transaction.category == category)
    return query.order_by(Transaction.date.desc(), Transaction.id.desc()).all()

@transactions_router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    user: Identity = Depends(require_permission(FINANCE_PAGE, "view")),
    db: Session = Depends(get_db)
):
    return get_or_404(db, Transaction, transaction_id, user, "Transaction")

@transactions_router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    user: Identity = Depends(require_permission(FINANCE_PAGE, "create")),
    db: Session = Depends(get_db)
):
    if payload.debit_card_id is not None and payload.credit_card_id is not None:
        raise BadRequestError("A transaction can use only one card")

    card = None
    if payload.debit_card_id is not None:
        card = _own_card(db, DebitCard, payload.debit_card_id, user, "Debit card")
    elif payload.credit_card_id is not None:
        card = _own_card(db, CreditCard, payload.credit_card_id, user, "Credit card")

    amount = Decimal(str(payload.amount))
    if card is not None:
        apply_card_effect(card, payload.type, amount)

    values = payload.model_dump(exclude_none=True)
    transaction = Transaction(**values, user_id=user.id)
    db.add(transaction)
    commit_or_400(db, "Transaction")
    db.refresh(transaction)
    logger.info(f"Transaction {transaction.id} ({payload.type} {amount}) created by user {user.id}")
    return transaction

@transactions_router.put("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    user: Identity = Depends(require_permission(FINANCE_PAGE, "edit")),
    db: Session = Depends(get_db)
):
    transaction = get_or_404(db, Transaction, transaction_id, user, "Transaction")
    for key, value in payload.model_dump(exclude_unset=True).items():
        if key == "date" and value is None:
            continue
        setattr(transaction, key, value)
    commit_or_400(db, "Transaction")
    db.refresh(transaction)
    logger.info(f"Transaction {transaction_id} updated by user {user.id}")
    return transaction

@transactions_router.delete("/{transaction_id}")
def delete_transaction(
    transaction_id: int,
    user: Identity = Depends(require_permission(FINANCE_PAGE, "delete")),
    db: Session = Depends(get_db)
):
    transaction = get_or_404(db, Transaction, transaction_id, user, "Transaction")

    card = None
    if transaction.debit_card_id is not None:
        card = db.query(DebitCard).filter(
            DebitCard.id == transaction.debit_card_id,
            DebitCard.user_id == transaction.user_id
        ).first()
    elif transaction.credit_card_id is not None:
        card = db.query(CreditCard).filter(
            CreditCard.id == transaction.credit_card_id,
            CreditCard.user_id == transaction.user_id
        ).first()
    if card is not None:
        apply_card_effect(card, transaction.type, Decimal(transaction.amount), reverse=True)

    db.delete(transaction)
    commit_or_400(db, "Transaction")
    logger.info(f"Transaction {transaction_id} deleted by user {user.id}")
    return {"message": f"Transaction {transaction_id} deleted", "id": transaction_id}

overview_router = APIRouter()

@overview_router.get("/overview", response_model=FinanceOverviewResponse)
def get_overview(
    user: Identity = Depends(require_permission(FINANCE_PAGE, "view")),
    db: Session = Depends(get_db)
):
    """Aggregated balances across cards, debts, loans and transactions."""
    debit_cards = scope_to_owner(db.query(DebitCard), DebitCard, user).all()
    credit_cards = scope_to_owner(db.query(CreditCard), CreditCard, user).all()
    debts = scope_to_owner(db.query(DolgTable), DolgTable, user).all()
    loans = scope_to_owner(db.query(Loan), Loan, user).all()
    transactions = scope_to_owner(db.query(Transaction), Transaction, user).all()
    budget = scope_to_owner(db.query(TenderBudget), TenderBudget, user).order_by(TenderBudget.id).first()

    total_limit = sum(_to_float(c.credit_limit) for c in credit_cards)
    total_credit_debt = sum(_to_float(c.debt) for c in credit_cards)
    income = sum(_to_float(t.amount) for t in transactions if t.type == "income")
    expense = sum(_to_float(t.amount) for t in transactions if t.type == "expense")

    logger.debug(f"Finance overview built for user {user.id}")
    return {
        "debitCards": {
            "count": len(debit_cards),
            "total": sum(_to_float(c.balance) for c in debit_cards),
        },
        "creditCards": {
            "count": len(credit_cards),
            "total_limit": total_limit,
            "total_debt": total_credit_debt,
            "available": total_limit - total_credit_debt,
        },
        "debts": {"count": len(debts), "total": sum(_to_float(d.amount) for d in debts)},
        "loans": {"count": len(loans), "total": sum(_to_float(l.amount) for l in loans)},
        "transactions": {"income": income, "expense": expense, "net": income - expense},
        "tenderBudget": _to_float(budget.amount) if budget else 0.0,
    }

analytics_router = APIRouter()

@analytics_router.get("/transactions", response_model=TransactionAnalyticsResponse)
def transaction_analytics(
    user: Identity = Depends(require_permission(FINANCE_PAGE, "view")),
    db: Session = Depends(get_db)
):
    transactions = scope_to_owner(db.query(Transaction), Transaction, user).all()

    by_type = defaultdict(lambda: {"count": 0, "total": 0.0})
    by_category = defaultdict(float)
    by_month = defaultdict(lambda: {"income": 0.0, "expense": 0.0, "net": 0.0})

    for tx in transactions:
        amount = _to_float(tx.amount)
        by_type[tx.type]["count"] += 1
        by_type[tx.type]["total"] += amount
        by_category[tx.category or "uncategorized"] += amount
        if tx.date is not None:
            month = by_month[tx.date.strftime("%Y-%m")]
            month[tx.type] += amount
            month["net"] = month["income"] - month["expense"]

    total_income = by_type["income"]["total"] if "income" in by_type else 0.0
    total_expense = by_type["expense"]["total"] if "expense" in by_type else 0.0
    count = len(transactions)
    top = sorted(transactions, key=lambda t: _to_float(t.amount), reverse=True)[:5]

    return {
        "totalTransactions": count,
        "byType": dict(by_type),
        "byCategory": dict(by_category),
        "byMonth": dict(sorted(by_month.items())),
        "totalIncome": total_income,
        "totalExpense": total_expense,
        "averageTransaction": round((total_income + total_expense) / count, 2) if count else 0.0,
        "topTransactions": [TransactionResponse.model_validate(t) for t in top],
    }
