from sqlalchemy import Column, String, DateTime, Integer, Boolean, Numeric, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..db.database import Base

# Tender pipeline stages, "IP" and "TA" are the two legal entities tenders are filed under
TENDER_STAGES = [
    "В работе ИП", "В работе ТА", "Исполнение ТА", "Исполнено ИП", "Исполнено ТА",
    "Нулевые закупки", "Ожидание оплаты ИП", "Ожидание оплаты ТА", "Отправил ТА",
    "Подал ИП", "Подписание контракта", "Проиграл ИП", "Проиграл ТА", "Просчет ЗМО",
    "Просчет ИП", "Участвую ИП", "Участвую ТА", "Выиграл ИП", "Выиграл ТА",
]

TENDER_STATUSES = ("active", "completed", "canceled")
ACCOUNT_STATUSES = ("active", "frozen", "closed")
TRANSACTION_TYPES = ("income", "expense")

class TimestampMixin:
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False)
    description = Column(String(255), nullable=True)

    permissions = relationship("Permission", back_populates="role", cascade="all, delete-orphan")

class Permission(TimestampMixin, Base):
    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    page = Column(String(50), nullable=False)
    can_view = Column(Boolean, default=False, nullable=False)
    can_edit = Column(Boolean, default=False, nullable=False)
    can_create = Column(Boolean, default=False, nullable=False)
    can_delete = Column(Boolean, default=False, nullable=False)

    role = relationship("Role", back_populates="permissions")

    __table_args__ = (
        UniqueConstraint("role_id", "page", name="permissions_role_page_key"),
    )

class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    telegram = Column(String(100), nullable=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    role = relationship("Role")

class VisibilitySetting(TimestampMixin, Base):
    __tablename__ = "visibility_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    stage = Column(String(50), nullable=False)
    visible = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "stage", name="visibility_settings_user_stage_key"),
    )

class Tender(TimestampMixin, Base):
    __tablename__ = "tenders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    stage = Column(String(50), nullable=False)
    status = Column(String(50), nullable=False, default="active")
    subject = Column(Text, nullable=True)
    purchase_number = Column(String(100), unique=True, nullable=True)
    amount = Column(Numeric(15, 2), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)

class TenderBudget(TimestampMixin, Base):
    __tablename__ = "tender_budget"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False, default=0)
    description = Column(String(255), nullable=True)

class Document(TimestampMixin, Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tender_id = Column(Integer, ForeignKey("tenders.id", ondelete="CASCADE"), nullable=True, index=True)
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(512), nullable=False)
    file_size = Column(Integer, nullable=True)
    file_type = Column(String(50), nullable=True)
    uploaded_by = Column(Integer, ForeignKey("users.id"), nullable=True)

class HeaderNote(TimestampMixin, Base):
    __tablename__ = "header_note"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=True)

class DolgTable(TimestampMixin, Base):
    """Debts owed by the user ("dolg" = debt)."""
    __tablename__ = "dolg_table"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    total_debt = Column(Numeric(15, 2), nullable=False, default=0)
    due_date = Column(DateTime(timezone=True), nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)

class Loan(TimestampMixin, Base):
    __tablename__ = "loans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    interest_rate = Column(Numeric(5, 2), nullable=True)
    term = Column(Integer, nullable=False)  # months
    payment_due_day = Column(Integer, nullable=True)
    is_paid = Column(Boolean, default=False, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=True)
    description = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="active")

    @property
    def monthly_payment(self) -> float:
        """Annuity payment for the loan; plain division when there is no interest."""
        amount = float(self.amount or 0)
        term = self.term or 0
        if term <= 0:
            return 0.0
        monthly_rate = float(self.interest_rate or 0) / 100 / 12
        if monthly_rate == 0:
            return round(amount / term, 2)
        factor = (1 + monthly_rate) ** term
        return round(amount * monthly_rate * factor / (factor - 1), 2)

class DebitCard(TimestampMixin, Base):
    __tablename__ = "debit_card"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    balance = Column(Numeric(15, 2), nullable=False, default=0)
    card_number = Column(String(50), nullable=True)
    description = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="active")

class CreditCard(TimestampMixin, Base):
    __tablename__ = "credit_card"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    credit_limit = Column(Numeric(15, 2), nullable=False)
    debt = Column(Numeric(15, 2), nullable=False, default=0)
    grace_period = Column(Integer, nullable=True)
    min_payment = Column(Numeric(15, 2), nullable=True)
    payment_due_date = Column(DateTime(timezone=True), nullable=True)
    is_paid = Column(Boolean, default=False, nullable=False)
    description = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="active")

class Transaction(TimestampMixin, Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    category = Column(String(100), nullable=True)
    description = Column(String(255), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    debit_card_id = Column(Integer, ForeignKey("debit_card.id", ondelete="SET NULL"), nullable=True)
    credit_card_id = Column(Integer, ForeignKey("credit_card.id", ondelete="SET NULL"), nullable=True)
