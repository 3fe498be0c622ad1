from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, Date, DateTime, Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


def month_key(d: date) -> date:
    """Expense records are keyed by the first day of their month."""
    return d.replace(day=1)


class Base(DeclarativeBase):
    pass


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    age: Mapped[Optional[int]] = mapped_column(Integer)
    retirement_age: Mapped[Optional[int]] = mapped_column(Integer)
    risk_tolerance: Mapped[Optional[str]] = mapped_column(String(32))

    # all rates in percent
    inflation_rate: Mapped[Optional[float]] = mapped_column(Float)
    investment_return: Mapped[Optional[float]] = mapped_column(Float)
    savings_rate: Mapped[Optional[float]] = mapped_column(Float)


class Asset(Base):
    __tablename__ = "assets"
    __table_args__ = (Index("idx_assets_user", "user_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    type: Mapped[str] = mapped_column(String(32), nullable=False)  # Investment | Cash | Lifestyle | ...
    subtype: Mapped[Optional[str]] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    balance: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    interest_rate: Mapped[Optional[float]] = mapped_column(Float)
    growth_rate: Mapped[Optional[float]] = mapped_column(Float)
    annual_contribution: Mapped[Optional[float]] = mapped_column(Float)
    asset_class: Mapped[Optional[str]] = mapped_column(String(64))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


class Debt(Base):
    __tablename__ = "debts"
    __table_args__ = (Index("idx_debts_user", "user_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    type: Mapped[str] = mapped_column(String(64), nullable=False)
    lender: Mapped[str] = mapped_column(String(255), nullable=False)
    balance: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    interest_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    monthly_payment: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    term_length: Mapped[Optional[int]] = mapped_column(Integer)  # months; None for revolving


class FinancialGoal(Base):
    __tablename__ = "financial_goals"
    __table_args__ = (Index("idx_goals_user", "user_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    target_amount: Mapped[float] = mapped_column(Float, nullable=False)
    current_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    target_date: Mapped[Optional[date]] = mapped_column(Date)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ExpenseRecord(Base):
    __tablename__ = "expense_records"
    __table_args__ = (UniqueConstraint("user_id", "month", name="uq_expense_user_month"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    month: Mapped[date] = mapped_column(Date, nullable=False)  # first day of the month

    is_detailed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    total_monthly: Mapped[Optional[float]] = mapped_column(Float)

    housing: Mapped[Optional[float]] = mapped_column(Float)
    utilities: Mapped[Optional[float]] = mapped_column(Float)
    groceries: Mapped[Optional[float]] = mapped_column(Float)
    dining: Mapped[Optional[float]] = mapped_column(Float)
    transport: Mapped[Optional[float]] = mapped_column(Float)
    healthcare: Mapped[Optional[float]] = mapped_column(Float)
    entertainment: Mapped[Optional[float]] = mapped_column(Float)
    miscellaneous: Mapped[Optional[float]] = mapped_column(Float)


class InsurancePolicy(Base):
    __tablename__ = "insurance_policies"
    __table_args__ = (Index("idx_insurance_user", "user_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    type: Mapped[str] = mapped_column(String(64), nullable=False)
    coverage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    is_employer_provided: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Statement(Base):
    __tablename__ = "statements"
    __table_args__ = (Index("idx_statements_user_status", "user_id", "status"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PROCESSING")
    brokerage_company: Mapped[Optional[str]] = mapped_column(String(255))
    parsed_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    error: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)
