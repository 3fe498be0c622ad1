"""Read/write access to a user's financial records.

`FinanceRepository` is the contract the context builder and statement
processor depend on; `SqlFinanceRepository` is the SQLAlchemy implementation.
Each call opens its own short-lived session so concurrent reads from worker
threads never share one.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, List, Optional, Protocol, Sequence, TypeVar

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.core.schemas import StatementRecord, StatementStatus
from src.db.models import (
    Asset,
    Base,
    Debt,
    ExpenseRecord,
    FinancialGoal,
    InsurancePolicy,
    Profile,
    Statement,
)
from src.utils.logging import get_logger

logger = get_logger("repository")

R = TypeVar("R")


class RepositoryError(Exception):
    pass


class StatementNotFound(RepositoryError):
    pass


class FinanceRepository(Protocol):
    def get_profile(self, user_id: str) -> Optional[Profile]: ...

    def list_assets(self, user_id: str) -> Sequence[Asset]: ...

    def list_debts(self, user_id: str) -> Sequence[Debt]: ...

    def list_active_goals(self, user_id: str) -> Sequence[FinancialGoal]: ...

    def get_expense_record(self, user_id: str, month: date) -> Optional[ExpenseRecord]: ...

    def list_insurance(self, user_id: str) -> Sequence[InsurancePolicy]: ...

    def create_statement(self, user_id: str, file_name: str) -> StatementRecord: ...

    def update_statement(self, statement_id: str, **fields: Any) -> StatementRecord: ...

    def get_statement(self, statement_id: str, user_id: Optional[str] = None) -> Optional[StatementRecord]: ...

    def list_statements(self, user_id: str) -> List[StatementRecord]: ...

    def list_completed_statements(self, user_id: str) -> List[StatementRecord]: ...


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(engine)


class SqlFinanceRepository:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, url: str, *, create_tables: bool = False) -> "SqlFinanceRepository":
        engine = make_engine(url)
        if create_tables:
            init_db(engine)
        return cls(sessionmaker(bind=engine, expire_on_commit=False))

    def session(self) -> Session:
        return self._session_factory()

    def _run(self, op: str, fn: Callable[[Session], R]) -> R:
        try:
            with self._session_factory() as s:
                return fn(s)
        except SQLAlchemyError as e:
            logger.error(f"repository_failed op={op} err={type(e).__name__}")
            raise RepositoryError(f"{op} failed: {e}") from e

    # -------------------------
    # Reads used by the context builder
    # -------------------------

    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self._run(
            "get_profile",
            lambda s: s.scalars(select(Profile).where(Profile.user_id == user_id)).first(),
        )

    def list_assets(self, user_id: str) -> Sequence[Asset]:
        return self._run(
            "list_assets",
            lambda s: list(s.scalars(select(Asset).where(Asset.user_id == user_id).order_by(Asset.balance.desc()))),
        )

    def list_debts(self, user_id: str) -> Sequence[Debt]:
        return self._run(
            "list_debts",
            lambda s: list(s.scalars(select(Debt).where(Debt.user_id == user_id).order_by(Debt.balance.desc()))),
        )

    def list_active_goals(self, user_id: str) -> Sequence[FinancialGoal]:
        stmt = (
            select(FinancialGoal)
            .where(FinancialGoal.user_id == user_id, FinancialGoal.is_active.is_(True))
            .order_by(FinancialGoal.priority.asc())
        )
        return self._run("list_active_goals", lambda s: list(s.scalars(stmt)))

    def get_expense_record(self, user_id: str, month: date) -> Optional[ExpenseRecord]:
        stmt = select(ExpenseRecord).where(ExpenseRecord.user_id == user_id, ExpenseRecord.month == month)
        return self._run("get_expense_record", lambda s: s.scalars(stmt).first())

    def list_insurance(self, user_id: str) -> Sequence[InsurancePolicy]:
        return self._run(
            "list_insurance",
            lambda s: list(s.scalars(select(InsurancePolicy).where(InsurancePolicy.user_id == user_id))),
        )

    # -------------------------
    # Statements
    # -------------------------

    def create_statement(self, user_id: str, file_name: str) -> StatementRecord:
        def _create(s: Session) -> StatementRecord:
            row = Statement(user_id=user_id, file_name=file_name, status=StatementStatus.PROCESSING.value)
            s.add(row)
            s.commit()
            return StatementRecord.model_validate(row, from_attributes=True)

        return self._run("create_statement", _create)

    def update_statement(self, statement_id: str, **fields: Any) -> StatementRecord:
        def _update(s: Session) -> StatementRecord:
            row = s.get(Statement, statement_id)
            if row is None:
                raise StatementNotFound(statement_id)
            for k, v in fields.items():
                setattr(row, k, v.value if isinstance(v, StatementStatus) else v)
            s.commit()
            return StatementRecord.model_validate(row, from_attributes=True)

        return self._run("update_statement", _update)

    def get_statement(self, statement_id: str, user_id: Optional[str] = None) -> Optional[StatementRecord]:
        def _get(s: Session) -> Optional[StatementRecord]:
            stmt = select(Statement).where(Statement.id == statement_id)
            if user_id is not None:
                stmt = stmt.where(Statement.user_id == user_id)
            row = s.scalars(stmt).first()
            return StatementRecord.model_validate(row, from_attributes=True) if row else None

        return self._run("get_statement", _get)

    def list_statements(self, user_id: str) -> List[StatementRecord]:
        stmt = select(Statement).where(Statement.user_id == user_id).order_by(Statement.created_at.desc())
        return self._run(
            "list_statements",
            lambda s: [StatementRecord.model_validate(r, from_attributes=True) for r in s.scalars(stmt)],
        )

    def list_completed_statements(self, user_id: str) -> List[StatementRecord]:
        stmt = (
            select(Statement)
            .where(Statement.user_id == user_id, Statement.status == StatementStatus.COMPLETED.value)
            .order_by(Statement.created_at.asc())
        )
        return self._run(
            "list_completed_statements",
            lambda s: [StatementRecord.model_validate(r, from_attributes=True) for r in s.scalars(stmt)],
        )
