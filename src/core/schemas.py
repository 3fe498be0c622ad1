from __future__ import annotations

from datetime import datetime, UTC
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire (prompt JSON, tool payloads)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -------------------------
# Projection inputs / outputs
# -------------------------

class AssetProjectionInput(CamelModel):
    balance: float = 0.0
    growth_rate: Optional[float] = None      # percent, wins over interest_rate
    interest_rate: Optional[float] = None    # percent
    annual_contribution: Optional[float] = None


class ProjectionPoint(CamelModel):
    year: int
    value: int


class GoalSuccessRequest(CamelModel):
    goal_amount: float
    goal_years: float
    assets: List[AssetProjectionInput] = Field(default_factory=list)


# -------------------------
# Financial context snapshot
# -------------------------

class ProfileSnapshot(CamelModel):
    age: Optional[int] = None
    retirement_age: Optional[int] = None
    risk_tolerance: Optional[str] = None
    inflation_rate: float = 3.0
    investment_return: float = 7.0
    savings_rate: float = 10.0


class SummarySnapshot(CamelModel):
    net_worth: int
    total_assets: int
    total_debts: int
    asset_count: int
    debt_count: int
    current_savings: int
    target_savings: int
    years_until_retirement: int


class AssetSnapshot(CamelModel):
    id: str
    type: str
    subtype: Optional[str] = None
    name: str
    balance: int
    interest_rate: Optional[float] = None
    annual_contribution: Optional[int] = None
    growth_rate: Optional[float] = None
    asset_class: Optional[str] = None


class DebtSnapshot(CamelModel):
    id: str
    type: str
    lender: str
    balance: int
    interest_rate: float
    monthly_payment: int
    term_length: Optional[int] = None


class GoalSnapshot(CamelModel):
    id: str
    name: str
    target_amount: int
    current_amount: int
    target_date: Optional[str] = None
    priority: int
    is_active: bool
    progress_percentage: int
    success_percentage: int
    required_monthly_saving: Optional[int] = None


class ExpenseSummary(CamelModel):
    total_monthly: int
    living: int
    entertainment: int
    discretionary: int


class ExpenseBreakdown(CamelModel):
    housing: int
    utilities: int
    groceries: int
    dining: int
    transport: int
    healthcare: int
    entertainment: int
    miscellaneous: int


class ExpenseSnapshot(CamelModel):
    current_month: str
    summary: Optional[ExpenseSummary] = None
    breakdown: Optional[ExpenseBreakdown] = None


class InsuranceSnapshot(CamelModel):
    id: str
    type: str
    coverage: int
    is_employer_provided: bool


class AllocationRow(CamelModel):
    label: str
    value: int
    percentage: int


class FinancialContext(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    profile: ProfileSnapshot
    summary: SummarySnapshot
    assets: List[AssetSnapshot] = Field(default_factory=list)
    debts: List[DebtSnapshot] = Field(default_factory=list)
    goals: List[GoalSnapshot] = Field(default_factory=list)
    expenses: ExpenseSnapshot
    insurance: List[InsuranceSnapshot] = Field(default_factory=list)
    financial_projections: List[ProjectionPoint] = Field(default_factory=list)
    asset_allocation: List[AllocationRow] = Field(default_factory=list)


# -------------------------
# Statements
# -------------------------

class StatementStatus(str, Enum):
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class StatementRecord(CamelModel):
    id: str
    user_id: str
    file_name: str
    status: StatementStatus
    brokerage_company: Optional[str] = None
    parsed_data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None


# -------------------------
# Chat
# -------------------------

class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"] = "user"
    content: str
    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_history_item(cls, item: Dict[str, Any]) -> "ChatMessage":
        """Client history uses {sender, text}; anything not sent by the user is the assistant."""
        if "role" in item and "content" in item:
            return cls(role=item["role"], content=item["content"])
        role = "user" if item.get("sender") == "user" else "assistant"
        return cls(role=role, content=str(item.get("text") or ""))


class ErrorEnvelope(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    retriable: bool = False


class AgentRequest(BaseModel):
    request_id: str
    session_id: str
    turn_id: int

    user_id: str
    user_text: str

    messages: List[ChatMessage] = Field(default_factory=list)
    statement_id: Optional[str] = None

    # upstream node output
    financial_context: Optional[FinancialContext] = None


class AgentResponse(BaseModel):
    """Standard agent output."""

    model_config = ConfigDict(extra="allow")

    agent_name: str
    answer_md: str
    data: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    confidence: Literal["high", "medium", "low"] = "medium"
    error: Optional[Dict[str, Any]] = None
