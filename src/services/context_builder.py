"""Builds the FinancialContext snapshot that seeds an advisor conversation.

The six repository reads are independent and run concurrently; any failure
propagates to the caller as-is. All numbers are rounded before they land in
the snapshot since it is meant for the LLM, not for further arithmetic.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from contextvars import copy_context
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from src.core.config import SETTINGS
from src.core.schemas import (
    AllocationRow,
    AssetSnapshot,
    DebtSnapshot,
    ExpenseBreakdown,
    ExpenseSnapshot,
    ExpenseSummary,
    FinancialContext,
    GoalSnapshot,
    InsuranceSnapshot,
    ProfileSnapshot,
    SummarySnapshot,
)
from src.db.models import month_key
from src.db.repository import FinanceRepository
from src.utils.logging import get_logger
from src.utils.tvm import goal_success_for_goal, projection_series, required_monthly_saving, round_half_up

logger = get_logger("context_builder")

SAVINGS_TYPES = ("Investment", "Cash")
ALLOCATION_SYNONYMS = {"Cash Equivalents": "Cash", "Mutual Funds": "ETFs"}
LIVING_FIELDS = ("housing", "utilities", "groceries", "transport", "healthcare")
ENTERTAINMENT_FIELDS = ("dining", "entertainment")
BREAKDOWN_FIELDS = ("housing", "utilities", "groceries", "dining", "transport", "healthcare", "entertainment", "miscellaneous")

# Placeholder heuristic carried over unchanged: back estimated expenses out of
# contributions (20% savings rate, 80% of income spent, 75% needed in retirement).
_FALLBACK_ANNUAL_EXPENSES = 50000.0


def _n(x: Optional[float]) -> float:
    return x or 0.0


def _rounded_or_none(x: Optional[float]) -> Optional[int]:
    return round_half_up(x) if x is not None else None


def estimate_target_savings(annual_contribution: float) -> float:
    estimated_annual_expenses = (annual_contribution / 0.2) * 0.8 * 0.75 or _FALLBACK_ANNUAL_EXPENSES
    return estimated_annual_expenses / SETTINGS.safe_withdrawal_rate


def allocation_rows(assets: Sequence[Any], total_assets: float) -> List[AllocationRow]:
    buckets: Dict[str, float] = {}
    for a in assets:
        if a.type == "Lifestyle":
            key = "Lifestyle"
        else:
            key = a.asset_class or a.type or "Other"
            key = ALLOCATION_SYNONYMS.get(key, key)
        buckets[key] = buckets.get(key, 0.0) + _n(a.balance)

    rows = [
        AllocationRow(
            label=label,
            value=round_half_up(value),
            percentage=round_half_up(value / total_assets * 100) if total_assets > 0 else 0,
        )
        for label, value in buckets.items()
    ]
    return [r for r in rows if r.value > 0]


def expense_snapshot(record: Any, month: date) -> ExpenseSnapshot:
    if record is None:
        return ExpenseSnapshot(current_month=month.isoformat())

    living = sum(_n(getattr(record, f)) for f in LIVING_FIELDS)
    entertainment = sum(_n(getattr(record, f)) for f in ENTERTAINMENT_FIELDS)
    return ExpenseSnapshot(
        current_month=month.isoformat(),
        summary=ExpenseSummary(
            total_monthly=round_half_up(_n(record.total_monthly)),
            living=round_half_up(living),
            entertainment=round_half_up(entertainment),
            discretionary=round_half_up(_n(record.miscellaneous)),
        ),
        breakdown=ExpenseBreakdown(**{f: round_half_up(_n(getattr(record, f))) for f in BREAKDOWN_FIELDS}),
    )


def _fetch_all(user_id: str, repository: FinanceRepository, month: date) -> Dict[str, Any]:
    calls = {
        "profile": (repository.get_profile, (user_id,)),
        "assets": (repository.list_assets, (user_id,)),
        "debts": (repository.list_debts, (user_id,)),
        "goals": (repository.list_active_goals, (user_id,)),
        "expense": (repository.get_expense_record, (user_id, month)),
        "insurance": (repository.list_insurance, (user_id,)),
    }
    with ThreadPoolExecutor(max_workers=len(calls), thread_name_prefix="ctx-read") as pool:
        # each read gets its own copy so log context follows it into the worker
        futures = {k: pool.submit(copy_context().run, fn, *args) for k, (fn, args) in calls.items()}
        return {k: f.result() for k, f in futures.items()}


def build_financial_context(
    user_id: str,
    repository: FinanceRepository,
    *,
    today: Optional[date] = None,
) -> FinancialContext:
    today = today or date.today()
    month = month_key(today)

    fetched = _fetch_all(user_id, repository, month)
    profile = fetched["profile"]
    assets = list(fetched["assets"] or [])
    debts = list(fetched["debts"] or [])
    goals = list(fetched["goals"] or [])
    insurance = list(fetched["insurance"] or [])

    total_assets = sum(_n(a.balance) for a in assets)
    total_debts = sum(_n(d.balance) for d in debts)
    net_worth = total_assets - total_debts

    current_savings = sum(_n(a.balance) for a in assets if a.type in SAVINGS_TYPES)
    annual_contribution = sum(_n(a.annual_contribution) for a in assets)

    age = (profile.age if profile else None) or SETTINGS.default_age
    retirement_age = (profile.retirement_age if profile else None) or SETTINGS.default_retirement_age
    years_until_retirement = max(0, retirement_age - age)
    growth_pct = (profile.investment_return if profile else None) or SETTINGS.default_investment_return

    projections = projection_series(
        current_savings, annual_contribution, growth_pct / 100, years=SETTINGS.projection_years
    )
    target_savings = estimate_target_savings(annual_contribution)

    context = FinancialContext(
        profile=ProfileSnapshot(
            age=(profile.age if profile else None) or None,
            retirement_age=(profile.retirement_age if profile else None) or None,
            risk_tolerance=(profile.risk_tolerance if profile else None) or None,
            inflation_rate=(profile.inflation_rate if profile else None) or 3.0,
            investment_return=(profile.investment_return if profile else None) or SETTINGS.default_investment_return,
            savings_rate=(profile.savings_rate if profile else None) or 10.0,
        ),
        summary=SummarySnapshot(
            net_worth=round_half_up(net_worth),
            total_assets=round_half_up(total_assets),
            total_debts=round_half_up(total_debts),
            asset_count=len(assets),
            debt_count=len(debts),
            current_savings=round_half_up(current_savings),
            target_savings=round_half_up(target_savings),
            years_until_retirement=years_until_retirement,
        ),
        assets=[
            AssetSnapshot(
                id=a.id,
                type=a.type,
                subtype=a.subtype,
                name=a.name,
                balance=round_half_up(_n(a.balance)),
                interest_rate=a.interest_rate,
                annual_contribution=round_half_up(a.annual_contribution) if a.annual_contribution else None,
                growth_rate=a.growth_rate,
                asset_class=a.asset_class,
            )
            for a in assets
        ],
        debts=[
            DebtSnapshot(
                id=d.id,
                type=d.type,
                lender=d.lender,
                balance=round_half_up(_n(d.balance)),
                interest_rate=_n(d.interest_rate),
                monthly_payment=round_half_up(_n(d.monthly_payment)),
                term_length=d.term_length,
            )
            for d in debts
        ],
        goals=[
            GoalSnapshot(
                id=g.id,
                name=g.name,
                target_amount=round_half_up(_n(g.target_amount)),
                current_amount=round_half_up(_n(g.current_amount)),
                target_date=g.target_date.isoformat() if g.target_date else None,
                priority=g.priority,
                is_active=g.is_active,
                progress_percentage=(
                    round_half_up(_n(g.current_amount) / g.target_amount * 100) if _n(g.target_amount) > 0 else 0
                ),
                success_percentage=round_half_up(goal_success_for_goal(g, assets, today)),
                required_monthly_saving=_rounded_or_none(required_monthly_saving(g, today)),
            )
            for g in goals
        ],
        expenses=expense_snapshot(fetched["expense"], month),
        insurance=[
            InsuranceSnapshot(
                id=p.id,
                type=p.type,
                coverage=round_half_up(_n(p.coverage)),
                is_employer_provided=bool(p.is_employer_provided),
            )
            for p in insurance
        ],
        financial_projections=projections,
        asset_allocation=allocation_rows(assets, total_assets),
    )

    logger.info(
        f"context_built user_id={user_id} assets={len(assets)} debts={len(debts)} "
        f"goals={len(goals)} net_worth={context.summary.net_worth}"
    )
    return context


def format_financial_context_for_chat(context: FinancialContext) -> str:
    return context.model_dump_json(by_alias=True, indent=2)
