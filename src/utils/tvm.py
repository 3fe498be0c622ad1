"""Time-value-of-money helpers.

All functions are permissive: missing rates/contributions count as zero and
non-positive horizons take a defined branch instead of raising. Asset rates are
percentages (7 == 7%); `future_value*` take decimal rates (0.07).
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from src.core.schemas import AssetProjectionInput, ProjectionPoint

DAYS_PER_YEAR = 365.25
DAYS_PER_MONTH = 30.5


def round_half_up(x: float) -> int:
    # round() is banker's rounding; the snapshot rounds .5 up
    return int(math.floor(x + 0.5))


def _as_input(asset: Any) -> AssetProjectionInput:
    if isinstance(asset, AssetProjectionInput):
        return asset
    if isinstance(asset, Mapping):
        return AssetProjectionInput.model_validate(dict(asset))
    # ORM rows and other attribute bags
    return AssetProjectionInput(
        balance=getattr(asset, "balance", 0.0) or 0.0,
        growth_rate=getattr(asset, "growth_rate", None),
        interest_rate=getattr(asset, "interest_rate", None),
        annual_contribution=getattr(asset, "annual_contribution", None),
    )


def effective_rate(asset: Any) -> float:
    a = _as_input(asset)
    if a.growth_rate is not None:
        pct = a.growth_rate
    elif a.interest_rate is not None:
        pct = a.interest_rate
    else:
        pct = 0.0
    return pct / 100


def _growth(rate: float, years: float) -> float:
    """(1 + rate) ** years without raising: overflow is inf, a negative base is nan."""
    base = 1 + rate
    if base < 0:
        return math.nan
    try:
        return base ** years
    except OverflowError:
        return math.inf


def project_asset_value(asset: Any, years: float) -> float:
    a = _as_input(asset)
    rate = effective_rate(a)
    contribution = a.annual_contribution if a.annual_contribution is not None else 0.0

    if years <= 0:
        return a.balance
    if rate == 0:
        return a.balance + contribution * years

    growth = _growth(rate, years)
    fv_principal = a.balance * growth if a.balance else 0.0
    fv_contrib = contribution * ((growth - 1) / rate) if contribution else 0.0
    return fv_principal + fv_contrib


def future_value(principal: float, rate: float, years: float) -> float:
    if years <= 0 or rate == 0:
        return principal
    return principal * _growth(rate, years)


def future_value_of_annuity(payment: float, rate: float, years: float) -> float:
    if years <= 0:
        return 0.0
    if rate == 0:
        return payment * years
    return payment * ((_growth(rate, years) - 1) / rate)


def projection_series(principal: float, annual_contribution: float, rate: float, years: int = 30) -> List[ProjectionPoint]:
    """Rounded yearly values for year 0..years inclusive."""
    return [
        ProjectionPoint(
            year=y,
            value=round_half_up(future_value(principal, rate, y) + future_value_of_annuity(annual_contribution, rate, y)),
        )
        for y in range(0, max(0, int(years)) + 1)
    ]


def calculate_goal_success(goal_amount: float, goal_years: float, assets: Iterable[Any]) -> float:
    """Percentage (0..100) of `goal_amount` covered after `goal_years`.

    A zero-amount goal is always complete. With no time left only current
    balances count.
    """
    if goal_amount == 0:
        return 100.0

    items = [_as_input(a) for a in assets]
    if goal_years <= 0:
        total = sum(a.balance for a in items)
    else:
        total = sum(project_asset_value(a, goal_years) for a in items)

    pct = total / goal_amount * 100
    if math.isnan(pct):
        return 0.0
    return max(0.0, min(100.0, pct))


# -------------------------
# Per-goal helpers
# -------------------------

def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value


def years_until(target: Optional[date], today: date) -> float:
    if target is None:
        return 0.0
    return max(0.0, (target - today).days / DAYS_PER_YEAR)


def is_retirement_asset(asset: Any) -> bool:
    subtype = (getattr(asset, "subtype", None) or "").lower()
    return "ira" in subtype or "401" in subtype


def goal_success_for_goal(goal: Any, assets: Sequence[Any], today: date) -> float:
    """Success % for a stored goal.

    Retirement goals are measured against retirement accounts (IRA/401k),
    everything else against the remaining assets. Goals without a target date
    score 0.
    """
    target_date = _as_date(getattr(goal, "target_date", None))
    if target_date is None:
        return 0.0
    years = years_until(target_date, today)

    name = (getattr(goal, "name", "") or "").lower()
    if "retirement" in name:
        relevant = [a for a in assets if is_retirement_asset(a)]
    else:
        relevant = [a for a in assets if not is_retirement_asset(a)]
    return calculate_goal_success(getattr(goal, "target_amount", 0.0) or 0.0, years, relevant)


def months_remaining(target: Optional[date], today: date) -> Optional[int]:
    """Whole months left, rounded up on 30.5-day months (negative once past)."""
    if target is None:
        return None
    return math.ceil((target - today).days / DAYS_PER_MONTH)


def required_monthly_saving(goal: Any, today: date) -> Optional[float]:
    """Monthly amount still needed to hit the target; None without a future target date."""
    months = months_remaining(_as_date(getattr(goal, "target_date", None)), today)
    if not months or months <= 0:
        return None
    remaining = (getattr(goal, "target_amount", 0.0) or 0.0) - (getattr(goal, "current_amount", 0.0) or 0.0)
    return max(0.0, remaining) / months
