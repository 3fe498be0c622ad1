from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from src.core.schemas import AssetProjectionInput, GoalSuccessRequest
from src.db.repository import FinanceRepository
from src.services.context_builder import build_financial_context
from src.utils.tvm import calculate_goal_success, project_asset_value, round_half_up


def tool_project_asset(payload: Dict[str, Any]) -> Dict[str, Any]:
    p = dict(payload or {})
    years = float(p.pop("years", 0) or 0)

    asset = AssetProjectionInput(**p)
    value = project_asset_value(asset, years)
    return {"asset": asset.model_dump(), "years": years, "projected_value": value, "rounded": round_half_up(value)}


def tool_goal_success(payload: Dict[str, Any]) -> Dict[str, Any]:
    p = dict(payload or {})

    # map common aliases -> canonical fields
    if "goal_amount" not in p and "target_amount" in p:
        p["goal_amount"] = p.pop("target_amount")
    if "goal_years" not in p and "years" in p:
        p["goal_years"] = p.pop("years")

    req = GoalSuccessRequest(**p)
    pct = calculate_goal_success(req.goal_amount, req.goal_years, req.assets)
    return {**req.model_dump(), "success_percentage": pct}


def tool_build_context(
    user_id: str,
    repository: FinanceRepository,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    ctx = build_financial_context(user_id, repository, today=today)
    return ctx.model_dump(by_alias=True)
