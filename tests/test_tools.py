from datetime import date

import pytest

from src.db.seed import DEMO_USER_ID
from src.tools.finance_tools import tool_build_context, tool_goal_success, tool_project_asset


def test_tool_project_asset_accepts_camel_case():
    out = tool_project_asset({"balance": "100", "growthRate": "10", "annualContribution": "10", "years": 2})
    assert out["projected_value"] == pytest.approx(142.0)
    assert out["rounded"] == 142
    assert out["asset"]["growth_rate"] == 10


def test_tool_project_asset_defaults_to_now():
    out = tool_project_asset({"balance": 1000, "growth_rate": 5})
    assert out["years"] == 0
    assert out["projected_value"] == 1000


def test_tool_goal_success_aliases():
    out = tool_goal_success(
        {"target_amount": 300, "years": 2, "assets": [{"balance": 100, "growthRate": 50}]}
    )
    assert out["goal_amount"] == 300
    assert out["success_percentage"] == pytest.approx(75)


def test_tool_goal_success_rejects_bad_payload():
    with pytest.raises(Exception):
        tool_goal_success({"goal_years": 2})


def test_tool_build_context(seeded_repo):
    out = tool_build_context(DEMO_USER_ID, seeded_repo, today=date(2025, 3, 15))
    assert out["summary"]["netWorth"] == 264500
    assert len(out["financialProjections"]) == 31
