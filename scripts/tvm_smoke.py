from __future__ import annotations

from src.tools.finance_tools import tool_goal_success, tool_project_asset
from src.utils.format import format_currency, format_percentage
from src.utils.tvm import projection_series


def main():
    asset = {"balance": "100000", "growthRate": "7", "annualContribution": "12000", "years": 20}
    pa = tool_project_asset(asset)
    print("Projected value (20y):", format_currency(pa["projected_value"]))

    goal = {
        "target_amount": "1000000",
        "years": "25",
        "assets": [
            {"balance": 150000, "growth_rate": 8, "annual_contribution": 20000},
            {"balance": 25000, "interest_rate": 4.5},
        ],
    }
    gs = tool_goal_success(goal)
    print("Goal success:", format_percentage(gs["success_percentage"]))

    for p in projection_series(100000, 12000, 0.07, years=30)[::5]:
        print(f"Year {p.year:>2}: {format_currency(p.value, decimals=0)}")

if __name__ == "__main__":
    main()
