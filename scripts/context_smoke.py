from __future__ import annotations

from src.db.repository import SqlFinanceRepository
from src.db.seed import DEMO_USER_ID, seed_demo_user
from src.services.context_builder import build_financial_context
from src.utils.format import format_currency, format_percentage


def main():
    repo = SqlFinanceRepository.from_url("sqlite://", create_tables=True)
    with repo.session() as s:
        seed_demo_user(s)

    ctx = build_financial_context(DEMO_USER_ID, repo)

    print("=== SUMMARY ===")
    print("Net worth:", format_currency(ctx.summary.net_worth, decimals=0))
    print("Current savings:", format_currency(ctx.summary.current_savings, decimals=0))
    print("Target savings:", format_currency(ctx.summary.target_savings, decimals=0))

    print("\n=== ALLOCATION ===")
    for row in ctx.asset_allocation:
        print(f"- {row.label}: {format_currency(row.value, decimals=0)} ({row.percentage}%)")

    print("\n=== GOALS ===")
    for g in ctx.goals:
        print(f"- {g.name}: progress {format_percentage(g.progress_percentage)}, success {format_percentage(g.success_percentage)}")

    print("\n=== PROJECTION (year 30) ===")
    print(format_currency(ctx.financial_projections[-1].value, decimals=0))

if __name__ == "__main__":
    main()
