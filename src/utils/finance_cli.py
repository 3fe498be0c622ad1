from __future__ import annotations

import argparse
import json

from src.core.config import SETTINGS
from src.db.repository import SqlFinanceRepository
from src.db.seed import DEMO_USER_ID, seed_demo_user
from src.services.context_builder import build_financial_context, format_financial_context_for_chat
from src.utils.format import format_currency, format_percentage
from src.utils.logging import setup_logging
from src.utils.tvm import calculate_goal_success


def _repo(args: argparse.Namespace) -> SqlFinanceRepository:
    return SqlFinanceRepository.from_url(args.db or SETTINGS.database_url, create_tables=True)


def cmd_init_db(args: argparse.Namespace) -> int:
    _repo(args)
    print(f"✅ Tables ready at {args.db or SETTINGS.database_url}")
    return 0


def cmd_seed(args: argparse.Namespace) -> int:
    repo = _repo(args)
    with repo.session() as s:
        seed_demo_user(s, args.user)
    print(f"✅ Seeded demo data for user '{args.user}'")
    return 0


def cmd_context(args: argparse.Namespace) -> int:
    ctx = build_financial_context(args.user, _repo(args))
    if args.json:
        print(format_financial_context_for_chat(ctx))
        return 0

    s = ctx.summary
    print(f"Net worth:        {format_currency(s.net_worth, decimals=0)}")
    print(f"Total assets:     {format_currency(s.total_assets, decimals=0)} ({s.asset_count})")
    print(f"Total debts:      {format_currency(s.total_debts, decimals=0)} ({s.debt_count})")
    print(f"Current savings:  {format_currency(s.current_savings, decimals=0)}")
    print(f"Target savings:   {format_currency(s.target_savings, decimals=0)}")
    print(f"Years to retire:  {s.years_until_retirement}")
    for g in ctx.goals:
        line = f"- {g.name}: {format_percentage(g.progress_percentage)} funded, {format_percentage(g.success_percentage)} on track"
        if g.required_monthly_saving is not None:
            line += f", {format_currency(g.required_monthly_saving, decimals=0)}/month needed"
        print(line)
    return 0


def cmd_goal_success(args: argparse.Namespace) -> int:
    assets = json.loads(args.assets) if args.assets else []
    pct = calculate_goal_success(args.amount, args.years, assets)
    print(format_percentage(pct))
    return 0


def cmd_chat(args: argparse.Namespace) -> int:
    # imported here so the other commands work without an LLM provider configured
    from src.services.advisor_chat import AdvisorChatService

    svc = AdvisorChatService(_repo(args))
    context_id = svc.create_context(args.user)
    try:
        if args.stream:
            for chunk in svc.stream(context_id, args.user, args.message):
                print(chunk, end="", flush=True)
            print()
            return 0
        resp = svc.send(context_id, args.user, args.message)
        print(resp.answer_md)
        return 0 if not resp.error else 2
    finally:
        svc.end_session(context_id)


def main() -> None:
    p = argparse.ArgumentParser(prog="finance_cli", description="Personal finance advisor utilities")
    p.add_argument("--db", default=None, help="SQLAlchemy URL (defaults to config)")
    sub = p.add_subparsers(dest="cmd", required=True)

    i = sub.add_parser("init-db", help="Create tables")
    i.set_defaults(func=cmd_init_db)

    s = sub.add_parser("seed", help="Load the demo household")
    s.add_argument("--user", default=DEMO_USER_ID)
    s.set_defaults(func=cmd_seed)

    c = sub.add_parser("context", help="Build and print a user's financial context")
    c.add_argument("user")
    c.add_argument("--json", action="store_true")
    c.set_defaults(func=cmd_context)

    g = sub.add_parser("goal-success", help="Goal success percentage for a set of assets")
    g.add_argument("--amount", type=float, required=True)
    g.add_argument("--years", type=float, required=True)
    g.add_argument("--assets", default=None, help='JSON list, e.g. [{"balance": 1000, "growthRate": 7}]')
    g.set_defaults(func=cmd_goal_success)

    ch = sub.add_parser("chat", help="Ask the advisor one question")
    ch.add_argument("user")
    ch.add_argument("message")
    ch.add_argument("--stream", action="store_true")
    ch.set_defaults(func=cmd_chat)

    setup_logging(SETTINGS.log_level)
    args = p.parse_args()
    rc = args.func(args)
    raise SystemExit(rc)


if __name__ == "__main__":
    main()
