from __future__ import annotations

from dotenv import load_dotenv

from src.db.repository import SqlFinanceRepository
from src.db.seed import DEMO_USER_ID, seed_demo_user
from src.services.advisor_chat import AdvisorChatService
from src.utils.logging import setup_logging


def main():
    load_dotenv()
    setup_logging("INFO")

    repo = SqlFinanceRepository.from_url("sqlite://", create_tables=True)
    with repo.session() as s:
        seed_demo_user(s)

    svc = AdvisorChatService(repo)
    context_id = svc.create_context(DEMO_USER_ID)

    for q in ("How is my emergency fund looking?", "Should I pay off the credit card first?"):
        resp = svc.send(context_id, DEMO_USER_ID, q)
        print(f"\n--- {q} ---")
        print(resp.answer_md[:800])
        if resp.warnings:
            print("warnings:", resp.warnings)

    svc.end_session(context_id)

if __name__ == "__main__":
    main()
