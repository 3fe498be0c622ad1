from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from src.db.models import Asset, Debt, ExpenseRecord, FinancialGoal, InsurancePolicy, Profile, month_key
from src.utils.logging import get_logger

logger = get_logger("seed")

DEMO_USER_ID = "demo-user"


def seed_demo_user(session: Session, user_id: str = DEMO_USER_ID, *, today: Optional[date] = None) -> str:
    """Replace `user_id`'s records with a representative mid-career household."""
    today = today or date.today()

    for model in (Profile, Asset, Debt, FinancialGoal, ExpenseRecord, InsurancePolicy):
        session.execute(delete(model).where(model.user_id == user_id))

    session.add(
        Profile(
            user_id=user_id,
            age=35,
            retirement_age=65,
            risk_tolerance="Moderate",
            inflation_rate=3.0,
            investment_return=7.0,
            savings_rate=20.0,
        )
    )

    session.add_all(
        [
            Asset(user_id=user_id, type="Investment", subtype="401(k)", name="Company 401(k)",
                  balance=120000, growth_rate=8.0, annual_contribution=22500, asset_class="Stocks"),
            Asset(user_id=user_id, type="Investment", subtype="Traditional IRA", name="Vanguard IRA",
                  balance=60000, growth_rate=7.5, annual_contribution=7000, asset_class="ETFs"),
            Asset(user_id=user_id, type="Cash", subtype="Savings", name="High-Yield Savings Account",
                  balance=20000, interest_rate=4.5, annual_contribution=0, asset_class="Cash"),
            Asset(user_id=user_id, type="Cash", subtype="Checking", name="Primary Checking",
                  balance=8000, interest_rate=0.5, annual_contribution=0, asset_class="Cash"),
            Asset(user_id=user_id, type="Lifestyle", subtype="Primary Residence", name="Home (Estimated Value)",
                  balance=500000),
            Asset(user_id=user_id, type="Lifestyle", subtype="Vehicle", name="2022 Toyota Camry",
                  balance=35000),
        ]
    )

    session.add_all(
        [
            Debt(user_id=user_id, type="Mortgage", lender="Wells Fargo", balance=450000,
                 interest_rate=3.5, monthly_payment=2500, term_length=300),
            Debt(user_id=user_id, type="Auto Loan", lender="Toyota Financial", balance=25000,
                 interest_rate=4.2, monthly_payment=550, term_length=48),
            Debt(user_id=user_id, type="Credit Card", lender="Chase Sapphire", balance=3500,
                 interest_rate=18.99, monthly_payment=200, term_length=None),
        ]
    )

    session.add(
        ExpenseRecord(
            user_id=user_id,
            month=month_key(today),
            is_detailed=True,
            total_monthly=8350,
            housing=3200,
            utilities=450,
            groceries=800,
            dining=600,
            transport=800,
            healthcare=500,
            entertainment=400,
            miscellaneous=600,
        )
    )

    session.add_all(
        [
            FinancialGoal(user_id=user_id, name="Retirement Savings", target_amount=2500000,
                          current_amount=200000, target_date=date(today.year + 30, 12, 31), priority=1),
            FinancialGoal(user_id=user_id, name="Emergency Fund", target_amount=50000,
                          current_amount=20000, target_date=date(today.year + 1, 12, 31), priority=2),
            FinancialGoal(user_id=user_id, name="Europe Vacation", target_amount=15000,
                          current_amount=3000, target_date=date(today.year + 1, 6, 30), priority=3),
        ]
    )

    session.add_all(
        [
            InsurancePolicy(user_id=user_id, type="Term Life", coverage=1000000, is_employer_provided=False),
            InsurancePolicy(user_id=user_id, type="Disability", coverage=60000, is_employer_provided=True),
        ]
    )

    session.commit()
    logger.info(f"seeded user_id={user_id}")
    return user_id
