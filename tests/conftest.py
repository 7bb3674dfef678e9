import os

# The web app builds its store at import time; keep it in memory.
os.environ.setdefault("DEBT_CALC_DATABASE_URL", "sqlite://")

from datetime import date
from decimal import Decimal

import pytest

from debt_calc.data_models import TrackedAccount


@pytest.fixture
def make_account():
    """Factory for ``TrackedAccount`` objects with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        values = dict(
            id=f"acc{counter['n']}",
            user_id="user-1",
            name=f"Account {counter['n']}",
            type="personal",
            loan_amount=Decimal("10000"),
            current_balance=Decimal("8000"),
            monthly_payment=Decimal("300"),
            minimum_payment=Decimal("200"),
            interest_rate=Decimal("10"),
            start_date=date(2023, 1, 1),
            payoff_date=date(2027, 1, 1),
        )
        values.update(overrides)
        return TrackedAccount(**values)

    return _make
