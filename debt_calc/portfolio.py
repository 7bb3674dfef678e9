"""Dashboard aggregates over a user's tracked accounts.

Only active accounts are counted. Chart helpers return plain dicts ready for
JSON serialization.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List

from .data_models import DebtSummary, TrackedAccount
from .engine import MAX_MONTHS, ZERO, amortization_step
from .tracking import monthly_rate_from_annual
from .utils import add_months

ACCOUNT_TYPE_COLORS = {
    "mortgage": "#3B82F6",
    "auto": "#10B981",
    "credit_card": "#F59E0B",
    "personal": "#8B5CF6",
    "student": "#14B8A6",
    "business": "#EF4444",
}
DEFAULT_TYPE_COLOR = "#F59E0B"
HIGH_INTEREST_THRESHOLD = Decimal("15")
PROJECTION_MONTHS = 120  # 10 years


def account_type_color(account_type: str) -> str:
    return ACCOUNT_TYPE_COLORS.get(account_type, DEFAULT_TYPE_COLOR)


def account_type_label(account_type: str) -> str:
    return account_type.replace("_", " ").title()


def _active(accounts: Iterable[TrackedAccount]) -> List[TrackedAccount]:
    return [account for account in accounts if account.is_active]


def calculate_debt_summary(accounts: Iterable[TrackedAccount], as_of: date) -> DebtSummary:
    """Totals for the dashboard overview.

    The average interest rate is weighted by current balance. The projected
    payoff date is the latest payoff date among the accounts, and never
    earlier than ``as_of``.
    """
    active = _active(accounts)
    if not active:
        return DebtSummary(
            total_outstanding_debt=ZERO,
            total_monthly_payments=ZERO,
            number_of_active_accounts=0,
            average_interest_rate=ZERO,
            total_paid=ZERO,
            projected_payoff_date=as_of,
        )

    total_outstanding = sum((a.current_balance for a in active), ZERO)
    total_monthly = sum((a.monthly_payment for a in active), ZERO)
    weighted_rates = sum((a.interest_rate * a.current_balance for a in active), ZERO)
    average_rate = weighted_rates / total_outstanding if total_outstanding > 0 else ZERO
    total_paid = sum((a.loan_amount - a.current_balance for a in active), ZERO)
    projected = max([as_of] + [a.payoff_date for a in active])

    return DebtSummary(
        total_outstanding_debt=total_outstanding,
        total_monthly_payments=total_monthly,
        number_of_active_accounts=len(active),
        average_interest_rate=average_rate,
        total_paid=total_paid,
        projected_payoff_date=projected,
    )


def calculate_monthly_interest_cost(accounts: Iterable[TrackedAccount]) -> Decimal:
    return sum(
        (a.current_balance * monthly_rate_from_annual(a.interest_rate) for a in _active(accounts)),
        ZERO,
    )


def calculate_debt_to_income_ratio(accounts: Iterable[TrackedAccount], monthly_income: Decimal) -> Decimal:
    """Monthly payments as a percentage of ``monthly_income`` (0 for no income)."""
    if monthly_income <= 0:
        return ZERO
    total_monthly = sum((a.monthly_payment for a in _active(accounts)), ZERO)
    return total_monthly / monthly_income * 100


def get_high_interest_accounts(
    accounts: Iterable[TrackedAccount], threshold: Decimal = HIGH_INTEREST_THRESHOLD
) -> List[TrackedAccount]:
    selected = [a for a in _active(accounts) if a.interest_rate > threshold]
    return sorted(selected, key=lambda a: a.interest_rate, reverse=True)


def prepare_debt_distribution(accounts: Iterable[TrackedAccount]) -> List[Dict[str, object]]:
    """Group balances by account type, in order of first appearance."""
    groups: Dict[str, Dict[str, object]] = {}
    for account in _active(accounts):
        group = groups.setdefault(
            account.type,
            {
                "type": account.type,
                "label": account_type_label(account.type),
                "value": ZERO,
                "count": 0,
                "color": account_type_color(account.type),
                "account_ids": [],
            },
        )
        group["value"] += account.current_balance
        group["count"] += 1
        group["account_ids"].append(account.id)
    return list(groups.values())


def prepare_interest_rate_data(accounts: Iterable[TrackedAccount]) -> List[Dict[str, object]]:
    rows = [
        {
            "id": a.id,
            "name": a.name,
            "rate": a.interest_rate,
            "balance": a.current_balance,
            "type": a.type,
            "color": account_type_color(a.type),
        }
        for a in _active(accounts)
    ]
    return sorted(rows, key=lambda row: row["rate"], reverse=True)


def project_balances(account: TrackedAccount, months: int) -> List[Decimal]:
    """Balance of ``account`` at month 0..``months`` under its monthly payment.

    A month whose payment does not cover the interest leaves the balance
    unchanged.
    """
    monthly_rate = monthly_rate_from_annual(account.interest_rate)
    balance = account.current_balance
    balances = [balance]
    for _ in range(min(months, MAX_MONTHS)):
        if balance > 0:
            _, principal_payment = amortization_step(balance, monthly_rate, account.monthly_payment)
            if principal_payment > 0:
                balance = max(ZERO, balance - principal_payment)
        balances.append(balance)
    return balances


def generate_debt_reduction_data(
    accounts: Iterable[TrackedAccount], as_of: date, months: int = PROJECTION_MONTHS
) -> List[Dict[str, object]]:
    """Month-by-month projected balance of every active account."""
    active = _active(accounts)
    projections = {a.id: project_balances(a, months) for a in active}
    horizon = min(months, MAX_MONTHS)

    data: List[Dict[str, object]] = []
    for month in range(horizon + 1):
        data.append(
            {
                "month": month,
                "date": add_months(as_of, month),
                "accounts": [
                    {
                        "id": a.id,
                        "name": a.name,
                        "balance": projections[a.id][month],
                        "color": account_type_color(a.type),
                    }
                    for a in active
                ],
            }
        )
    return data
