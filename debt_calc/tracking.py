"""Balance and payoff calculations for tracked debt accounts.

A tracked account is entered with its origination terms (loan amount, rate,
monthly payment, start date). Its current balance is reconstructed by
replaying the amortization from the start date up to a reference date, and
its payoff date is projected forward from that balance.

The two directions treat a payment that does not cover the interest
differently: the reconstruction capitalizes the unpaid interest into the
balance, while the projection gives up and returns a date thirty years out.
Neither function reads the clock; the reference date is always passed in.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from .data_models import PaymentCoverage, PayoffProjection
from .engine import EPSILON, MAX_MONTHS, ZERO, amortization_step
from .utils import add_months, add_years, months_between

NEVER_PAID_OFF_YEARS = 30


def monthly_rate_from_annual(annual_rate: Decimal) -> Decimal:
    return annual_rate / Decimal(100) / Decimal(12)


def months_elapsed(start_date: date, end_date: date) -> int:
    """Whole calendar months between two dates (negative if ``end`` is earlier)."""
    return months_between(start_date, end_date)


def calculate_current_balance(
    loan_amount: Decimal,
    monthly_payment: Decimal,
    annual_rate: Decimal,
    start_date: date,
    as_of: date,
) -> Decimal:
    """Infer the outstanding balance of a loan as of ``as_of``.

    Replays one amortization step per elapsed calendar month. A month whose
    payment does not cover the interest adds that interest to the balance.
    A loan that has not reached its first month boundary returns
    ``loan_amount`` unchanged.
    """
    monthly_rate = monthly_rate_from_annual(annual_rate)
    elapsed = months_elapsed(start_date, as_of)

    if elapsed <= 0:
        return loan_amount

    balance = loan_amount
    for _ in range(elapsed):
        interest, principal_payment = amortization_step(balance, monthly_rate, monthly_payment)
        if principal_payment <= 0:
            balance += interest
        else:
            balance -= principal_payment

        if balance <= 0:
            return ZERO

    return max(ZERO, balance)


def project_payoff(
    current_balance: Decimal,
    monthly_payment: Decimal,
    annual_rate: Decimal,
    from_date: date,
) -> PayoffProjection:
    """Project ``current_balance`` forward to its payoff date.

    Returns a projection with ``pays_off=False`` and a date thirty years
    after ``from_date`` as soon as a month's payment fails to cover its
    interest. Otherwise the projection stops when the balance is within
    ``EPSILON`` of zero or after ``MAX_MONTHS`` months.
    """
    if current_balance <= 0:
        return PayoffProjection(payoff_date=from_date, months=0, pays_off=True)

    monthly_rate = monthly_rate_from_annual(annual_rate)
    balance = current_balance
    months = 0

    while balance > EPSILON and months < MAX_MONTHS:
        _, principal_payment = amortization_step(balance, monthly_rate, monthly_payment)
        if principal_payment <= 0:
            return PayoffProjection(
                payoff_date=add_years(from_date, NEVER_PAID_OFF_YEARS),
                months=MAX_MONTHS,
                pays_off=False,
            )
        balance -= principal_payment
        months += 1

    return PayoffProjection(
        payoff_date=add_months(from_date, months),
        months=months,
        pays_off=balance <= EPSILON,
    )


def calculate_payoff_date(
    current_balance: Decimal,
    monthly_payment: Decimal,
    annual_rate: Decimal,
    from_date: date,
) -> date:
    return project_payoff(current_balance, monthly_payment, annual_rate, from_date).payoff_date


def validate_payment_coverage(
    balance: Decimal,
    monthly_payment: Decimal,
    annual_rate: Decimal,
) -> PaymentCoverage:
    """Check that ``monthly_payment`` is strictly more than one month's interest."""
    minimum_required = balance * annual_rate / Decimal(100) / Decimal(12)
    return PaymentCoverage(
        is_valid=monthly_payment > minimum_required,
        minimum_required=minimum_required,
    )


def calculate_total_interest(
    current_balance: Decimal,
    monthly_payment: Decimal,
    annual_rate: Decimal,
) -> Decimal:
    """Interest still to be paid on ``current_balance`` at ``monthly_payment``.

    Stops at the first month whose payment does not cover the interest, that
    month not counted.
    """
    monthly_rate = monthly_rate_from_annual(annual_rate)
    balance = current_balance
    total_interest = ZERO
    months = 0

    while balance > EPSILON and months < MAX_MONTHS:
        interest, principal_payment = amortization_step(balance, monthly_rate, monthly_payment)
        if principal_payment <= 0:
            break
        total_interest += interest
        balance -= principal_payment
        months += 1

    return total_interest
