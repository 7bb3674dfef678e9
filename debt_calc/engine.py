"""Core calculation engine for the debt calculator.

This module implements the loan simulation: a month-by-month amortization
schedule with early payoff detection, a scenario builder that derives the
summary metrics of one payment plan, and the three-way simulation (base
payment plus two extra-payment variants) that shares a single base payment.
Every forward loop is bounded by ``MAX_MONTHS``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, getcontext
from typing import Dict, List, Optional, Tuple

from .data_models import AmortizationEntry, LoanInput, Scenario, SimulationResult
from .utils import add_months

getcontext().prec = 28  # increase precision for financial calculations

EPSILON = Decimal("0.01")
MAX_MONTHS = 360  # 30 years

BASE_COLOR = "#3B82F6"  # blue
SIMULATION1_COLOR = "#10B981"  # green
SIMULATION2_COLOR = "#F59E0B"  # orange

ZERO = Decimal("0")


def calculate_base_payment(principal: Decimal, monthly_rate: Decimal, number_of_payments: int) -> Decimal:
    """Return the fixed monthly payment that amortizes ``principal``.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if number_of_payments <= 0:
        raise ValueError("Number of payments must be positive")
    if monthly_rate == 0:
        return principal / Decimal(number_of_payments)
    factor = (1 + monthly_rate) ** number_of_payments
    return principal * (monthly_rate * factor) / (factor - 1)


def amortization_step(balance: Decimal, monthly_rate: Decimal, monthly_payment: Decimal) -> Tuple[Decimal, Decimal]:
    """Split one month's payment into ``(interest, principal_payment)``.

    The principal portion is capped at the outstanding balance and may be
    zero or negative when the payment does not cover the interest; callers
    decide how to treat that case.
    """
    interest = balance * monthly_rate
    principal_payment = min(monthly_payment - interest, balance)
    return interest, principal_payment


def generate_schedule(
    principal: Decimal,
    monthly_rate: Decimal,
    monthly_payment: Decimal,
    start_date: date,
) -> Tuple[List[AmortizationEntry], Decimal, int]:
    """Compute the amortization schedule for a fixed monthly payment.

    Parameters
    ----------
    principal: Decimal
        Opening balance.
    monthly_rate: Decimal
        Interest rate per month as a fraction (``0.005`` for 6 % a year).
    monthly_payment: Decimal
        Total amount paid each month, extra payments included.
    start_date: date
        Date of the first payment; later entries follow monthly.

    Returns
    -------
    entries: List[AmortizationEntry]
        One entry per month until the balance is within ``EPSILON`` of zero
        or ``MAX_MONTHS`` entries have been produced.
    total_interest: Decimal
        Sum of the interest of every entry.
    months_to_payoff: int
        Number of entries.

    A payment that does not cover the month's interest pays no principal:
    the balance stays where it is and the schedule runs to the cap.
    """
    entries: List[AmortizationEntry] = []
    balance = principal
    total_interest = ZERO
    payment_number = 1

    while balance > EPSILON and payment_number <= MAX_MONTHS:
        interest, principal_payment = amortization_step(balance, monthly_rate, monthly_payment)
        if principal_payment < 0:
            principal_payment = ZERO
        balance = max(ZERO, balance - principal_payment)
        total_interest += interest

        entries.append(
            AmortizationEntry(
                payment_number=payment_number,
                date=add_months(start_date, payment_number - 1),
                principal=principal_payment,
                interest=interest,
                balance=balance,
                total_payment=principal_payment + interest,
            )
        )
        payment_number += 1

    return entries, total_interest, len(entries)


def build_scenario(
    principal: Decimal,
    monthly_rate: Decimal,
    base_payment: Decimal,
    extra_payment: Decimal,
    start_date: date,
    scenario_name: str,
    color: str,
) -> Scenario:
    """Schedule one payment plan and derive its summary metrics.

    Inputs are assumed valid; ``principal`` must be positive.
    """
    total_monthly_payment = base_payment + extra_payment
    schedule, total_interest, payoff_months = generate_schedule(
        principal, monthly_rate, total_monthly_payment, start_date
    )

    return Scenario(
        monthly_payment=total_monthly_payment,
        total_interest=total_interest,
        payoff_date=add_months(start_date, payoff_months),
        principal_amount=principal,
        total_amount_repaid=principal + total_interest,
        effective_annual_rate=((1 + monthly_rate) ** 12 - 1) * 100,
        loan_term_years=Decimal(payoff_months) / Decimal(12),
        loan_term_months=payoff_months,
        cost_percentage=total_interest / principal * 100,
        amortization_schedule=schedule,
        extra_payment=extra_payment,
        scenario_name=scenario_name,
        color=color,
    )


def extra_payment_label(extra_payment: Decimal) -> str:
    return f"Base + ${extra_payment:,.0f} Extra"


def simulate_loan(loan_input: LoanInput) -> SimulationResult:
    """Build the base scenario and both extra-payment simulations.

    The base monthly payment is computed once from the principal, rate and
    term and shared by all three scenarios; each scenario is then scheduled
    independently.
    """
    monthly_rate = loan_input.monthly_rate
    base_payment = calculate_base_payment(
        loan_input.principal, monthly_rate, loan_input.number_of_payments
    )

    base_scenario = build_scenario(
        loan_input.principal,
        monthly_rate,
        base_payment,
        ZERO,
        loan_input.start_date,
        "Base Payment",
        BASE_COLOR,
    )
    simulation1 = build_scenario(
        loan_input.principal,
        monthly_rate,
        base_payment,
        loan_input.extra_payment1,
        loan_input.start_date,
        extra_payment_label(loan_input.extra_payment1),
        SIMULATION1_COLOR,
    )
    simulation2 = build_scenario(
        loan_input.principal,
        monthly_rate,
        base_payment,
        loan_input.extra_payment2,
        loan_input.start_date,
        extra_payment_label(loan_input.extra_payment2),
        SIMULATION2_COLOR,
    )

    return SimulationResult(
        base_scenario=base_scenario,
        simulation1=simulation1,
        simulation2=simulation2,
    )


def generate_chart_data(result: SimulationResult) -> List[Dict[str, object]]:
    """Line up the balance curves of the three scenarios month by month.

    Scenarios that pay off earlier report ``None`` once their schedule ends.
    """
    base = result.base_scenario.amortization_schedule
    sim1 = result.simulation1.amortization_schedule
    sim2 = result.simulation2.amortization_schedule
    max_length = max(len(base), len(sim1), len(sim2))

    def balance_at(schedule: List[AmortizationEntry], i: int) -> Optional[float]:
        return float(schedule[i].balance) if i < len(schedule) else None

    chart_data: List[Dict[str, object]] = []
    for i in range(max_length):
        chart_data.append(
            {
                "month": i + 1,
                "base_balance": balance_at(base, i) or 0.0,
                "simulation1_balance": balance_at(sim1, i),
                "simulation2_balance": balance_at(sim2, i),
                "date": base[i].date.strftime("%Y-%m") if i < len(base) else "",
            }
        )
    return chart_data
