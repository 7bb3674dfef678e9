"""Output helpers for the debt calculator.

This module provides simple functions to render scenarios, amortization
schedules and tracked-account projections in a tabular text format using
built-in printing and string formatting.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import AmortizationEntry, PaymentCoverage, PayoffProjection, Scenario, SimulationResult


def print_summary(scenario: Scenario) -> None:
    """Print the metrics of one scenario in a human-readable format."""
    print(scenario.scenario_name)
    print("-" * 72)
    print(f"Monthly payment    : {scenario.monthly_payment:.2f}")
    if scenario.extra_payment:
        print(f"  of which extra   : {scenario.extra_payment:.2f}")
    print(f"Principal          : {scenario.principal_amount:.2f}")
    print(f"Total interest     : {scenario.total_interest:.2f}")
    print(f"Total repaid       : {scenario.total_amount_repaid:.2f}")
    print(f"Effective rate     : {scenario.effective_annual_rate:.2f}%")
    print(f"Cost of loan       : {scenario.cost_percentage:.2f}%")
    print(f"Term               : {scenario.loan_term_months} months ({scenario.loan_term_years:.1f} years)")
    print(f"Payoff date        : {scenario.payoff_date.strftime('%Y-%m-%d')}")
    print("-" * 72)


def print_schedule(schedule: Iterable[AmortizationEntry]) -> None:
    """Print an amortization schedule as a simple table."""
    headers = ["No", "Date", "Payment", "Principal", "Interest", "Balance"]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.payment_number),
            entry.date.strftime("%Y-%m"),
            f"{entry.total_payment:.2f}",
            f"{entry.principal:.2f}",
            f"{entry.interest:.2f}",
            f"{entry.balance:.2f}",
        ]
        print("\t".join(row))


def print_comparison(result: SimulationResult) -> None:
    """Print the three scenarios side by side.

    The savings rows are relative to the base scenario; a positive number
    means the simulation is cheaper or shorter.
    """
    base, sim1, sim2 = result.scenarios()
    print("Comparison")
    print("=" * 72)
    print(f"{'Metric':20s} {'Base':>15s} {'Simulation 1':>15s} {'Simulation 2':>15s}")
    rows = [
        ("Monthly payment", lambda s: s.monthly_payment),
        ("Total interest", lambda s: s.total_interest),
        ("Total repaid", lambda s: s.total_amount_repaid),
        ("Months", lambda s: s.loan_term_months),
    ]
    for label, getter in rows:
        print(f"{label:20s} {getter(base):15.2f} {getter(sim1):15.2f} {getter(sim2):15.2f}")
    interest_saved = [base.total_interest - s.total_interest for s in (sim1, sim2)]
    months_saved = [base.loan_term_months - s.loan_term_months for s in (sim1, sim2)]
    print(f"{'Interest saved':20s} {'':>15s} {interest_saved[0]:15.2f} {interest_saved[1]:15.2f}")
    print(f"{'Months saved':20s} {'':>15s} {months_saved[0]:15d} {months_saved[1]:15d}")
    print("=" * 72)


def print_account_projection(
    current_balance, projection: PayoffProjection, coverage: PaymentCoverage
) -> None:
    print(f"Current balance    : {current_balance:.2f}")
    if projection.pays_off:
        print(f"Payoff date        : {projection.payoff_date.strftime('%Y-%m-%d')} ({projection.months} months)")
    else:
        print(f"Payoff date        : never (shown as {projection.payoff_date.strftime('%Y-%m-%d')})")
    status = "covers interest" if coverage.is_valid else "does NOT cover interest"
    print(f"Monthly interest   : {coverage.minimum_required:.2f} (payment {status})")
