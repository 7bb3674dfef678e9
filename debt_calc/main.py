"""Command-line interface for the debt calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can simulate a loan with two extra-payment variants, view
only the scenario summaries, reconstruct the balance of an existing loan and
check whether a payment covers the accruing interest. Simulations can be
printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from .data_models import LoanInput, Scenario, SimulationResult
from .engine import simulate_loan
from .formatter import print_account_projection, print_comparison, print_schedule, print_summary
from .tracking import (
    calculate_current_balance,
    calculate_total_interest,
    project_payoff,
    validate_payment_coverage,
)
from .utils import decimal_from_str, parse_date
from .validation import validate_loan_form


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000"), thousands separators ("500,000") and
    shorthand with ``k``/``m`` suffixes (e.g., "500k" meaning 500_000).
    """
    value = value.strip().lower().replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_cli_date(value: str) -> date:
    try:
        return parse_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def build_loan_input(
    principal: str,
    rate: float,
    term: int,
    term_unit: str,
    start_date: str,
    extra1: Optional[str],
    extra2: Optional[str],
) -> LoanInput:
    loan_input = LoanInput(
        principal=parse_amount(principal),
        annual_rate=decimal_from_str(rate),
        term=term,
        term_unit=term_unit.lower(),
        start_date=parse_cli_date(start_date),
        extra_payment1=parse_amount(extra1) if extra1 else Decimal("0"),
        extra_payment2=parse_amount(extra2) if extra2 else Decimal("0"),
    )
    errors = validate_loan_form(loan_input)
    if errors:
        raise click.BadParameter("; ".join(errors.values()))
    return loan_input


def scenario_to_dict(scenario: Scenario, include_schedule: bool = True) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "scenario_name": scenario.scenario_name,
        "color": scenario.color,
        "monthly_payment": float(scenario.monthly_payment),
        "extra_payment": float(scenario.extra_payment),
        "principal_amount": float(scenario.principal_amount),
        "total_interest": float(scenario.total_interest),
        "total_amount_repaid": float(scenario.total_amount_repaid),
        "effective_annual_rate": float(scenario.effective_annual_rate),
        "cost_percentage": float(scenario.cost_percentage),
        "loan_term_months": scenario.loan_term_months,
        "loan_term_years": float(scenario.loan_term_years),
        "payoff_date": scenario.payoff_date.isoformat(),
    }
    if include_schedule:
        data["amortization_schedule"] = [
            {
                "payment_number": e.payment_number,
                "date": e.date.isoformat(),
                "principal": float(e.principal),
                "interest": float(e.interest),
                "balance": float(e.balance),
                "total_payment": float(e.total_payment),
            }
            for e in scenario.amortization_schedule
        ]
    return data


def result_to_dict(result: SimulationResult, include_schedule: bool = True) -> Dict[str, Any]:
    return {
        "base_scenario": scenario_to_dict(result.base_scenario, include_schedule),
        "simulation1": scenario_to_dict(result.simulation1, include_schedule),
        "simulation2": scenario_to_dict(result.simulation2, include_schedule),
    }


def export_to_json(path: Path, result: SimulationResult, include_schedule: bool = True) -> None:
    """Export the three scenarios to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(result_to_dict(result, include_schedule), f, indent=2)


def export_to_csv(path: Path, result: SimulationResult) -> None:
    """Export the schedules of all three scenarios to one CSV file."""
    header = ["Scenario", "Payment_Number", "Date", "Principal", "Interest", "Balance", "Total_Payment"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for scenario in result.scenarios():
            for e in scenario.amortization_schedule:
                writer.writerow(
                    [
                        scenario.scenario_name,
                        e.payment_number,
                        e.date.isoformat(),
                        float(e.principal),
                        float(e.interest),
                        float(e.balance),
                        float(e.total_payment),
                    ]
                )


def loan_options(func):
    """Attach the loan input options shared by ``simulate`` and ``summary``."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (e.g. 250000 or 250k)"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=int, help="Loan term"),
        click.option(
            "--term-unit",
            "term_unit",
            type=click.Choice(["years", "months"]),
            default="years",
            help="Unit of --term",
        ),
        click.option("--start-date", "-s", "start_date", required=True, help="First payment date (YYYY-MM or YYYY-MM-DD)"),
        click.option("--extra1", "extra1", help="Extra monthly payment for simulation 1"),
        click.option("--extra2", "extra2", help="Extra monthly payment for simulation 2"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
def cli() -> None:
    """Loan simulator and debt tracking calculator."""
    pass


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.option("--rows", "rows", type=int, default=120, show_default=True, help="Schedule rows to print")
def simulate(
    principal: str,
    rate: float,
    term: int,
    term_unit: str,
    start_date: str,
    extra1: Optional[str],
    extra2: Optional[str],
    output: Optional[str],
    rows: int,
) -> None:
    """Simulate the base payment and two extra-payment scenarios."""
    loan_input = build_loan_input(principal, rate, term, term_unit, start_date, extra1, extra2)
    result = simulate_loan(loan_input)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Simulation exported to {path}")
        return

    print_comparison(result)
    for scenario in result.scenarios():
        print_summary(scenario)
    schedule: List = result.base_scenario.amortization_schedule
    if len(schedule) > rows:
        click.echo(f"Schedule has {len(schedule)} rows; showing first {rows} rows.")
    print_schedule(schedule[:rows])


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    principal: str,
    rate: float,
    term: int,
    term_unit: str,
    start_date: str,
    extra1: Optional[str],
    extra2: Optional[str],
    output: Optional[str],
) -> None:
    """Print only the summary metrics of the three scenarios."""
    loan_input = build_loan_input(principal, rate, term, term_unit, start_date, extra1, extra2)
    result = simulate_loan(loan_input)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        export_to_json(path, result, include_schedule=False)
        click.echo(f"Summary exported to {path}")
    else:
        for scenario in result.scenarios():
            print_summary(scenario)


@cli.command()
@click.option("--loan-amount", "-a", "loan_amount", required=True, help="Original loan amount")
@click.option("--payment", "-m", "payment", required=True, help="Monthly payment")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
@click.option("--start-date", "-s", "start_date", required=True, help="Loan start date (YYYY-MM-DD)")
@click.option("--as-of", "as_of", help="Reference date (YYYY-MM-DD); defaults to today")
def balance(loan_amount: str, payment: str, rate: float, start_date: str, as_of: Optional[str]) -> None:
    """Reconstruct the current balance of an existing loan and project its payoff."""
    reference = parse_cli_date(as_of) if as_of else date.today()
    amount = parse_amount(loan_amount)
    monthly_payment = parse_amount(payment)
    annual_rate = decimal_from_str(rate)
    current = calculate_current_balance(
        amount, monthly_payment, annual_rate, parse_cli_date(start_date), reference
    )
    projection = project_payoff(current, monthly_payment, annual_rate, reference)
    coverage = validate_payment_coverage(current, monthly_payment, annual_rate)
    print_account_projection(current, projection, coverage)
    if projection.pays_off:
        remaining = calculate_total_interest(current, monthly_payment, annual_rate)
        click.echo(f"Interest remaining : {remaining:.2f}")


@cli.command("validate-payment")
@click.option("--balance", "-b", "balance_", required=True, help="Outstanding balance")
@click.option("--payment", "-m", "payment", required=True, help="Monthly payment")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
def validate_payment(balance_: str, payment: str, rate: float) -> None:
    """Check whether a monthly payment covers the interest on a balance."""
    coverage = validate_payment_coverage(parse_amount(balance_), parse_amount(payment), decimal_from_str(rate))
    if coverage.is_valid:
        click.echo(f"OK: payment covers the monthly interest of {coverage.minimum_required:.2f}")
    else:
        click.echo(f"Payment must be more than {coverage.minimum_required:.2f} to cover interest")
        sys.exit(1)


if __name__ == "__main__":
    cli()
