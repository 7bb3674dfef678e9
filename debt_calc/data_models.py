"""Data models for the debt calculator.

This module defines dataclasses representing the entities used by the
calculator: the loan simulation input, individual amortization entries, the
computed scenarios and their three-way bundle, and the tracked debt accounts
that the dashboard persists. Monetary values and rates are ``Decimal``;
dates are ``datetime.date``.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

ACCOUNT_TYPES = ("mortgage", "auto", "credit_card", "personal", "student", "business")
TERM_UNITS = ("years", "months")


@dataclass
class LoanInput:
    """User input for the loan simulation.

    Attributes
    ----------
    principal: Decimal
        Amount borrowed.
    annual_rate: Decimal
        Nominal annual interest rate in percent (``6`` means 6 %).
    term: int
        Length of the loan, counted in ``term_unit``.
    term_unit: str
        ``"years"`` or ``"months"``.
    start_date: date
        Date of the first payment.
    extra_payment1, extra_payment2: Decimal
        Extra monthly amounts for the two simulations. Zero means the
        simulation is identical to the base scenario.
    """

    principal: Decimal
    annual_rate: Decimal
    term: int
    term_unit: str
    start_date: date
    extra_payment1: Decimal = Decimal("0")
    extra_payment2: Decimal = Decimal("0")

    @property
    def number_of_payments(self) -> int:
        return self.term * 12 if self.term_unit == "years" else self.term

    @property
    def monthly_rate(self) -> Decimal:
        return self.annual_rate / Decimal(100) / Decimal(12)


@dataclass(frozen=True)
class AmortizationEntry:
    """One month of an amortization schedule."""

    payment_number: int
    date: date
    principal: Decimal
    interest: Decimal
    balance: Decimal
    total_payment: Decimal


@dataclass
class Scenario:
    """A named, fully computed payment plan.

    ``monthly_payment`` includes ``extra_payment``. ``effective_annual_rate``
    and ``cost_percentage`` are percentages.
    """

    monthly_payment: Decimal
    total_interest: Decimal
    payoff_date: date
    principal_amount: Decimal
    total_amount_repaid: Decimal
    effective_annual_rate: Decimal
    loan_term_years: Decimal
    loan_term_months: int
    cost_percentage: Decimal
    amortization_schedule: List[AmortizationEntry]
    extra_payment: Decimal
    scenario_name: str
    color: str


@dataclass
class SimulationResult:
    base_scenario: Scenario
    simulation1: Scenario
    simulation2: Scenario

    def scenarios(self) -> List[Scenario]:
        return [self.base_scenario, self.simulation1, self.simulation2]


@dataclass(frozen=True)
class PaymentCoverage:
    is_valid: bool
    minimum_required: Decimal


@dataclass(frozen=True)
class PayoffProjection:
    """Forward projection of a balance to zero.

    When ``pays_off`` is False the payment never covers the accruing interest
    and ``payoff_date`` is the 30-year sentinel.
    """

    payoff_date: date
    months: int
    pays_off: bool


@dataclass
class TrackedAccount:
    """A real-world debt account followed on the dashboard.

    ``current_balance`` and ``payoff_date`` are derived from the loan terms
    and the reference date; they are recomputed whenever the terms change.
    """

    id: str
    user_id: str
    name: str
    type: str
    loan_amount: Decimal
    current_balance: Decimal
    monthly_payment: Decimal
    minimum_payment: Decimal
    interest_rate: Decimal
    start_date: date
    payoff_date: date
    extra_payment: Decimal = Decimal("0")
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass
class DebtSummary:
    total_outstanding_debt: Decimal
    total_monthly_payments: Decimal
    number_of_active_accounts: int
    average_interest_rate: Decimal
    total_paid: Decimal
    projected_payoff_date: date
