"""Input validation for the loan calculator form and tracked accounts.

Validators return a mapping of field name to message; an empty mapping means
the input is valid. ``ValidationError`` carries such a mapping for callers
that prefer to raise.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from .data_models import ACCOUNT_TYPES, TERM_UNITS, LoanInput
from .tracking import calculate_current_balance, validate_payment_coverage
from .utils import add_years

MAX_TERM_YEARS = 30
MAX_TERM_MONTHS = 360
MAX_ACCOUNT_AGE_YEARS = 30


class ValidationError(ValueError):
    """Raised when user input fails validation."""

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


def validate_loan_form(loan_input: LoanInput) -> Dict[str, str]:
    errors: Dict[str, str] = {}

    if loan_input.principal is None or loan_input.principal < 1:
        errors["principal"] = "Loan amount must be at least 1"

    if loan_input.annual_rate is None:
        errors["annual_rate"] = "Interest rate is required"
    elif loan_input.annual_rate < 0 or loan_input.annual_rate > 100:
        errors["annual_rate"] = "Interest rate must be between 0% and 100%"

    if loan_input.term_unit not in TERM_UNITS:
        errors["term_unit"] = "Term unit must be 'years' or 'months'"
    elif loan_input.term_unit == "years":
        if not loan_input.term or not 1 <= loan_input.term <= MAX_TERM_YEARS:
            errors["term"] = "Term must be between 1-30 years"
    elif not loan_input.term or not 1 <= loan_input.term <= MAX_TERM_MONTHS:
        errors["term"] = "Term must be between 1-360 months"

    if loan_input.extra_payment1 < 0:
        errors["extra_payment1"] = "Extra payment cannot be negative"
    if loan_input.extra_payment2 < 0:
        errors["extra_payment2"] = "Extra payment cannot be negative"

    return errors


def validate_account_form(
    name: str,
    account_type: str,
    loan_amount: Decimal,
    monthly_payment: Decimal,
    minimum_payment: Decimal,
    interest_rate: Decimal,
    start_date: Optional[date],
    as_of: date,
) -> Dict[str, str]:
    """Validate the terms of a tracked account as entered by the user.

    The payment coverage rule is checked against the balance reconstructed
    as of ``as_of``, and only for interest-bearing loans.
    """
    errors: Dict[str, str] = {}

    name = str(name).strip() if name is not None else ""
    if not name:
        errors["name"] = "Account name is required"
    elif len(name) < 2:
        errors["name"] = "Account name must be at least 2 characters"

    if account_type not in ACCOUNT_TYPES:
        errors["type"] = "Account type must be one of: " + ", ".join(ACCOUNT_TYPES)

    if loan_amount <= 0:
        errors["loan_amount"] = "Loan amount must be greater than 0"

    if monthly_payment <= 0:
        errors["monthly_payment"] = "Monthly payment must be greater than 0"

    if minimum_payment <= 0:
        errors["minimum_payment"] = "Minimum payment must be greater than 0"
    elif minimum_payment > monthly_payment:
        errors["minimum_payment"] = "Minimum payment cannot exceed monthly payment"

    if interest_rate < 0 or interest_rate > 100:
        errors["interest_rate"] = "Interest rate must be between 0% and 100%"

    if start_date is None:
        errors["start_date"] = "Start date is required"
    elif start_date > as_of:
        errors["start_date"] = "Start date cannot be in the future"
    elif start_date < add_years(as_of, -MAX_ACCOUNT_AGE_YEARS):
        errors["start_date"] = "Start date cannot be more than 30 years ago"

    if loan_amount > 0 and monthly_payment > 0 and 0 < interest_rate <= 100 and "start_date" not in errors:
        balance = calculate_current_balance(loan_amount, monthly_payment, interest_rate, start_date, as_of)
        coverage = validate_payment_coverage(balance, monthly_payment, interest_rate)
        if not coverage.is_valid:
            errors["monthly_payment"] = (
                f"Payment must be at least {coverage.minimum_required:,.2f} to cover interest"
            )

    return errors
