"""Lifecycle of tracked debt accounts.

Accounts are opened from their origination terms; the current balance and
payoff date are derived here and recomputed whenever a loan term changes.
Accounts are never removed, only deactivated.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Tuple
from uuid import uuid4

from .data_models import TrackedAccount
from .tracking import calculate_current_balance, calculate_payoff_date
from .utils import bool_from_value, decimal_from_str, parse_date
from .validation import ValidationError, validate_account_form

LOAN_TERM_FIELDS = ("loan_amount", "monthly_payment", "interest_rate", "start_date")
EDITABLE_FIELDS = LOAN_TERM_FIELDS + ("name", "type", "minimum_payment", "extra_payment", "is_active")
DERIVED_FIELDS = ("current_balance", "payoff_date")
MONEY_FIELDS = ("loan_amount", "monthly_payment", "minimum_payment", "interest_rate", "extra_payment")


def derive_balance_and_payoff(
    loan_amount: Decimal,
    monthly_payment: Decimal,
    interest_rate: Decimal,
    start_date: date,
    as_of: date,
) -> Tuple[Decimal, date]:
    current_balance = calculate_current_balance(
        loan_amount, monthly_payment, interest_rate, start_date, as_of
    )
    payoff_date = calculate_payoff_date(current_balance, monthly_payment, interest_rate, as_of)
    return current_balance, payoff_date


def open_account(
    user_id: str,
    name: str,
    account_type: str,
    loan_amount: Decimal,
    monthly_payment: Decimal,
    minimum_payment: Decimal,
    interest_rate: Decimal,
    start_date: date,
    as_of: date,
    extra_payment: Decimal = Decimal("0"),
) -> TrackedAccount:
    """Validate the terms and build a new account with derived fields.

    Raises ``ValidationError`` if the terms are rejected.
    """
    errors = validate_account_form(
        name, account_type, loan_amount, monthly_payment, minimum_payment, interest_rate, start_date, as_of
    )
    if extra_payment < 0:
        errors["extra_payment"] = "Extra payment cannot be negative"
    if errors:
        raise ValidationError(errors)

    current_balance, payoff_date = derive_balance_and_payoff(
        loan_amount, monthly_payment, interest_rate, start_date, as_of
    )
    return TrackedAccount(
        id=uuid4().hex,
        user_id=user_id,
        name=name.strip(),
        type=account_type,
        loan_amount=loan_amount,
        current_balance=current_balance,
        monthly_payment=monthly_payment,
        minimum_payment=minimum_payment,
        interest_rate=interest_rate,
        start_date=start_date,
        payoff_date=payoff_date,
        extra_payment=extra_payment,
    )


def coerce_updates(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a JSON/form style update dict into typed values.

    Unknown keys and attempts to set derived fields raise ``ValidationError``.
    """
    if not isinstance(raw, dict):
        raise ValidationError({"body": "Updates must be an object"})
    errors: Dict[str, str] = {}
    updates: Dict[str, Any] = {}
    for key, value in raw.items():
        if key in DERIVED_FIELDS:
            errors[key] = f"{key} is calculated and cannot be set directly"
            continue
        if key not in EDITABLE_FIELDS:
            errors[key] = f"Unknown field: {key}"
            continue
        try:
            if key in MONEY_FIELDS:
                updates[key] = decimal_from_str(value)
            elif key == "start_date":
                updates[key] = value if isinstance(value, date) else parse_date(value)
            elif key == "is_active":
                updates[key] = bool_from_value(value)
            else:
                updates[key] = str(value)
        except ValueError as exc:
            errors[key] = str(exc)
    if errors:
        raise ValidationError(errors)
    return updates


def revise_account(account: TrackedAccount, updates: Dict[str, Any], as_of: date) -> TrackedAccount:
    """Return ``account`` with ``updates`` applied.

    The edited terms are validated as a whole. When any loan term changes,
    ``current_balance`` and ``payoff_date`` are recomputed as of ``as_of``.
    """
    updates = coerce_updates(updates)
    revised = replace(account, **updates)

    errors = validate_account_form(
        revised.name,
        revised.type,
        revised.loan_amount,
        revised.monthly_payment,
        revised.minimum_payment,
        revised.interest_rate,
        revised.start_date,
        as_of,
    )
    if revised.extra_payment < 0:
        errors["extra_payment"] = "Extra payment cannot be negative"
    if errors:
        raise ValidationError(errors)

    if any(key in updates for key in LOAN_TERM_FIELDS):
        revised.current_balance, revised.payoff_date = derive_balance_and_payoff(
            revised.loan_amount,
            revised.monthly_payment,
            revised.interest_rate,
            revised.start_date,
            as_of,
        )
    revised.name = revised.name.strip()
    return revised


def deactivate_account(account: TrackedAccount) -> TrackedAccount:
    return replace(account, is_active=False)
