"""Loan events recorded against tracked accounts.

An event is one of four kinds, each with its own payload: an extra payment,
a skipped payment, a withdrawal (drawing more money on the loan) or an
interest rate change. The payload variants are plain dataclasses; the kind
name stored alongside them is derived from the variant class. Events are a
record of what happened to the account; they are not replayed by the
amortization math.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from .utils import bool_from_value, decimal_from_str, int_from_value


@dataclass(frozen=True)
class ExtraPayment:
    amount: Decimal
    applied_to_principal: bool = True


@dataclass(frozen=True)
class PaymentSkip:
    scheduled_payment_amount: Decimal
    skip_count: int = 1
    reason: Optional[str] = None


@dataclass(frozen=True)
class LoanWithdrawal:
    amount: Decimal
    new_balance: Decimal


@dataclass(frozen=True)
class InterestRateChange:
    old_rate: Decimal
    new_rate: Decimal
    reason: Optional[str] = None


EventData = Union[ExtraPayment, PaymentSkip, LoanWithdrawal, InterestRateChange]

EVENT_TYPES = {
    "extra_payment": ExtraPayment,
    "payment_skip": PaymentSkip,
    "loan_withdrawal": LoanWithdrawal,
    "interest_rate_change": InterestRateChange,
}

EVENT_DISPLAY = {
    "extra_payment": ("Extra Payment", "#10B981"),
    "payment_skip": ("Payment Skip", "#F59E0B"),
    "loan_withdrawal": ("Loan Withdrawal", "#EF4444"),
    "interest_rate_change": ("Interest Rate Change", "#8B5CF6"),
}


def event_type_of(data: EventData) -> str:
    for name, cls in EVENT_TYPES.items():
        if isinstance(data, cls):
            return name
    raise TypeError(f"Unknown loan event payload: {type(data).__name__}")


@dataclass
class LoanEvent:
    account_id: str
    event_date: date
    data: EventData
    notes: Optional[str] = None
    id: Optional[str] = None

    @property
    def event_type(self) -> str:
        return event_type_of(self.data)


def event_display_name(event_type: str) -> str:
    return EVENT_DISPLAY[event_type][0]


def event_color(event_type: str) -> str:
    return EVENT_DISPLAY[event_type][1]


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def event_from_payload(event_type: str, payload: Dict[str, Any]) -> EventData:
    """Build the payload variant for ``event_type`` from a JSON-style dict.

    Raises ``ValueError`` for an unknown event type or a missing/invalid
    field.
    """
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown event type: {event_type}")
    if not isinstance(payload, dict):
        raise ValueError(f"Event data for {event_type} must be an object")
    try:
        if event_type == "extra_payment":
            return ExtraPayment(
                amount=decimal_from_str(payload["amount"]),
                applied_to_principal=bool_from_value(payload.get("applied_to_principal", True)),
            )
        if event_type == "payment_skip":
            return PaymentSkip(
                scheduled_payment_amount=decimal_from_str(payload["scheduled_payment_amount"]),
                skip_count=int_from_value(payload.get("skip_count", 1)),
                reason=_optional_text(payload.get("reason")),
            )
        if event_type == "loan_withdrawal":
            return LoanWithdrawal(
                amount=decimal_from_str(payload["amount"]),
                new_balance=decimal_from_str(payload["new_balance"]),
            )
        return InterestRateChange(
            old_rate=decimal_from_str(payload["old_rate"]),
            new_rate=decimal_from_str(payload["new_rate"]),
            reason=_optional_text(payload.get("reason")),
        )
    except KeyError as exc:
        raise ValueError(f"Missing field for {event_type} event: {exc.args[0]}") from exc
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid {event_type} event data: {exc}") from exc


def event_to_payload(data: EventData) -> Dict[str, Any]:
    """Serialize a payload variant to a JSON-compatible dict (money as float)."""
    if isinstance(data, ExtraPayment):
        return {"amount": float(data.amount), "applied_to_principal": data.applied_to_principal}
    if isinstance(data, PaymentSkip):
        payload: Dict[str, Any] = {
            "scheduled_payment_amount": float(data.scheduled_payment_amount),
            "skip_count": data.skip_count,
        }
        if data.reason:
            payload["reason"] = data.reason
        return payload
    if isinstance(data, LoanWithdrawal):
        return {"amount": float(data.amount), "new_balance": float(data.new_balance)}
    if isinstance(data, InterestRateChange):
        payload = {"old_rate": float(data.old_rate), "new_rate": float(data.new_rate)}
        if data.reason:
            payload["reason"] = data.reason
        return payload
    raise TypeError(f"Unknown loan event payload: {type(data).__name__}")


def validate_event(event: LoanEvent, current_balance: Decimal, as_of: date) -> Dict[str, str]:
    """Check an event against the account it is recorded on."""
    errors: Dict[str, str] = {}

    if event.event_date is None:
        errors["event_date"] = "Event date is required"
    elif event.event_date > as_of:
        errors["event_date"] = "Event date cannot be in the future"

    data = event.data
    if isinstance(data, ExtraPayment):
        if data.amount <= 0:
            errors["amount"] = "Payment amount must be greater than 0"
        elif data.amount > current_balance:
            errors["amount"] = "Payment amount cannot exceed current balance"
    elif isinstance(data, PaymentSkip):
        if data.scheduled_payment_amount <= 0:
            errors["scheduled_payment_amount"] = "Scheduled payment amount must be greater than 0"
        if data.skip_count < 1:
            errors["skip_count"] = "Skip count must be at least 1"
    elif isinstance(data, LoanWithdrawal):
        if data.amount <= 0:
            errors["amount"] = "Withdrawal amount must be greater than 0"
        if data.new_balance < 0:
            errors["new_balance"] = "New balance cannot be negative"
        elif data.new_balance < current_balance + data.amount:
            errors["new_balance"] = "New balance must be at least current balance plus withdrawal amount"
    elif isinstance(data, InterestRateChange):
        if not 0 <= data.old_rate <= 100:
            errors["old_rate"] = "Old interest rate must be between 0% and 100%"
        if not 0 <= data.new_rate <= 100:
            errors["new_rate"] = "New interest rate must be between 0% and 100%"
        elif data.old_rate == data.new_rate:
            errors["new_rate"] = "New rate must be different from old rate"
    else:
        raise TypeError(f"Unknown loan event payload: {type(data).__name__}")

    return errors
