from datetime import date
from decimal import Decimal

import pytest

from debt_calc.events import (
    ExtraPayment,
    InterestRateChange,
    LoanEvent,
    LoanWithdrawal,
    PaymentSkip,
    event_display_name,
    event_from_payload,
    event_to_payload,
    validate_event,
)

TODAY = date(2024, 6, 15)
BALANCE = Decimal("5000")


def check(data, event_date=TODAY):
    return validate_event(LoanEvent(account_id="a1", event_date=event_date, data=data), BALANCE, TODAY)


class TestPayloads:
    def test_parse_each_kind(self):
        assert event_from_payload("extra_payment", {"amount": 250}) == ExtraPayment(Decimal("250"))
        assert event_from_payload("payment_skip", {"scheduled_payment_amount": "300", "reason": "  "}) == PaymentSkip(
            Decimal("300")
        )
        assert event_from_payload("loan_withdrawal", {"amount": 100, "new_balance": 5100}) == LoanWithdrawal(
            Decimal("100"), Decimal("5100")
        )
        assert event_from_payload("interest_rate_change", {"old_rate": 5, "new_rate": 4.5, "reason": "refi"}) == (
            InterestRateChange(Decimal("5"), Decimal("4.5"), "refi")
        )

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown event type"):
            event_from_payload("balance_transfer", {"amount": 1})

    def test_missing_field(self):
        with pytest.raises(ValueError, match="new_balance"):
            event_from_payload("loan_withdrawal", {"amount": 1})

    def test_flags_and_counts_are_parsed_strictly(self):
        assert event_from_payload("extra_payment", {"amount": 5, "applied_to_principal": "false"}) == ExtraPayment(
            Decimal("5"), applied_to_principal=False
        )
        assert event_from_payload("payment_skip", {"scheduled_payment_amount": 300, "skip_count": "2"}).skip_count == 2

    @pytest.mark.parametrize(
        "event_type, payload",
        [
            ("extra_payment", {"amount": 5, "applied_to_principal": "sometimes"}),
            ("payment_skip", {"scheduled_payment_amount": 300, "skip_count": None}),
            ("payment_skip", {"scheduled_payment_amount": 300, "skip_count": 2.7}),
            ("loan_withdrawal", {"amount": [1], "new_balance": 10}),
            ("interest_rate_change", ["old_rate", "new_rate"]),
        ],
    )
    def test_malformed_payload(self, event_type, payload):
        with pytest.raises(ValueError):
            event_from_payload(event_type, payload)

    def test_to_payload_omits_empty_reason(self):
        assert event_to_payload(PaymentSkip(Decimal("300"))) == {"scheduled_payment_amount": 300.0, "skip_count": 1}
        assert event_to_payload(ExtraPayment(Decimal("10"))) == {"amount": 10.0, "applied_to_principal": True}

    def test_event_type_derived_from_payload(self):
        event = LoanEvent(account_id="a1", event_date=TODAY, data=InterestRateChange(Decimal("5"), Decimal("4")))
        assert event.event_type == "interest_rate_change"
        assert event_display_name(event.event_type) == "Interest Rate Change"


class TestValidation:
    def test_future_date(self):
        assert check(ExtraPayment(Decimal("10")), date(2024, 6, 16))["event_date"] == "Event date cannot be in the future"

    def test_extra_payment_bounds(self):
        assert check(ExtraPayment(Decimal("10"))) == {}
        assert "amount" in check(ExtraPayment(Decimal("0")))
        assert check(ExtraPayment(Decimal("5000.01")))["amount"] == "Payment amount cannot exceed current balance"

    def test_skip_amount(self):
        assert check(PaymentSkip(Decimal("300"))) == {}
        assert "scheduled_payment_amount" in check(PaymentSkip(Decimal("0")))
        assert check(PaymentSkip(Decimal("300"), skip_count=-3))["skip_count"] == "Skip count must be at least 1"
        assert "skip_count" in check(PaymentSkip(Decimal("300"), skip_count=0))

    def test_withdrawal(self):
        assert check(LoanWithdrawal(Decimal("100"), Decimal("5100"))) == {}
        assert "new_balance" in check(LoanWithdrawal(Decimal("100"), Decimal("5099")))
        assert check(LoanWithdrawal(Decimal("100"), Decimal("-1")))["new_balance"] == "New balance cannot be negative"
        assert "amount" in check(LoanWithdrawal(Decimal("0"), Decimal("6000")))

    def test_rate_change(self):
        assert check(InterestRateChange(Decimal("5"), Decimal("4"))) == {}
        assert "new_rate" in check(InterestRateChange(Decimal("5"), Decimal("5")))
        assert "old_rate" in check(InterestRateChange(Decimal("-1"), Decimal("4")))
        assert "new_rate" in check(InterestRateChange(Decimal("5"), Decimal("101")))

    def test_unknown_payload_type(self):
        with pytest.raises(TypeError):
            check(object())
