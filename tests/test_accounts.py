from datetime import date
from decimal import Decimal

import pytest

from debt_calc.accounts import deactivate_account, open_account, revise_account
from debt_calc.validation import ValidationError

AS_OF = date(2024, 6, 10)


def new_account(**overrides):
    values = dict(
        user_id="user-1",
        name=" Student loan ",
        account_type="student",
        loan_amount=Decimal("1200"),
        monthly_payment=Decimal("100"),
        minimum_payment=Decimal("50"),
        interest_rate=Decimal("0"),
        start_date=date(2024, 1, 15),
        as_of=AS_OF,
    )
    values.update(overrides)
    return open_account(**values)


class TestOpenAccount:
    def test_derives_balance_and_payoff(self):
        account = new_account()
        assert account.current_balance == Decimal("700")
        assert account.payoff_date == date(2025, 1, 10)
        assert account.name == "Student loan"
        assert account.is_active
        assert len(account.id) == 32

    def test_new_loan_keeps_full_balance(self):
        account = new_account(start_date=AS_OF)
        assert account.current_balance == Decimal("1200")

    def test_rejects_invalid_terms(self):
        with pytest.raises(ValidationError) as excinfo:
            new_account(loan_amount=Decimal("0"), extra_payment=Decimal("-1"))
        assert set(excinfo.value.errors) >= {"loan_amount", "extra_payment"}

    def test_rejects_payment_below_interest(self):
        with pytest.raises(ValidationError) as excinfo:
            new_account(interest_rate=Decimal("24"), loan_amount=Decimal("100000"), start_date=AS_OF)
        assert "monthly_payment" in excinfo.value.errors


class TestReviseAccount:
    def test_term_change_recomputes(self):
        account = new_account()
        revised = revise_account(account, {"monthly_payment": "200"}, AS_OF)
        assert revised.monthly_payment == Decimal("200")
        assert revised.current_balance == Decimal("200")
        assert revised.payoff_date == date(2024, 7, 10)
        assert account.monthly_payment == Decimal("100")

    def test_start_date_string_is_parsed(self):
        revised = revise_account(new_account(), {"start_date": "2024-03-01"}, AS_OF)
        assert revised.start_date == date(2024, 3, 1)
        assert revised.current_balance == Decimal("900")

    def test_non_term_change_keeps_derived_fields(self):
        account = new_account()
        revised = revise_account(account, {"name": "Renamed"}, date(2024, 9, 10))
        assert revised.name == "Renamed"
        assert revised.current_balance == account.current_balance
        assert revised.payoff_date == account.payoff_date

    @pytest.mark.parametrize("field", ["current_balance", "payoff_date"])
    def test_derived_fields_cannot_be_set(self, field):
        with pytest.raises(ValidationError) as excinfo:
            revise_account(new_account(), {field: "1"}, AS_OF)
        assert field in excinfo.value.errors

    @pytest.mark.parametrize("raw, expected", [("false", False), ("0", False), (False, False), ("true", True)])
    def test_is_active_flag_is_parsed(self, raw, expected):
        assert revise_account(new_account(), {"is_active": raw}, AS_OF).is_active is expected

    def test_is_active_rejects_other_values(self):
        with pytest.raises(ValidationError) as excinfo:
            revise_account(new_account(), {"is_active": "no"}, AS_OF)
        assert "is_active" in excinfo.value.errors

    def test_text_fields_are_converted(self):
        assert revise_account(new_account(), {"name": 12345}, AS_OF).name == "12345"

    def test_updates_must_be_a_mapping(self):
        with pytest.raises(ValidationError):
            revise_account(new_account(), [("name", "Renamed")], AS_OF)

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            revise_account(new_account(), {"colour": "red"}, AS_OF)

    def test_invalid_result_is_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            revise_account(new_account(), {"minimum_payment": "150"}, AS_OF)
        assert "minimum_payment" in excinfo.value.errors


def test_deactivate_is_soft():
    account = new_account()
    closed = deactivate_account(account)
    assert not closed.is_active
    assert closed.current_balance == account.current_balance
    assert account.is_active
