from datetime import date
from decimal import Decimal

import pytest

from debt_calc.utils import (
    add_months,
    bool_from_value,
    decimal_from_str,
    int_from_value,
    months_between,
    parse_date,
)


def test_add_months_clamps_day():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
    assert add_months(date(2024, 3, 10), -5) == date(2023, 10, 10)


def test_months_between_ignores_day():
    assert months_between(date(2024, 1, 31), date(2024, 2, 1)) == 1
    assert months_between(date(2024, 1, 1), date(2024, 1, 31)) == 0
    assert months_between(date(2022, 6, 15), date(2024, 6, 1)) == 24


def test_parse_date_formats():
    assert parse_date("2024-05") == date(2024, 5, 1)
    assert parse_date(" 2024-05-17 ") == date(2024, 5, 17)
    with pytest.raises(ValueError):
        parse_date("May 2024")
    with pytest.raises(ValueError):
        parse_date("2024-02-30")


def test_decimal_from_str():
    assert decimal_from_str("1,250.50") == Decimal("1250.50")
    assert decimal_from_str(0.1) == Decimal("0.1")
    assert decimal_from_str(7) == Decimal("7")
    for bad in ("abc", "NaN", "Infinity", None):
        with pytest.raises(ValueError):
            decimal_from_str(bad)


@pytest.mark.parametrize(
    "raw, expected",
    [(True, True), (False, False), ("true", True), (" False ", False), ("1", True), ("0", False)],
)
def test_bool_from_value(raw, expected):
    assert bool_from_value(raw) is expected


@pytest.mark.parametrize("raw", ["yes", "", None, 0, 1, []])
def test_bool_from_value_rejects_other_values(raw):
    with pytest.raises(ValueError):
        bool_from_value(raw)


def test_int_from_value():
    assert int_from_value(3) == 3
    assert int_from_value("4") == 4
    assert int_from_value(2.0) == 2
    for bad in (2.7, "1.5", None, True, "two"):
        with pytest.raises(ValueError):
            int_from_value(bad)
