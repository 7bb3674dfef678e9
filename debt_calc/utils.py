"""Utility functions for the debt calculator.

This module provides helpers for parsing user input into Python data types and
for handling calendar dates: adding months, counting whole months between two
dates and normalizing ``YYYY-MM`` / ``YYYY-MM-DD`` strings to
``datetime.date`` instances.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation, getcontext
import calendar

getcontext().prec = 28  # increase decimal precision to avoid rounding errors


def parse_date(value: str) -> date:
    """Parse ``YYYY-MM-DD`` (or ``YYYY-MM``, meaning the 1st) into a ``date``."""
    try:
        parts = value.strip().split("-")
        if len(parts) == 2:
            return date(int(parts[0]), int(parts[1]), 1)
        if len(parts) != 3:
            raise ValueError
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except (AttributeError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid date string: {value}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_years(dt: date, years: int) -> date:
    return add_months(dt, years * 12)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end``; the day is ignored."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def decimal_from_str(value) -> Decimal:
    """Convert a numeric string (or number) into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")``.
    It raises ``ValueError`` if conversion fails.
    """
    if isinstance(value, Decimal):
        return value
    try:
        cleaned = str(value).strip().replace(",", "")
        result = Decimal(cleaned)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value}")
    return result


def bool_from_value(value) -> bool:
    """Convert a JSON/form flag into a ``bool``.

    Accepts real booleans and the strings ``"true"``, ``"false"``, ``"1"`` and
    ``"0"`` (case-insensitive). Anything else raises ``ValueError``.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        cleaned = value.strip().lower()
        if cleaned in ("true", "1"):
            return True
        if cleaned in ("false", "0"):
            return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def int_from_value(value) -> int:
    """Convert a whole number (``3``, ``"3"``, ``3.0``) into an ``int``.

    Fractional values and booleans raise ``ValueError`` instead of being
    truncated.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid whole number: {value!r}")
    number = decimal_from_str(value)
    if number != number.to_integral_value():
        raise ValueError(f"Invalid whole number: {value!r}")
    return int(number)
