"""Utility functions for the loan tracker.

This module provides helpers for turning user input into ``Decimal`` amounts,
for validating and shifting ``YYYY-MM`` month keys and for the whole-unit
rounding used throughout the amortization engine.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_FLOOR, getcontext
import calendar
import re
from typing import Union

from .exceptions import ValidationError

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

Number = Union[Decimal, int, float, str]

_MONTH_KEY = re.compile(r"^(\d{4})-(\d{2})$")
_HALF = Decimal("0.5")


def to_decimal(value: Number) -> Decimal:
    """Convert an int, float, string or ``Decimal`` into a ``Decimal``.

    Floats go through ``str`` so that ``7.5`` becomes ``Decimal("7.5")``
    rather than its binary expansion. Strings may contain thousands
    separators.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Invalid numeric value: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    try:
        cleaned = str(value).replace(",", "").strip()
        result = Decimal(cleaned)
    except Exception as exc:
        raise ValidationError(f"Invalid numeric value: {value!r}") from exc
    if not result.is_finite():
        raise ValidationError(f"Invalid numeric value: {value!r}")
    return result


def round_currency(value: Decimal) -> Decimal:
    """Round to the nearest whole currency unit, halves toward +infinity.

    ``round_currency(Decimal("2.5")) == 3`` and
    ``round_currency(Decimal("-2.5")) == -2``.
    """
    return (value + _HALF).to_integral_value(rounding=ROUND_FLOOR)


def monthly_rate(annual_rate: Decimal) -> Decimal:
    """Convert an annual percentage rate into a monthly decimal rate."""
    return annual_rate / Decimal(100) / Decimal(12)


def parse_year_month(ym: str) -> date:
    """Parse a ``YYYY-MM`` string into a ``date`` object (first day of month).

    Parameters
    ----------
    ym: str
        A string in the exact form ``"YYYY-MM"`` (zero padded).

    Returns
    -------
    date
        A date object representing the first day of the specified month.

    Raises
    ------
    ValidationError
        If the string is not a valid zero-padded year-month.
    """
    if not isinstance(ym, str):
        raise ValidationError(f"Invalid year-month string: {ym!r} (expected YYYY-MM)")
    match = _MONTH_KEY.match(ym)
    if not match:
        raise ValidationError(f"Invalid year-month string: {ym!r} (expected YYYY-MM)")
    try:
        return date(int(match.group(1)), int(match.group(2)), 1)
    except ValueError as exc:
        raise ValidationError(f"Invalid year-month string: {ym!r}") from exc


def format_year_month(dt: date) -> str:
    return dt.strftime("%Y-%m")


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def shift_month_key(ym: str, months: int) -> str:
    """Shift a ``YYYY-MM`` key by a number of months."""
    return format_year_month(add_months(parse_year_month(ym), months))
