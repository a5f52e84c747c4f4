"""Utility functions for the amortization calculator.

This module provides helpers for parsing user input into Python data types and
for handling dates: adding calendar months, applying a payment due-day policy
and normalizing ``YYYY-MM-DD`` strings to ``datetime.date`` instances.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, getcontext
import calendar
from typing import Optional

getcontext().prec = 28  # increase decimal precision to avoid rounding errors


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` (or ``YYYY-MM``) string into a ``date``.

    A missing day component means the first day of the month.

    Raises
    ------
    ValueError
        If the string is not a valid date.
    """
    try:
        parts = value.strip().split("-")
        if len(parts) not in (2, 3):
            raise ValueError
        year = int(parts[0])
        month = int(parts[1])
        day = int(parts[2]) if len(parts) == 3 else 1
        return date(year, month, day)
    except Exception as exc:
        raise ValueError(f"Invalid date string: {value}") from exc


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, days_in_month(year, month))
    return date(year, month, day)


def default_first_payment_date(start_date: date) -> date:
    """First day of the month following ``start_date``."""
    return add_months(start_date.replace(day=1), 1)


def next_due_date(current: date, due_day: Optional[int], reference_day: int) -> date:
    """Return the payment date in the month after ``current``.

    ``due_day`` is a fixed day of month (1, 5, 10, 15) or ``None`` to reuse
    ``reference_day``, the day of the first payment. Either is clamped to the
    length of the target month, so a 31st reference day falls on Feb 28 and
    returns to the 31st in March.
    """
    first_of_next = add_months(current.replace(day=1), 1)
    day = due_day if due_day is not None else reference_day
    return first_of_next.replace(
        day=min(day, days_in_month(first_of_next.year, first_of_next.month))
    )


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = value.replace(",", "").strip()
        result = Decimal(cleaned)
        if not result.is_finite():
            raise ValueError
        return result
    except Exception as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc
