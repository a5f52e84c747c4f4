# tests/test_utils.py
from datetime import date
from decimal import Decimal

import pytest

from amort_calc.utils import (
    add_months,
    decimal_from_str,
    default_first_payment_date,
    next_due_date,
    parse_date,
)


def test_add_months_clamps_day():
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)
    assert add_months(date(2025, 3, 31), 0) == date(2025, 3, 31)


def test_parse_date():
    assert parse_date("2025-07-04") == date(2025, 7, 4)
    assert parse_date(" 2025-07 ") == date(2025, 7, 1)
    for bad in ("2025", "07/04/2025", "2025-13-01", "2025-02-30"):
        with pytest.raises(ValueError):
            parse_date(bad)


def test_default_first_payment_date():
    assert default_first_payment_date(date(2025, 1, 15)) == date(2025, 2, 1)
    assert default_first_payment_date(date(2025, 12, 31)) == date(2026, 1, 1)


def test_next_due_date():
    assert next_due_date(date(2025, 1, 31), None, 31) == date(2025, 2, 28)
    assert next_due_date(date(2025, 2, 28), None, 31) == date(2025, 3, 31)
    assert next_due_date(date(2025, 12, 5), 10, 5) == date(2026, 1, 10)


def test_decimal_from_str():
    assert decimal_from_str("1,000.50") == Decimal("1000.50")
    assert decimal_from_str("0") == Decimal("0")
    for bad in ("abc", "", "NaN", "Infinity"):
        with pytest.raises(ValueError):
            decimal_from_str(bad)
