# tests/test_recasting.py
from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from amort_calc.data_models import LoanConfig
from amort_calc.engine import calculate_monthly_payment, generate_schedule


@pytest.fixture
def recasting_config():
    return LoanConfig(
        principal=Decimal("250000"),
        rate=Decimal("6.5"),
        term=360,
        start_date=date(2025, 1, 15),
        extra_payment=Decimal("500"),
        loan_type="recasting",
    )


def test_first_payment_defaults_to_next_month(recasting_config):
    sched = generate_schedule(recasting_config)
    assert sched[0].date == date(2025, 2, 1)
    assert sched[1].date == date(2025, 3, 1)


def test_recasts_on_each_anniversary_of_start_month(recasting_config):
    sched = generate_schedule(recasting_config)
    recast_months = [r.month for r in sched if r.is_recast]
    assert recast_months[:2] == [12, 24]
    assert all(m % 12 == 0 for m in recast_months)
    assert all(r.date.month == 1 for r in sched if r.is_recast)
    assert sched[11].date == date(2026, 1, 1)


def test_recast_month_takes_no_extra_payment(recasting_config):
    sched = generate_schedule(recasting_config)
    assert sched[10].extra_principal == Decimal("500")
    assert sched[11].extra_principal == 0
    assert sched[12].extra_principal == Decimal("500")


def test_recast_lowers_required_payment(recasting_config):
    sched = generate_schedule(recasting_config)
    before = sched[10].payment - sched[10].extra_principal
    after = sched[11].payment
    assert after < before
    expected = calculate_monthly_payment(sched[10].balance, Decimal("6.5"), 349)
    assert float(after) == pytest.approx(float(expected), abs=1e-9)


def test_no_principal_leaks(recasting_config):
    sched = generate_schedule(recasting_config)
    paid = sum(r.principal for r in sched)
    assert float(paid + sched[-1].balance) == pytest.approx(250_000, abs=1e-9)
    assert sched[-1].balance == 0
    previous = recasting_config.principal
    for record in sched:
        assert record.balance == previous - record.principal
        previous = record.balance


def test_recasting_pays_off_slower_than_immediate_extra(recasting_config):
    recast = generate_schedule(recasting_config)
    standard = generate_schedule(replace(recasting_config, loan_type="standard"))
    assert len(standard) < len(recast) < 360


def test_without_extra_payment_matches_standard_amortization(recasting_config):
    config = replace(recasting_config, extra_payment=Decimal("0"))
    recast = generate_schedule(config)
    standard = generate_schedule(replace(config, loan_type="standard"))
    assert len(recast) == 360
    assert not any(r.is_recast for r in recast)
    assert [r.principal for r in recast] == [r.principal for r in standard]
    assert [r.interest for r in recast] == [r.interest for r in standard]


def test_anniversary_follows_start_month_not_first_payment():
    config = LoanConfig(
        principal=Decimal("50000"),
        rate=Decimal("5"),
        term=120,
        start_date=date(2025, 6, 20),
        extra_payment=Decimal("100"),
        loan_type="recasting",
        first_payment_date=date(2025, 7, 5),
    )
    recasts = [r for r in generate_schedule(config) if r.is_recast]
    assert recasts[0].date == date(2026, 6, 5)
    assert recasts[0].month == 12


def _dates(**kwargs):
    config = LoanConfig(
        principal=Decimal("3000"),
        rate=Decimal("0"),
        term=3,
        start_date=date(2025, 1, 10),
        loan_type="recasting",
        **kwargs,
    )
    return [r.date for r in generate_schedule(config)]


def test_same_day_policy_clamps_and_recovers():
    assert _dates(first_payment_date=date(2025, 1, 31)) == [
        date(2025, 1, 31),
        date(2025, 2, 28),
        date(2025, 3, 31),
    ]


def test_fixed_due_day_policy():
    assert _dates(first_payment_date=date(2025, 1, 31), payment_due_day="fifteenth") == [
        date(2025, 1, 31),
        date(2025, 2, 15),
        date(2025, 3, 15),
    ]
    assert _dates(first_payment_date=date(2025, 2, 10), payment_due_day="first") == [
        date(2025, 2, 10),
        date(2025, 3, 1),
        date(2025, 4, 1),
    ]


def test_extra_payment_never_exceeds_balance():
    config = LoanConfig(
        principal=Decimal("1000"),
        rate=Decimal("0"),
        term=10,
        start_date=date(2025, 1, 1),
        extra_payment=Decimal("450"),
        loan_type="recasting",
    )
    sched = generate_schedule(config)
    # 100 scheduled + 450 extra, then 100 scheduled + the remaining 350.
    assert len(sched) == 2
    assert sched[0].principal == Decimal("550")
    assert sched[1].principal == Decimal("450")
    assert sched[1].extra_principal == Decimal("350")
    assert sched[-1].balance == 0
