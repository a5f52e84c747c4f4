"""Data models for the amortization calculator.

This module defines the dataclasses exchanged between the schedule engine and
its consumers: the loan configuration (input, immutable per run), the ARM
adjustment settings and the per-month period records (output). Amounts are
``Decimal`` so that schedules can be exported without float noise.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

STANDARD = "standard"
RECASTING = "recasting"
BALLOON = "balloon"
ARM = "arm"
LOAN_TYPES = (STANDARD, RECASTING, BALLOON, ARM)

# Due-day policies for recasting schedules. "same" follows the day of the
# first payment date.
DUE_DAYS = {
    "same": None,
    "first": 1,
    "fifth": 5,
    "tenth": 10,
    "fifteenth": 15,
}


@dataclass(frozen=True)
class ArmSettings:
    """Adjustment rules of an adjustable-rate loan.

    Attributes
    ----------
    fixed_months: int
        Number of months the initial rate is held before the first adjustment.
    adjustment_months: int
        Months between adjustments once the fixed period ends.
    lifetime_cap_percent: Decimal
        Maximum distance (in percentage points) the rate may move away from
        ``initial_rate_percent`` over the life of the loan, in either direction.
    initial_rate_percent: Decimal, optional
        Anchor of the lifetime cap band. ``None`` means the loan's own rate.
    periodic_cap_percent: Decimal, optional
        Maximum change at a single adjustment. ``None`` disables the cap.
    seed: int, optional
        Seed for the default random-walk rate provider.
    """

    fixed_months: int
    adjustment_months: int
    lifetime_cap_percent: Decimal
    initial_rate_percent: Optional[Decimal] = None
    periodic_cap_percent: Optional[Decimal] = None
    seed: Optional[int] = None


@dataclass(frozen=True)
class LoanConfig:
    """Configuration of a loan.

    A new configuration is built from user input on every recalculation; the
    engine never mutates it. ``balloon_term`` and ``interest_only`` only apply
    to balloon loans, ``arm_settings`` only to adjustable-rate loans, and
    ``first_payment_date``/``payment_due_day`` only to recasting loans.
    """

    principal: Decimal
    rate: Decimal  # annual nominal interest rate in percent
    term: int  # term (amortization period) in months
    start_date: date
    extra_payment: Decimal = Decimal("0")
    loan_type: str = STANDARD
    balloon_term: Optional[int] = None
    interest_only: bool = False
    arm_settings: Optional[ArmSettings] = None
    first_payment_date: Optional[date] = None
    payment_due_day: str = "same"


@dataclass(frozen=True)
class PeriodRecord:
    """One month of an amortization schedule.

    ``payment`` always equals ``principal + interest``. ``extra_principal`` is
    the part of ``principal`` that came from the configured extra payment.
    ``is_recast`` is only ever set on recasting loans, on the anniversary
    month in which the payment was re-amortized.
    """

    month: int
    date: date
    payment: Decimal
    principal: Decimal
    interest: Decimal
    balance: Decimal
    total_interest: Decimal
    total_principal: Decimal
    rate: Decimal
    extra_principal: Decimal = Decimal("0")
    is_recast: bool = False
