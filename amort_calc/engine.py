"""Core calculation engine for the amortization calculator.

This module implements the schedule engine: the closed-form level payment,
the month-by-month simulator shared by standard, balloon and adjustable-rate
loans, and the separate simulator for recasting loans, where extra payments
made during the year are rolled into a lower required payment on each
anniversary of the loan.

Both simulators are written as a fold over months: every step receives the
immutable state left by the previous month and returns the next state along
with the period record it produced. Nothing is kept at module level, so
concurrent calls are independent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal, getcontext
from functools import partial
from typing import Callable, Dict, List, Optional, Tuple

from .data_models import (
    ARM,
    BALLOON,
    DUE_DAYS,
    LOAN_TYPES,
    RECASTING,
    ArmSettings,
    LoanConfig,
    PeriodRecord,
)
from .errors import (
    DomainError,
    InvalidArmSettings,
    InvalidLoanType,
    InvalidPayment,
    InvalidPrincipal,
    InvalidRate,
    InvalidTerm,
)
from .rates import RandomWalkRateProvider, RateProvider
from .utils import add_months, default_first_payment_date, next_due_date

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
# Balances below half a cent are swept into the period's principal.
_RESIDUAL = Decimal("0.005")


def monthly_rate(rate: Decimal) -> Decimal:
    """Convert an annual rate in percent to a monthly decimal rate."""
    return rate / Decimal(100) / Decimal(12)


def calculate_monthly_payment(principal: Decimal, rate: Decimal, months: int) -> Decimal:
    """Return the level monthly payment that amortizes ``principal``.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate derived
    from the annual percentage ``rate`` and ``n`` is the number of payments.
    When the interest rate is zero, the payment simplifies to ``P / n``.
    """
    if months <= 0:
        raise InvalidTerm("Term must be a positive number of months")
    i = monthly_rate(rate)
    if i == 0:
        return principal / Decimal(months)
    factor = (1 + i) ** months
    return principal * (i * factor) / (factor - 1)


def validate_config(config: LoanConfig) -> None:
    """Reject configurations the engine cannot simulate.

    Raises a ``DomainError`` subclass; nothing is clamped silently.
    """
    if config.loan_type not in LOAN_TYPES:
        raise InvalidLoanType(f"Unknown loan type: {config.loan_type}")
    if config.principal <= 0:
        raise InvalidPrincipal("Principal must be positive")
    if config.rate < 0:
        raise InvalidRate("Interest rate cannot be negative")
    if config.term <= 0:
        raise InvalidTerm("Term must be a positive number of months")
    if config.extra_payment < 0:
        raise InvalidPayment("Extra payment cannot be negative")
    if config.loan_type == BALLOON:
        if config.balloon_term is None or config.balloon_term <= 0:
            raise InvalidTerm("Balloon loans need a positive balloon term")
        if config.balloon_term > config.term:
            raise InvalidTerm("Balloon term cannot exceed the amortization term")
    if config.loan_type == ARM:
        arm = config.arm_settings
        if arm is None:
            raise InvalidArmSettings("Adjustable-rate loans need ARM settings")
        if arm.fixed_months < 0:
            raise InvalidArmSettings("Fixed period cannot be negative")
        if arm.adjustment_months <= 0:
            raise InvalidArmSettings("Adjustment period must be a positive number of months")
        if arm.lifetime_cap_percent < 0:
            raise InvalidArmSettings("Lifetime cap cannot be negative")
        if arm.periodic_cap_percent is not None and arm.periodic_cap_percent < 0:
            raise InvalidArmSettings("Periodic cap cannot be negative")
        if arm.initial_rate_percent is not None:
            if arm.initial_rate_percent < 0:
                raise InvalidRate("Initial ARM rate cannot be negative")
            # The fixed period runs at config.rate, which must sit inside the lifetime band.
            if abs(config.rate - arm.initial_rate_percent) > arm.lifetime_cap_percent:
                raise InvalidArmSettings(
                    f"Rate {config.rate}% is outside the lifetime cap band around "
                    f"{arm.initial_rate_percent}%"
                )
    if config.loan_type == RECASTING and config.payment_due_day not in DUE_DAYS:
        raise DomainError(f"Unknown payment due day: {config.payment_due_day}")


@dataclass(frozen=True)
class _ScheduleState:
    """State carried from one month to the next."""

    balance: Decimal
    rate: Decimal
    base_payment: Decimal
    total_interest: Decimal = ZERO
    total_principal: Decimal = ZERO
    extra_pool: Decimal = ZERO  # recasting only: extra principal paid since the last recast
    next_date: Optional[date] = None  # recasting only
    finished: bool = False


def _settle(
    state: _ScheduleState,
    month: int,
    period_date: date,
    interest: Decimal,
    principal: Decimal,
    extra: Decimal = ZERO,
    is_recast: bool = False,
) -> Tuple[_ScheduleState, PeriodRecord]:
    """Apply a period's principal to the state and build its record."""
    balance = state.balance - principal
    if balance < _RESIDUAL:
        principal += balance
        balance = ZERO
    total_interest = state.total_interest + interest
    total_principal = state.total_principal + principal
    record = PeriodRecord(
        month=month,
        date=period_date,
        payment=interest + principal,
        principal=principal,
        interest=interest,
        balance=balance,
        total_interest=total_interest,
        total_principal=total_principal,
        rate=state.rate,
        extra_principal=extra,
        is_recast=is_recast,
    )
    new_state = replace(
        state,
        balance=balance,
        total_interest=total_interest,
        total_principal=total_principal,
        finished=balance <= 0,
    )
    return new_state, record


def _is_adjustment_month(month: int, arm: ArmSettings) -> bool:
    return month > arm.fixed_months and (month - arm.fixed_months - 1) % arm.adjustment_months == 0


def _capped_rate(current: Decimal, proposed: Decimal, arm: ArmSettings, anchor: Decimal) -> Decimal:
    """Limit a proposed ARM rate by the periodic cap, then the lifetime band."""
    if arm.periodic_cap_percent is not None:
        cap = arm.periodic_cap_percent
        proposed = min(max(proposed, current - cap), current + cap)
    floor = max(anchor - arm.lifetime_cap_percent, ZERO)
    ceiling = anchor + arm.lifetime_cap_percent
    return min(max(proposed, floor), ceiling)


def _amortizing_step(
    config: LoanConfig,
    rate_provider: Optional[RateProvider],
    state: _ScheduleState,
    month: int,
) -> Tuple[_ScheduleState, PeriodRecord]:
    """One month of a standard, balloon or adjustable-rate loan."""
    period_date = add_months(config.start_date, month - 1)

    arm = config.arm_settings if config.loan_type == ARM else None
    if arm is not None and rate_provider is not None and _is_adjustment_month(month, arm):
        anchor = arm.initial_rate_percent if arm.initial_rate_percent is not None else config.rate
        proposed = rate_provider(period_date, state.rate)
        new_rate = _capped_rate(state.rate, proposed, arm, anchor)
        logger.debug("Month %d: rate adjusted from %s to %s", month, state.rate, new_rate)
        state = replace(state, rate=new_rate)

    interest = state.balance * monthly_rate(state.rate)
    extra = ZERO
    balloon_due = False
    if config.loan_type == BALLOON and config.interest_only and month < config.balloon_term:
        principal = ZERO
    elif config.loan_type == BALLOON and month == config.balloon_term:
        principal = state.balance
        balloon_due = True
    else:
        scheduled = min(max(state.base_payment - interest, ZERO), state.balance)
        principal = min(max(state.base_payment - interest + config.extra_payment, ZERO), state.balance)
        extra = max(principal - scheduled, ZERO)

    state, record = _settle(state, month, period_date, interest, principal, extra)
    if balloon_due:
        logger.debug("Month %d: balloon payment of %s", month, principal)
        state = replace(state, finished=True)
    return state, record


def _recasting_step(
    config: LoanConfig,
    state: _ScheduleState,
    month: int,
) -> Tuple[_ScheduleState, PeriodRecord]:
    """One month of a recasting loan.

    Extra payments reduce the balance in the month they are paid and are
    tallied in ``extra_pool``. On the first period that falls in the loan's
    start month of a later year, a non-empty pool triggers a recast: the
    required payment is re-amortized over the remaining months and the pool
    is cleared. No extra payment is taken in a recast month.
    """
    period_date = state.next_date
    interest = state.balance * monthly_rate(state.rate)
    anniversary = (
        period_date.month == config.start_date.month and period_date.year > config.start_date.year
    )

    extra = ZERO
    is_recast = False
    if anniversary and state.extra_pool > 0:
        remaining = config.term - month + 1
        base_payment = calculate_monthly_payment(state.balance, state.rate, remaining)
        logger.debug(
            "Month %d: recast after %s extra principal, payment %s -> %s",
            month, state.extra_pool, state.base_payment, base_payment,
        )
        state = replace(state, base_payment=base_payment, extra_pool=ZERO)
        principal = min(max(base_payment - interest, ZERO), state.balance)
        is_recast = True
    else:
        principal = min(max(state.base_payment - interest, ZERO), state.balance)
        if config.extra_payment > 0:
            extra = min(config.extra_payment, state.balance - principal)
            principal += extra
            state = replace(state, extra_pool=state.extra_pool + extra)

    state, record = _settle(state, month, period_date, interest, principal, extra, is_recast)
    reference_day = first_period_date(config).day
    state = replace(
        state,
        next_date=next_due_date(period_date, DUE_DAYS[config.payment_due_day], reference_day),
    )
    return state, record


def _fold(
    term: int,
    step: Callable[[_ScheduleState, int], Tuple[_ScheduleState, PeriodRecord]],
    state: _ScheduleState,
) -> List[PeriodRecord]:
    schedule: List[PeriodRecord] = []
    for month in range(1, term + 1):
        state, record = step(state, month)
        schedule.append(record)
        if state.finished:
            break
    return schedule


def first_period_date(config: LoanConfig) -> date:
    """Date of the first period record for ``config``."""
    if config.loan_type == RECASTING:
        return config.first_payment_date or default_first_payment_date(config.start_date)
    return config.start_date


def generate_schedule(
    config: LoanConfig, rate_provider: Optional[RateProvider] = None
) -> List[PeriodRecord]:
    """Compute the full amortization schedule for ``config``.

    Parameters
    ----------
    config: LoanConfig
        The loan configuration. It is validated first; malformed input raises
        a ``DomainError`` subclass.
    rate_provider: RateProvider, optional
        Source of adjusted rates for ARM loans. When omitted, a fresh
        ``RandomWalkRateProvider`` seeded from ``config.arm_settings.seed`` is
        used, so equal seeds give equal schedules. Ignored for other loan
        types.

    Returns
    -------
    List[PeriodRecord]
        One record per simulated month, in order. The schedule ends when the
        balance reaches zero, at the balloon payment, or at ``config.term``.
    """
    validate_config(config)
    logger.debug(
        "Generating %s schedule: principal=%s rate=%s term=%d",
        config.loan_type, config.principal, config.rate, config.term,
    )

    if config.loan_type == RECASTING:
        state = _ScheduleState(
            balance=config.principal,
            rate=config.rate,
            base_payment=calculate_monthly_payment(config.principal, config.rate, config.term),
            next_date=first_period_date(config),
        )
        return _fold(config.term, partial(_recasting_step, config), state)

    if config.loan_type == BALLOON and config.interest_only:
        base_payment = config.principal * monthly_rate(config.rate)
    else:
        base_payment = calculate_monthly_payment(config.principal, config.rate, config.term)

    if config.loan_type == ARM and rate_provider is None:
        rate_provider = RandomWalkRateProvider(seed=config.arm_settings.seed)

    state = _ScheduleState(balance=config.principal, rate=config.rate, base_payment=base_payment)
    return _fold(config.term, partial(_amortizing_step, config, rate_provider), state)


def summarize_schedule(config: LoanConfig, schedule: List[PeriodRecord]) -> Dict[str, object]:
    """Aggregate metrics for a schedule, as JSON-ready floats and strings."""
    first_date = first_period_date(config)
    original_end_date = add_months(first_date, config.term - 1)
    if not schedule:
        return {
            "principal": float(config.principal),
            "monthly_payment": 0.0,
            "total_payments": 0.0,
            "total_interest": 0.0,
            "total_principal": 0.0,
            "total_extra_principal": 0.0,
            "remaining_balance": float(config.principal),
            "payments_made": 0,
            "max_payment": 0.0,
            "term_months": config.term,
            "original_end_date": original_end_date.isoformat(),
            "payoff_date": None,
            "recast_count": 0,
            "final_rate": float(config.rate),
        }

    last = schedule[-1]
    first = schedule[0]
    return {
        "principal": float(config.principal),
        "monthly_payment": float(first.payment - first.extra_principal),
        "total_payments": float(sum((r.payment for r in schedule), ZERO)),
        "total_interest": float(last.total_interest),
        "total_principal": float(last.total_principal),
        "total_extra_principal": float(sum((r.extra_principal for r in schedule), ZERO)),
        "remaining_balance": float(last.balance),
        "payments_made": sum(1 for r in schedule if r.payment > 0),
        "max_payment": float(max(r.payment for r in schedule)),
        "term_months": config.term,
        "original_end_date": original_end_date.isoformat(),
        "payoff_date": last.date.isoformat(),
        "recast_count": sum(1 for r in schedule if r.is_recast),
        "final_rate": float(last.rate),
    }


def compute_schedule(
    config: LoanConfig, rate_provider: Optional[RateProvider] = None
) -> Tuple[List[PeriodRecord], Dict[str, object]]:
    """Compute the schedule and its summary in one call."""
    schedule = generate_schedule(config, rate_provider)
    return schedule, summarize_schedule(config, schedule)
