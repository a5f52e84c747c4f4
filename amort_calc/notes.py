"""Promissory note text for a computed loan.

The note only needs a few scalars from the schedule (the regular payment,
the number of months, the first payment and maturity dates, and for balloon
loans the final payoff), collected in ``NoteTerms``. ``render_note`` fills
them into a plain-text note with a repayment clause matching the loan type.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_DOWN
from typing import List, Optional

from .data_models import ARM, BALLOON, DUE_DAYS, RECASTING, LoanConfig, PeriodRecord
from .engine import first_period_date
from .errors import DomainError
from .utils import add_months

_ONES = [
    "ZERO", "ONE", "TWO", "THREE", "FOUR", "FIVE", "SIX", "SEVEN", "EIGHT", "NINE",
    "TEN", "ELEVEN", "TWELVE", "THIRTEEN", "FOURTEEN", "FIFTEEN", "SIXTEEN",
    "SEVENTEEN", "EIGHTEEN", "NINETEEN",
]
_TENS = ["", "", "TWENTY", "THIRTY", "FORTY", "FIFTY", "SIXTY", "SEVENTY", "EIGHTY", "NINETY"]
_SCALES = [(10 ** 12, "TRILLION"), (10 ** 9, "BILLION"), (10 ** 6, "MILLION"), (1000, "THOUSAND")]


@dataclass(frozen=True)
class NoteTerms:
    """Summary scalars a promissory note is written from."""

    monthly_payment: Decimal
    total_months: int
    first_payment_date: date
    maturity_date: date
    balloon_amount: Optional[Decimal] = None


def _below_thousand(n: int) -> List[str]:
    words: List[str] = []
    if n >= 100:
        words += [_ONES[n // 100], "HUNDRED"]
        n %= 100
    if n >= 20:
        tens = _TENS[n // 10]
        words.append(f"{tens}-{_ONES[n % 10]}" if n % 10 else tens)
    elif n or not words:
        words.append(_ONES[n])
    return words


def amount_to_words(amount: Decimal) -> str:
    """Spell out the whole-dollar part of ``amount`` in upper-case English.

    >>> amount_to_words(Decimal("250000"))
    'TWO HUNDRED FIFTY THOUSAND'
    """
    n = int(Decimal(amount).to_integral_value(rounding=ROUND_DOWN))
    if n < 0:
        raise DomainError("Cannot spell a negative amount")
    if n == 0:
        return "ZERO"
    words: List[str] = []
    for scale, name in _SCALES:
        if n >= scale:
            words += _below_thousand(n // scale) + [name]
            n %= scale
    if n:
        words += _below_thousand(n)
    return " ".join(words)


def _ordinal(day: int) -> str:
    if 10 <= day % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def _money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def _long_date(d: date) -> str:
    return f"{d.strftime('%B')} {d.day}, {d.year}"


def note_terms(config: LoanConfig, schedule: List[PeriodRecord]) -> NoteTerms:
    """Derive the note scalars from the configuration and its schedule."""
    if not schedule:
        raise DomainError("Cannot write a note for an empty schedule")
    first = schedule[0]
    if config.loan_type == BALLOON:
        # A loan retired by extra payments never reaches the balloon month.
        balloon_amount = None
        if len(schedule) >= config.balloon_term:
            balloon_amount = schedule[config.balloon_term - 1].principal
        return NoteTerms(
            monthly_payment=first.payment - first.extra_principal,
            total_months=config.term,
            first_payment_date=first.date,
            maturity_date=add_months(config.start_date, config.balloon_term),
            balloon_amount=balloon_amount,
        )
    return NoteTerms(
        monthly_payment=first.payment - first.extra_principal,
        total_months=config.term,
        first_payment_date=first.date,
        maturity_date=add_months(config.start_date, config.term),
    )


def _repayment_clause(config: LoanConfig, terms: NoteTerms, due_day: str) -> str:
    rate = f"{config.rate} percent ({config.rate}%) per annum"
    schedule_tail = (
        f"due on the {due_day} day of each month, beginning "
        f"{_long_date(terms.first_payment_date)}"
    )
    if config.loan_type == BALLOON:
        kind = "interest only" if config.interest_only else (
            f"principal and interest based on an amortization schedule of "
            f"{terms.total_months} months"
        )
        amount = (
            f" of approximately {_money(terms.balloon_amount)}"
            if terms.balloon_amount is not None else ""
        )
        return (
            f"BALLOON LOAN\n\nThe Principal Balance shall accrue interest at {rate}, with "
            f"monthly payments of {kind} in the amount of {_money(terms.monthly_payment)}, "
            f"{schedule_tail}, until {_long_date(terms.maturity_date)}, at which time the "
            f"entire remaining principal balance{amount} and all accrued interest shall be due and "
            f"payable in full as a balloon payment."
        )
    if config.loan_type == ARM:
        arm = config.arm_settings
        anchor = arm.initial_rate_percent if arm.initial_rate_percent is not None else config.rate
        periodic = (
            f" No single adjustment shall exceed {arm.periodic_cap_percent}%."
            if arm.periodic_cap_percent is not None else ""
        )
        return (
            f"ADJUSTABLE RATE LOAN\n\nThe Principal Balance shall accrue interest at an "
            f"initial rate of {rate} for the first {arm.fixed_months} months. Thereafter the "
            f"rate shall adjust every {arm.adjustment_months} months and shall never be "
            f"less than {max(anchor - arm.lifetime_cap_percent, Decimal('0'))}% nor more than "
            f"{anchor + arm.lifetime_cap_percent}% per annum.{periodic} The initial monthly "
            f"installment of principal and interest is {_money(terms.monthly_payment)}, "
            f"{schedule_tail}, until the maturity date of {_long_date(terms.maturity_date)}."
        )
    if config.loan_type == RECASTING:
        return (
            f"RECASTING LOAN\n\nThe Principal Balance shall accrue interest at {rate}, "
            f"amortized over {terms.total_months} months, with monthly installments of "
            f"{_money(terms.monthly_payment)}, {schedule_tail}. Additional principal paid "
            f"during any loan year shall, on the anniversary of this Note, cause the "
            f"monthly installment to be recalculated over the remaining term at the same "
            f"rate. The maturity date of {_long_date(terms.maturity_date)} shall not change."
        )
    return (
        f"STANDARD LOAN\n\nThe Principal Balance shall accrue interest at {rate}, amortized "
        f"over {terms.total_months} months, with {terms.total_months} consecutive monthly "
        f"installment payments of {_money(terms.monthly_payment)}, each consisting of "
        f"principal and interest, {schedule_tail}, until the entire principal balance and "
        f"all accrued interest is paid in full, with a maturity date of "
        f"{_long_date(terms.maturity_date)}."
    )


_BOILERPLATE = """\
2. PREPAYMENT

This Note may be prepaid in whole or in part at any time without penalty.

3. LATE CHARGES

If any payment is not received within five (5) days after its due date, the Borrower agrees to pay a late charge of three percent (3%) of the overdue payment amount.

4. DEFAULT AND ACCELERATION

Failure to make any payment when due, or any other breach of this Note, is a default. Upon default, the Lender may declare the entire unpaid principal balance and all accrued interest immediately due and payable without notice or demand.

5. GOVERNING LAW

This Note shall be governed by the laws of {governing_law}.

BORROWER:


_____________________________________                    _______________________
{borrower}                                                  Dated


ACKNOWLEDGED AND ACCEPTED BY LENDER:


_____________________________________                    _______________________
Lender                                                      Dated
"""


def render_note(
    config: LoanConfig,
    schedule: List[PeriodRecord],
    borrower: Optional[str] = None,
    made_at: Optional[str] = None,
    governing_law: str = "[STATE]",
) -> str:
    """Return the promissory note text for ``config`` and its schedule."""
    terms = note_terms(config, schedule)
    borrower = borrower or "[BORROWER NAME]"
    fixed_day = DUE_DAYS.get(config.payment_due_day) if config.loan_type == RECASTING else None
    due_day = _ordinal(fixed_day or first_period_date(config).day)

    header = (
        f"PROMISSORY NOTE\n({config.loan_type.upper()} LOAN)\n\n"
        f"Borrower: {borrower}    {_long_date(config.start_date)}\n"
        f"Principal Amount: {_money(config.principal)}    Made at: {made_at or '[PLACE]'}\n\n"
        f"FOR VALUE RECEIVED, the undersigned (\"Borrower\") promises to pay to the order "
        f"of __________________________________ (\"Lender\") the principal sum of "
        f"{amount_to_words(config.principal)} DOLLARS ({_money(config.principal)}), "
        f"together with interest as set forth below.\n\n"
    )
    repayment = "1. TERMS OF REPAYMENT\n\n" + _repayment_clause(config, terms, due_day) + "\n\n"
    return header + repayment + _BOILERPLATE.format(governing_law=governing_law, borrower=borrower)
