"""Output helpers for the amortization calculator.

This module provides simple functions to render amortization schedules and
summaries in a tabular text format, plus the yearly series used for charts.
We rely only on built-in printing and string formatting.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from .data_models import PeriodRecord


def print_summary(summary: Dict[str, object]) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Principal          : {summary['principal']:.2f}")
    print(f"Monthly payment    : {summary['monthly_payment']:.2f}")
    print(f"Total payments     : {summary['total_payments']:.2f}")
    print(f"Total interest     : {summary['total_interest']:.2f}")
    if summary.get('total_extra_principal', 0):
        print(f"Extra principal    : {summary['total_extra_principal']:.2f}")
    if summary.get('remaining_balance', 0):
        print(f"Unpaid balance     : {summary['remaining_balance']:.2f}")
    print(f"Original end date  : {summary['original_end_date']}")
    print(f"Payoff date        : {summary['payoff_date']}")
    print(f"Payments made      : {summary['payments_made']}")
    # For balloon loans this is the payoff month; for ARM loans it shows the
    # peak payment after rate adjustments.
    if summary.get('max_payment'):
        print(f"Highest payment    : {summary['max_payment']:.2f}")
    if summary.get('recast_count'):
        print(f"Recasts            : {summary['recast_count']}")
    print("-" * 72)


def print_schedule(
    schedule: Iterable[PeriodRecord], show_rate: bool = False, show_recast: bool = False
) -> None:
    """Print the amortization schedule as a simple table.

    Parameters
    ----------
    schedule: Iterable[PeriodRecord]
        The period records to print.
    show_rate: bool
        Whether to include the ``Rate`` column (useful for adjustable-rate
        loans, where it changes over time).
    show_recast: bool
        Whether to include the ``Recast`` column for recasting loans.
    """
    headers = ["Month", "Date", "Payment", "Principal", "Interest", "Extra", "Balance"]
    if show_rate:
        headers.append("Rate")
    if show_recast:
        headers.append("Recast")
    print("\t".join(headers))
    for record in schedule:
        row = [
            str(record.month),
            record.date.isoformat(),
            f"{record.payment:.2f}",
            f"{record.principal:.2f}",
            f"{record.interest:.2f}",
            f"{record.extra_principal:.2f}",
            f"{record.balance:.2f}",
        ]
        if show_rate:
            row.append(f"{record.rate:.3f}")
        if show_recast:
            row.append("Yes" if record.is_recast else "")
        print("\t".join(row))


def print_comparison(s1: Dict[str, object], s2: Dict[str, object]) -> None:
    """Print a comparison of two loan summaries side by side.

    The difference column is scenario2 - scenario1, so a negative value means
    the second scenario is cheaper or shorter.
    """
    print("Comparison")
    print("=" * 72)
    keys = [
        "monthly_payment",
        "total_payments",
        "total_interest",
        "payments_made",
    ]
    print(f"{'Metric':20s} {'Scenario1':>15s} {'Scenario2':>15s} {'Difference':>15s}")
    for key in keys:
        v1 = s1.get(key)
        v2 = s2.get(key)
        diff = v2 - v1
        print(f"{key:20s} {v1:15.2f} {v2:15.2f} {diff:15.2f}")
    print("=" * 72)


def chart_series(schedule: List[PeriodRecord]) -> List[Dict[str, float]]:
    """Yearly points for charting: every 12th record plus the last one."""
    points = []
    last_index = len(schedule) - 1
    for index, record in enumerate(schedule):
        if index % 12 != 0 and index != last_index:
            continue
        points.append(
            {
                "year": (record.month + 11) // 12,
                "balance": float(record.balance),
                "total_interest": float(record.total_interest),
                "total_principal": float(record.total_principal),
            }
        )
    return points
