"""Command-line interface for the amortization calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute full amortization schedules for standard,
recasting, balloon and adjustable-rate loans, view summaries, compare two
loan scenarios or print a promissory note. Schedules can be printed to the
terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
import math
import shlex
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .data_models import ARM, DUE_DAYS, LOAN_TYPES, RECASTING, ArmSettings, LoanConfig, PeriodRecord
from .engine import compute_schedule
from .errors import DomainError
from .formatter import print_comparison, print_schedule, print_summary
from .notes import render_note
from .utils import decimal_from_str, parse_date

logger = logging.getLogger(__name__)


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain floats ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000). Returns a float.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = 1.0
    if value.endswith("k"):
        factor = 1_000.0
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000.0
        value = value[:-1]
    try:
        amount = float(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")
    if not math.isfinite(amount):
        raise click.BadParameter(f"Invalid amount: {value}")
    return amount


def _decimal_option(value: Any, name: str) -> Decimal:
    try:
        return decimal_from_str(str(value))
    except ValueError:
        raise click.BadParameter(f"Invalid {name}: {value}")


def _parse_date_option(value: str) -> Any:
    try:
        return parse_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def build_config_from_options(
    principal: str,
    rate: float,
    term: int,
    loan_type: str,
    start_date: str,
    extra: Optional[str] = None,
    balloon_term: Optional[int] = None,
    interest_only: bool = False,
    first_payment_date: Optional[str] = None,
    due_day: str = "same",
    fixed_months: Optional[int] = None,
    adjustment_months: Optional[int] = None,
    lifetime_cap: Optional[float] = None,
    periodic_cap: Optional[float] = None,
    seed: Optional[int] = None,
) -> LoanConfig:
    """Turn raw option values into a ``LoanConfig``.

    Only coercion happens here; range checks are left to the engine, which
    raises ``DomainError`` for configurations it cannot simulate.
    """
    loan_type = loan_type.lower()
    if loan_type not in LOAN_TYPES:
        raise click.BadParameter(f"Loan type must be one of {', '.join(LOAN_TYPES)}; got {loan_type}")
    if due_day not in DUE_DAYS:
        raise click.BadParameter(f"Due day must be one of {', '.join(DUE_DAYS)}; got {due_day}")

    principal_value = _decimal_option(parse_amount(principal), "principal")
    extra_value = _decimal_option(parse_amount(extra) if extra else "0", "extra payment")
    rate_value = _decimal_option(rate, "rate")
    start_dt = _parse_date_option(start_date)
    first_payment_dt = _parse_date_option(first_payment_date) if first_payment_date else None

    arm_settings = None
    if loan_type == ARM:
        arm_settings = ArmSettings(
            fixed_months=60 if fixed_months is None else fixed_months,
            adjustment_months=12 if adjustment_months is None else adjustment_months,
            lifetime_cap_percent=_decimal_option(5 if lifetime_cap is None else lifetime_cap, "lifetime cap"),
            periodic_cap_percent=(
                _decimal_option(periodic_cap, "periodic cap") if periodic_cap is not None else None
            ),
            seed=seed,
        )

    return LoanConfig(
        principal=principal_value,
        rate=rate_value,
        term=term,
        start_date=start_dt,
        extra_payment=extra_value,
        loan_type=loan_type,
        balloon_term=balloon_term,
        interest_only=interest_only,
        arm_settings=arm_settings,
        first_payment_date=first_payment_dt,
        payment_due_day=due_day,
    )


def serialize_schedule(schedule: List[PeriodRecord]) -> List[Dict[str, Any]]:
    """Convert period records into JSON-serialisable dictionaries."""
    return [
        {
            "month": r.month,
            "date": r.date.isoformat(),
            "payment": float(r.payment),
            "principal": float(r.principal),
            "interest": float(r.interest),
            "extra_principal": float(r.extra_principal),
            "balance": float(r.balance),
            "total_interest": float(r.total_interest),
            "total_principal": float(r.total_principal),
            "rate": float(r.rate),
            "is_recast": r.is_recast,
        }
        for r in schedule
    ]


def export_to_json(path: Path, schedule: List[PeriodRecord], summary: Dict[str, Any]) -> None:
    """Export schedule and summary to a JSON file."""
    data = {"summary": summary, "schedule": serialize_schedule(schedule)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[PeriodRecord]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Month",
        "Date",
        "Payment",
        "Principal",
        "Interest",
        "Extra_Principal",
        "Balance",
        "Total_Interest",
        "Total_Principal",
        "Rate",
        "Recast",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for r in schedule:
            writer.writerow(
                [
                    r.month,
                    r.date.isoformat(),
                    float(r.payment),
                    float(r.principal),
                    float(r.interest),
                    float(r.extra_principal),
                    float(r.balance),
                    float(r.total_interest),
                    float(r.total_principal),
                    float(r.rate),
                    r.is_recast,
                ]
            )


def loan_options(func):
    """Attach the loan configuration options shared by every command."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (500k, 1.2m)"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=int, help="Term (amortization period) in months"),
        click.option("--type", "loan_type", type=click.Choice(list(LOAN_TYPES)), default="standard", help="Loan structure"),
        click.option("--start-date", "-s", "start_date", required=True, help="Loan start date (YYYY-MM-DD)"),
        click.option("--extra", "extra", help="Extra principal paid every month"),
        click.option("--balloon-term", "balloon_term", type=int, help="Balloon loans: months until the balloon payment"),
        click.option("--interest-only", "interest_only", is_flag=True, help="Balloon loans: pay interest only until the balloon"),
        click.option("--first-payment-date", "first_payment_date", help="Recasting loans: first payment date (YYYY-MM-DD)"),
        click.option("--due-day", "due_day", type=click.Choice(list(DUE_DAYS)), default="same", help="Recasting loans: payment due day"),
        click.option("--fixed-months", "fixed_months", type=int, help="ARM: months before the first adjustment (default 60)"),
        click.option("--adjustment-months", "adjustment_months", type=int, help="ARM: months between adjustments (default 12)"),
        click.option("--lifetime-cap", "lifetime_cap", type=float, help="ARM: lifetime cap in percentage points (default 5)"),
        click.option("--periodic-cap", "periodic_cap", type=float, help="ARM: cap on a single adjustment"),
        click.option("--seed", "seed", type=int, help="ARM: seed for the simulated rate path"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _run(params: Dict[str, Any]) -> Tuple[LoanConfig, List[PeriodRecord], Dict[str, Any]]:
    config = build_config_from_options(**params)
    try:
        schedule_entries, summary_data = compute_schedule(config)
    except DomainError as exc:
        raise click.ClickException(str(exc))
    return config, schedule_entries, summary_data


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """A command-line amortization calculator for several loan structures."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.option("--max-rows", "max_rows", type=int, default=120, show_default=True, help="Rows printed to the terminal")
def schedule(output: Optional[str], max_rows: int, **params: Any) -> None:
    """Compute and print the full amortization schedule."""
    config, schedule_entries, summary_data = _run(params)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, schedule_entries, summary_data)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, schedule_entries)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        logger.info("Wrote %d rows to %s", len(schedule_entries), path)
        click.echo(f"Schedule exported to {path}")
        return

    print_summary(summary_data)
    # Limit schedule length printed to avoid flooding the terminal
    rows = schedule_entries
    if len(schedule_entries) > max_rows:
        click.echo(f"Schedule has {len(schedule_entries)} rows; showing first {max_rows} rows.")
        rows = schedule_entries[:max_rows]
    print_schedule(rows, show_rate=config.loan_type == ARM, show_recast=config.loan_type == RECASTING)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(output: Optional[str], **params: Any) -> None:
    """Compute and print only the summary metrics for a loan."""
    _, _, summary_data = _run(params)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_data}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data)


@cli.command()
@loan_options
@click.option("--borrower", "borrower", help="Borrower name printed on the note")
@click.option("--made-at", "made_at", help="Place where the note is made")
@click.option("--governing-law", "governing_law", default="[STATE]", help="Jurisdiction whose law governs the note")
def note(borrower: Optional[str], made_at: Optional[str], governing_law: str, **params: Any) -> None:
    """Print a promissory note for the loan."""
    config, schedule_entries, _ = _run(params)
    click.echo(render_note(config, schedule_entries, borrower, made_at, governing_law))


@click.command("scenario")
@loan_options
def _scenario_command(**params: Any) -> None:
    """Option parser for ``compare`` scenarios; never invoked directly."""


def parse_scenario_opts(opts: str) -> Dict[str, Any]:
    """Parse a quoted option string into ``build_config_from_options`` keywords."""
    ctx = _scenario_command.make_context("scenario", shlex.split(opts))
    return dict(ctx.params)


@cli.command()
@click.option("--scenario1", "scenario1", required=True, help="First scenario options quoted string")
@click.option("--scenario2", "scenario2", required=True, help="Second scenario options quoted string")
def compare(scenario1: str, scenario2: str) -> None:
    """Compare two loan scenarios.

    Scenarios are provided as quoted option strings, for example:

        amort-calc compare --scenario1 "-p 250k -r 6.5 -t 360 -s 2025-01-01" \\
            --scenario2 "-p 250k -r 6.5 -t 360 -s 2025-01-01 --type recasting --extra 300"
    """
    _, _, summary1 = _run(parse_scenario_opts(scenario1))
    _, _, summary2 = _run(parse_scenario_opts(scenario2))
    print_comparison(summary1, summary2)


if __name__ == "__main__":
    cli()
