"""Command-line interface for the amortization simulator.

This module uses the ``click`` library to implement a multi-command interface.
Users can compute full payment schedules, view summaries or compare the two
extra-payment strategies for the same loan. Results can be printed to the
terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Callable, Optional, Tuple

import click

from .data_models import AmortizationSystem, ExtraPayment, LoanParameters, RatePeriod, ReductionStrategy
from .engine import normalize_rate
from .errors import InvalidInputError
from .formatter import (
    export_to_csv,
    export_to_json,
    print_schedule,
    print_strategy_comparison,
    print_summary,
    serialize_summary,
)
from .simulator import simulate_loan
from .utils import decimal_from_str, parse_date

SYSTEM_CHOICES = {"sac": AmortizationSystem.SAC, "price": AmortizationSystem.PRICE}
STRATEGY_CHOICES = {
    "term": ReductionStrategy.REDUCE_TERM,
    "installment": ReductionStrategy.REDUCE_INSTALLMENT,
}
RATE_PERIOD_CHOICES = {"annual": RatePeriod.ANNUAL, "monthly": RatePeriod.MONTHLY}


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("300000") and shorthand with ``k``/``m`` suffixes
    (e.g., "300k" meaning 300_000).
    """
    value = value.strip().lower().replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_percent(value: str) -> Decimal:
    """Parse a percentage string such as "9.5" or "9.5%" into a fraction."""
    value = value.strip()
    if value.endswith("%"):
        value = value[:-1]
    try:
        return decimal_from_str(value) / Decimal(100)
    except ValueError:
        raise click.BadParameter(f"Invalid percentage: {value}")


def build_inputs_from_options(
    principal: str,
    rate: str,
    rate_period: str,
    term: int,
    system: str,
    start_date: Optional[str],
    extra: Optional[str],
    strategy: str,
) -> Tuple[LoanParameters, Optional[ExtraPayment]]:
    principal_value = parse_amount(principal)
    rate_value = parse_percent(rate)
    if start_date:
        try:
            start = parse_date(start_date)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
    else:
        start = date.today()
    try:
        monthly_rate = normalize_rate(rate_value, RATE_PERIOD_CHOICES[rate_period.lower()])
    except InvalidInputError as exc:
        raise click.BadParameter(str(exc))
    params = LoanParameters(
        principal=principal_value,
        monthly_rate=monthly_rate,
        term_months=term,
        system=SYSTEM_CHOICES[system.lower()],
        start_date=start,
    )
    extra_payment = None
    if extra:
        amount = parse_amount(extra)
        if amount != 0:
            extra_payment = ExtraPayment(amount=amount, strategy=STRATEGY_CHOICES[strategy.lower()])
    return params, extra_payment


def _run(params: LoanParameters, extra: Optional[ExtraPayment]):
    try:
        return simulate_loan(params, extra)
    except InvalidInputError as exc:
        raise click.ClickException(str(exc))


def loan_options(func: Callable) -> Callable:
    """Attach the loan options shared by every command."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Financed amount"),
        click.option("--rate", "-r", "rate", required=True, help="Interest rate (percent)"),
        click.option(
            "--rate-period",
            "rate_period",
            type=click.Choice(list(RATE_PERIOD_CHOICES)),
            default="annual",
            help="Whether --rate is an annual effective rate or a monthly one",
        ),
        click.option("--term", "-t", "term", required=True, type=int, help="Loan term in months"),
        click.option("--system", "system", type=click.Choice(list(SYSTEM_CHOICES)), default="sac", help="Amortization system"),
        click.option("--start-date", "-s", "start_date", help="Contract date (YYYY-MM-DD); defaults to today"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log engine decisions to stderr")
def cli(verbose: bool) -> None:
    """A command-line simulator for SAC and PRICE loan amortization."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--extra", "-e", "extra", help="One-time extra payment made with the first installment")
@click.option("--strategy", "strategy", type=click.Choice(list(STRATEGY_CHOICES)), default="term", help="How to apply the extra payment")
@click.option("--max-rows", "max_rows", type=int, default=120, show_default=True, help="Rows printed to the terminal")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: str,
    rate_period: str,
    term: int,
    system: str,
    start_date: Optional[str],
    extra: Optional[str],
    strategy: str,
    max_rows: int,
    output: Optional[str],
) -> None:
    """Compute and print the full payment schedule."""
    params, extra_payment = build_inputs_from_options(
        principal, rate, rate_period, term, system, start_date, extra, strategy
    )
    result = _run(params, extra_payment)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result.schedule)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
        return

    print_summary(result)
    if len(result.schedule) > max_rows:
        click.echo(f"Schedule has {len(result.schedule)} rows; showing first {max_rows} rows.")
        print_schedule(result.schedule[:max_rows])
    else:
        print_schedule(result.schedule)


@cli.command()
@loan_options
@click.option("--extra", "-e", "extra", help="One-time extra payment made with the first installment")
@click.option("--strategy", "strategy", type=click.Choice(list(STRATEGY_CHOICES)), default="term", help="How to apply the extra payment")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    principal: str,
    rate: str,
    rate_period: str,
    term: int,
    system: str,
    start_date: Optional[str],
    extra: Optional[str],
    strategy: str,
    output: Optional[str],
) -> None:
    """Compute and print only the summary metrics for a loan."""
    params, extra_payment = build_inputs_from_options(
        principal, rate, rate_period, term, system, start_date, extra, strategy
    )
    result = _run(params, extra_payment)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": serialize_summary(result)}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(result)


@cli.command()
@loan_options
@click.option("--extra", "-e", "extra", required=True, help="One-time extra payment made with the first installment")
def compare(
    principal: str,
    rate: str,
    rate_period: str,
    term: int,
    system: str,
    start_date: Optional[str],
    extra: str,
) -> None:
    """Compare reducing the term with reducing the installment for one extra payment.

        amortization-sim compare -p 300k -r 9.5 -t 360 --extra 20000
    """
    params, by_term = build_inputs_from_options(
        principal, rate, rate_period, term, system, start_date, extra, "term"
    )
    if by_term is None:
        raise click.BadParameter("Comparison needs a positive extra payment")
    by_installment = ExtraPayment(amount=by_term.amount, strategy=ReductionStrategy.REDUCE_INSTALLMENT)
    print_strategy_comparison(_run(params, by_term), _run(params, by_installment))


if __name__ == "__main__":
    cli()
