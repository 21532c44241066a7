"""Output helpers for the amortization simulator.

This module renders simulation results in a tabular text format, writes the
narrative summary shown next to the figures, and converts schedules and
summaries into JSON/CSV friendly structures for export.
"""

from __future__ import annotations

import csv
import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .data_models import ReductionStrategy, ScheduleRow, SimulationResult

CSV_HEADER = [
    "Month",
    "Due_Date",
    "Installment",
    "Interest",
    "Amortization",
    "Remaining_Balance",
]


def _money(value: Decimal) -> str:
    return f"{value:,.2f}"


def describe_result(result: SimulationResult) -> str:
    """Return a short narrative explaining the outcome of a simulation."""
    params = result.params
    if not result.has_extra_payment:
        return (
            f"This is the baseline simulation of the loan. You will pay a total of "
            f"{_money(result.baseline_total_interest)} in interest over "
            f"{params.term_months} months. Add an extra payment to see how much "
            f"debt and interest it removes."
        )

    extra = result.extra_payment
    if result.actual_months == 1:
        return (
            f"An extra payment of {_money(extra.amount)} settles the loan with the "
            f"first installment, saving {_money(result.interest_saved)} in interest."
        )
    if extra.strategy == ReductionStrategy.REDUCE_TERM:
        years = result.months_eliminated / 12
        return (
            f"Paying {_money(extra.amount)} now removes {result.months_eliminated} "
            f"months (about {years:.1f} years) from the loan and saves roughly "
            f"{_money(result.interest_saved)} in interest. Reducing the term yields "
            f"the largest total saving and brings the payoff date forward."
        )
    return (
        f"Paying {_money(extra.amount)} now lowers your next installment by about "
        f"{_money(result.installment_reduction)} and saves {_money(result.interest_saved)} "
        f"in interest over the contract. Reducing the installment improves monthly "
        f"cash flow while keeping the original end date."
    )


def print_summary(result: SimulationResult) -> None:
    """Print a summary of simulation metrics in a human-readable format."""
    params = result.params
    print("Summary")
    print("-" * 72)
    print(f"Principal financed : {params.principal:.2f}")
    print(f"Monthly rate       : {params.monthly_rate * 100:.4f}%")
    print(f"System             : {params.system.value}")
    print(f"First installment  : {result.first_installment:.2f}")
    print(f"Baseline interest  : {result.baseline_total_interest:.2f}")
    print(f"Baseline total paid: {result.baseline_total_paid:.2f}")
    print(f"Original end date  : {result.original_end_date.isoformat()}")
    if result.has_extra_payment:
        print(f"Extra payment      : {result.extra_payment.amount:.2f}")
        print(f"Strategy           : {result.extra_payment.strategy.value}")
        print(f"Interest saved     : {result.interest_saved:.2f}")
        print(f"Total interest     : {result.total_interest:.2f}")
        print(f"Total paid         : {result.total_paid:.2f}")
        print(f"New end date       : {result.end_date.isoformat()}")
        if result.months_eliminated:
            print(f"Term reduction     : {result.months_eliminated} months")
        if result.installment_reduction:
            print(f"Installment cut    : {result.installment_reduction:.2f}")
        print(f"Next installment   : {result.projected_installment_after_extra:.2f}")
    print(f"Payments made      : {result.actual_months}")
    print("-" * 72)
    print(describe_result(result))


def print_schedule(schedule: Iterable[ScheduleRow]) -> None:
    """Print the payment schedule as a simple table."""
    headers = ["Month", "Due", "Installment", "Interest", "Amortization", "Balance"]
    print("\t".join(headers))
    for row in schedule:
        print(
            "\t".join(
                [
                    str(row.month),
                    row.due_date.isoformat(),
                    f"{row.installment:.2f}",
                    f"{row.interest_portion:.2f}",
                    f"{row.amortization_portion:.2f}",
                    f"{row.remaining_balance:.2f}",
                ]
            )
        )


def print_strategy_comparison(by_term: SimulationResult, by_installment: SimulationResult) -> None:
    """Print both extra-payment strategies for the same loan side by side.

    The difference column is ``installment - term``; a positive value means
    the term-reduction strategy is cheaper or shorter for that metric.
    """
    print("Comparison")
    print("=" * 72)
    rows = [
        ("interest_saved", by_term.interest_saved, by_installment.interest_saved),
        ("total_interest", by_term.total_interest, by_installment.total_interest),
        ("total_paid", by_term.total_paid, by_installment.total_paid),
        ("payments_made", Decimal(by_term.actual_months), Decimal(by_installment.actual_months)),
        (
            "next_installment",
            by_term.projected_installment_after_extra,
            by_installment.projected_installment_after_extra,
        ),
    ]
    print(f"{'Metric':20s} {'ReduceTerm':>15s} {'ReduceInst':>15s} {'Difference':>15s}")
    for key, v1, v2 in rows:
        diff = v2 - v1
        print(f"{key:20s} {v1:15.2f} {v2:15.2f} {diff:15.2f}")
    print("=" * 72)


def serialize_schedule(schedule: Iterable[ScheduleRow]) -> List[Dict[str, Any]]:
    """Convert schedule rows into JSON-serialisable dictionaries."""
    serialized = []
    for row in schedule:
        serialized.append(
            {
                "month": row.month,
                "due_date": row.due_date.isoformat(),
                "installment": float(row.installment),
                "interest": float(row.interest_portion),
                "amortization": float(row.amortization_portion),
                "balance": float(row.remaining_balance),
            }
        )
    return serialized


def serialize_summary(result: SimulationResult) -> Dict[str, Any]:
    """Convert the aggregate figures of a simulation into plain Python types."""
    extra = result.extra_payment
    return {
        "principal": float(result.params.principal),
        "monthly_rate": float(result.params.monthly_rate),
        "term_months": result.params.term_months,
        "system": result.params.system.value,
        "start_date": result.params.start_date.isoformat(),
        "extra_amount": float(extra.amount) if extra else 0.0,
        "strategy": extra.strategy.value if extra else None,
        "first_installment": float(result.first_installment),
        "baseline_total_paid": float(result.baseline_total_paid),
        "baseline_total_interest": float(result.baseline_total_interest),
        "total_paid": float(result.total_paid),
        "total_interest": float(result.total_interest),
        "balance_after_extra": float(result.balance_after_extra),
        "interest_saved": float(result.interest_saved),
        "months_eliminated": result.months_eliminated,
        "installment_reduction": float(result.installment_reduction),
        "projected_installment_after_extra": float(result.projected_installment_after_extra),
        "actual_months": result.actual_months,
        "original_end_date": result.original_end_date.isoformat(),
        "end_date": result.end_date.isoformat(),
    }


def export_to_json(path: Path, result: SimulationResult) -> None:
    """Export summary and schedule to a JSON file."""
    data = {"summary": serialize_summary(result), "schedule": serialize_schedule(result.schedule)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: Iterable[ScheduleRow]) -> None:
    """Export the schedule to a CSV file."""
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for row in schedule:
            writer.writerow(
                [
                    row.month,
                    row.due_date.isoformat(),
                    f"{row.installment:.2f}",
                    f"{row.interest_portion:.2f}",
                    f"{row.amortization_portion:.2f}",
                    f"{row.remaining_balance:.2f}",
                ]
            )
