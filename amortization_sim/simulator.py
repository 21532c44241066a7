"""Entry point of the amortization simulator.

``simulate`` accepts loosely typed caller input, converts it into
``LoanParameters`` and an optional ``ExtraPayment`` and runs the three stages
in order: baseline schedule, re-amortization after the extra payment, and
summary metrics.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Type, TypeVar, Union

from .data_models import (
    AmortizationSystem,
    ExtraPayment,
    LoanParameters,
    ReductionStrategy,
    SimulationResult,
)
from .engine import compute_baseline, validate_parameters
from .errors import InvalidInputError
from .metrics import summarize
from .reamortize import apply_extra_payment

E = TypeVar("E", bound=Enum)


def to_decimal(value: Any, field: str) -> Decimal:
    """Convert ``value`` into a ``Decimal``, going through ``str`` for floats."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a number, got bool")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise InvalidInputError(f"{field} must be a number, got {value!r}") from exc
    raise InvalidInputError(f"{field} must be a number, got {type(value).__name__}")


def to_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    """Return the ``enum_cls`` member named or valued ``value`` (case-insensitive)."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().upper()
        for member in enum_cls:
            if key in (member.name, member.value):
                return member
    choices = ", ".join(member.value for member in enum_cls)
    raise InvalidInputError(f"{field} must be one of {choices}; got {value!r}")


def simulate_loan(params: LoanParameters, extra: Optional[ExtraPayment] = None) -> SimulationResult:
    """Run a full simulation for already typed inputs."""
    validate_parameters(params, extra)
    baseline = compute_baseline(params)
    post_extra = apply_extra_payment(params, baseline, extra)
    metrics = summarize(baseline, post_extra, extra)
    return SimulationResult(
        params=params,
        extra_payment=extra,
        first_installment=baseline.first_installment,
        baseline_total_paid=baseline.total_paid,
        baseline_total_interest=baseline.total_interest,
        schedule=post_extra.schedule,
        total_paid=post_extra.total_paid,
        total_interest=post_extra.total_interest,
        balance_after_extra=post_extra.balance_after_extra,
        interest_saved=metrics.interest_saved,
        months_eliminated=metrics.months_eliminated,
        installment_reduction=metrics.installment_reduction,
        projected_installment_after_extra=metrics.projected_installment_after_extra,
    )


def simulate(
    principal: Union[Decimal, int, float, str],
    monthly_rate: Union[Decimal, int, float, str],
    term_months: int,
    system: Union[AmortizationSystem, str],
    start_date: date,
    extra_amount: Union[Decimal, int, float, str] = Decimal("0"),
    strategy: Union[ReductionStrategy, str] = ReductionStrategy.REDUCE_TERM,
) -> SimulationResult:
    """Simulate a loan and a one-time extra payment made with the first installment.

    ``strategy`` is ignored when ``extra_amount`` is zero. Raises
    ``InvalidInputError`` for any input that cannot be simulated; no partial
    result is ever returned.
    """
    params = LoanParameters(
        principal=to_decimal(principal, "principal"),
        monthly_rate=to_decimal(monthly_rate, "monthly_rate"),
        term_months=term_months,
        system=to_enum(AmortizationSystem, system, "system"),
        start_date=start_date,
    )
    amount = to_decimal(extra_amount, "extra_amount")
    extra = None
    if amount != 0:
        extra = ExtraPayment(amount=amount, strategy=to_enum(ReductionStrategy, strategy, "strategy"))
    return simulate_loan(params, extra)
