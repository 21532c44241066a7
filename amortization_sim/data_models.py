"""Data models for the amortization simulator.

This module defines the enums and dataclasses used by the engine: the loan
parameters and optional extra payment supplied by the caller, the rows of a
payment schedule and the aggregate results produced by each stage of a
simulation. All models are frozen so that a computation can never mutate the
inputs it was given.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from .utils import add_months


class AmortizationSystem(str, Enum):
    """Supported amortization systems.

    ``SAC`` amortizes a constant share of the principal every month, so the
    installment shrinks over time. ``PRICE`` (French system) keeps the
    installment constant and shifts its split from interest to principal.
    """

    SAC = "SAC"
    PRICE = "PRICE"


class ReductionStrategy(str, Enum):
    """How the savings from an extra payment are applied."""

    REDUCE_TERM = "REDUCE_TERM"
    REDUCE_INSTALLMENT = "REDUCE_INSTALLMENT"


class RatePeriod(str, Enum):
    """Period the user-supplied interest rate refers to."""

    ANNUAL = "ANNUAL"
    MONTHLY = "MONTHLY"


@dataclass(frozen=True)
class LoanParameters:
    """Inputs describing the financed loan.

    Attributes
    ----------
    principal: Decimal
        The financed amount.
    monthly_rate: Decimal
        Monthly interest rate as a fraction (``0.0076`` for 0.76 %). Annual
        rates must be converted with ``engine.monthly_rate_from_annual``.
    term_months: int
        Number of monthly installments in the contract.
    system: AmortizationSystem
        SAC or PRICE.
    start_date: date
        Contract date. Installment ``k`` falls due ``k`` months later.
    """

    principal: Decimal
    monthly_rate: Decimal
    term_months: int
    system: AmortizationSystem
    start_date: date


@dataclass(frozen=True)
class ExtraPayment:
    """A one-time extra principal payment made with the first installment."""

    amount: Decimal
    strategy: ReductionStrategy = ReductionStrategy.REDUCE_TERM


@dataclass(frozen=True)
class ScheduleRow:
    """One installment of a payment schedule."""

    month: int
    due_date: date
    installment: Decimal
    interest_portion: Decimal
    amortization_portion: Decimal
    remaining_balance: Decimal


@dataclass(frozen=True)
class BaselineSchedule:
    """The full-term schedule with no extra payment."""

    params: LoanParameters
    schedule: List[ScheduleRow]
    total_paid: Decimal
    total_interest: Decimal
    first_installment: Decimal


@dataclass(frozen=True)
class ReamortizedSchedule:
    """The trajectory actually followed once an extra payment is applied.

    ``extra_applied`` may be lower than the requested extra amount when the
    payment exceeds what was still owed after the scheduled amortization.
    """

    schedule: List[ScheduleRow]
    total_paid: Decimal
    total_interest: Decimal
    actual_months: int
    balance_after_extra: Decimal
    extra_applied: Decimal


@dataclass(frozen=True)
class SimulationMetrics:
    interest_saved: Decimal
    months_eliminated: int
    installment_reduction: Decimal
    projected_installment_after_extra: Decimal


@dataclass(frozen=True)
class SimulationResult:
    """Everything a caller needs to render or store a simulation.

    ``schedule`` is the actual trajectory: the baseline when no extra payment
    was made, otherwise the re-amortized schedule. The ``baseline_*`` figures
    always describe the contract without the extra payment.
    """

    params: LoanParameters
    extra_payment: Optional[ExtraPayment]
    first_installment: Decimal
    baseline_total_paid: Decimal
    baseline_total_interest: Decimal
    schedule: List[ScheduleRow]
    total_paid: Decimal
    total_interest: Decimal
    balance_after_extra: Decimal
    interest_saved: Decimal
    months_eliminated: int
    installment_reduction: Decimal
    projected_installment_after_extra: Decimal

    @property
    def actual_months(self) -> int:
        return len(self.schedule)

    @property
    def has_extra_payment(self) -> bool:
        return self.extra_payment is not None and self.extra_payment.amount > 0

    @property
    def original_end_date(self) -> date:
        return add_months(self.params.start_date, self.params.term_months)

    @property
    def end_date(self) -> date:
        return self.schedule[-1].due_date if self.schedule else self.params.start_date
