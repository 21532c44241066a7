"""Baseline schedule calculation for the amortization simulator.

This module implements the per-period interest and amortization rules of the
two supported systems (SAC and PRICE), the validation applied to every loan
before any period is computed and the conversion of annual rates to monthly
ones. ``compute_baseline`` builds the full-term schedule with no extra payment;
``reamortize`` reuses the same formulas for the post-extra-payment trajectory.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, getcontext
from typing import List, Optional

from .data_models import (
    AmortizationSystem,
    BaselineSchedule,
    ExtraPayment,
    LoanParameters,
    RatePeriod,
    ReductionStrategy,
    ScheduleRow,
)
from .errors import InvalidInputError
from .utils import add_months

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

MAX_TERM_MONTHS = 420


def monthly_rate_from_annual(annual_rate: Decimal) -> Decimal:
    """Return the monthly rate equivalent to an effective annual rate.

    Uses compound conversion, ``(1 + annual) ** (1/12) - 1``, rather than a
    flat division by twelve.
    """
    if annual_rate <= 0:
        raise InvalidInputError("Annual rate must be positive")
    return (Decimal(1) + annual_rate) ** (Decimal(1) / Decimal(12)) - Decimal(1)


def normalize_rate(rate: Decimal, period: RatePeriod) -> Decimal:
    """Return ``rate`` expressed per month."""
    if period == RatePeriod.ANNUAL:
        return monthly_rate_from_annual(rate)
    return rate


def validate_parameters(params: LoanParameters, extra: Optional[ExtraPayment] = None) -> None:
    """Raise ``InvalidInputError`` if the loan (or extra payment) cannot be simulated."""
    if not isinstance(params.principal, Decimal) or not params.principal.is_finite():
        raise InvalidInputError("Principal must be a finite decimal amount")
    if params.principal <= 0:
        raise InvalidInputError("Principal must be positive")
    if not isinstance(params.monthly_rate, Decimal) or not params.monthly_rate.is_finite():
        raise InvalidInputError("Monthly rate must be a finite decimal")
    if not Decimal(0) < params.monthly_rate < Decimal(1):
        raise InvalidInputError("Monthly rate must be between 0 and 1 (exclusive)")
    if isinstance(params.term_months, bool) or not isinstance(params.term_months, int):
        raise InvalidInputError("Term must be a whole number of months")
    if not 1 <= params.term_months <= MAX_TERM_MONTHS:
        raise InvalidInputError(f"Term must be between 1 and {MAX_TERM_MONTHS} months")
    if not isinstance(params.system, AmortizationSystem):
        raise InvalidInputError(f"Unsupported amortization system: {params.system!r}")
    if not isinstance(params.start_date, date):
        raise InvalidInputError("Start date must be a date")
    if extra is None:
        return
    if not isinstance(extra.amount, Decimal) or not extra.amount.is_finite():
        raise InvalidInputError("Extra payment must be a finite decimal amount")
    if extra.amount < 0:
        raise InvalidInputError("Extra payment cannot be negative")
    if not isinstance(extra.strategy, ReductionStrategy):
        raise InvalidInputError(f"Unsupported reduction strategy: {extra.strategy!r}")


def fixed_installment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the PRICE (French system) constant installment.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments.
    """
    if term <= 0:
        raise ValueError("Term must be positive")
    factor = (1 + rate_per_month) ** term
    return principal * (rate_per_month * factor) / (factor - 1)


def constant_amortization(principal: Decimal, term: int) -> Decimal:
    """Return the SAC constant principal share of each installment."""
    if term <= 0:
        raise ValueError("Term must be positive")
    return principal / Decimal(term)


def due_date(start_date: date, month: int) -> date:
    return add_months(start_date, month)


def compute_baseline(params: LoanParameters) -> BaselineSchedule:
    """Compute the full-term schedule of a loan with no extra payment.

    Parameters
    ----------
    params: LoanParameters
        The loan. Validated before any period is computed.

    Returns
    -------
    BaselineSchedule
        One row per month of the term. The last row amortizes whatever balance
        is left, so its ``remaining_balance`` is exactly zero.
    """
    validate_parameters(params)

    rate = params.monthly_rate
    term = params.term_months
    if params.system == AmortizationSystem.SAC:
        period_size = constant_amortization(params.principal, term)
    else:
        period_size = fixed_installment(params.principal, rate, term)
    logger.debug("Baseline %s period size for %s months: %s", params.system.value, term, period_size)

    schedule: List[ScheduleRow] = []
    balance = params.principal
    total_interest = Decimal("0")
    total_paid = Decimal("0")
    for month in range(1, term + 1):
        interest = balance * rate
        if params.system == AmortizationSystem.SAC:
            amortization = period_size
        else:
            amortization = period_size - interest
        # Final period absorbs the rounding residue
        if month == term:
            amortization = balance
        installment = interest + amortization
        balance -= amortization

        schedule.append(
            ScheduleRow(
                month=month,
                due_date=due_date(params.start_date, month),
                installment=installment,
                interest_portion=interest,
                amortization_portion=amortization,
                remaining_balance=balance,
            )
        )
        total_interest += interest
        total_paid += installment

    return BaselineSchedule(
        params=params,
        schedule=schedule,
        total_paid=total_paid,
        total_interest=total_interest,
        first_installment=schedule[0].installment,
    )
