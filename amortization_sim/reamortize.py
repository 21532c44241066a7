"""Re-amortization of a loan after a one-time extra payment.

The extra payment is made together with the first installment. The balance
left afterwards is then amortized under one of two strategies:

* ``REDUCE_TERM`` keeps the original period size (the SAC constant
  amortization or the PRICE installment) and solves for the shorter number of
  periods it takes to clear the reduced balance.
* ``REDUCE_INSTALLMENT`` keeps the original number of remaining periods and
  solves for a smaller constant period size.
"""

from __future__ import annotations

import logging
from decimal import ROUND_CEILING, Decimal
from typing import List, Optional, Tuple

from .data_models import (
    AmortizationSystem,
    BaselineSchedule,
    ExtraPayment,
    LoanParameters,
    ReamortizedSchedule,
    ReductionStrategy,
    ScheduleRow,
)
from .engine import constant_amortization, due_date, fixed_installment, validate_parameters
from .errors import DegenerateAmortizationError

logger = logging.getLogger(__name__)

# Decimal drift allowed, relative to the principal, before a balance counts as open
DRIFT_RATIO = Decimal("1e-18")

# Solver quotients are rounded here before the ceiling so drift cannot add a period
SOLVER_PLACES = Decimal("1e-18")


def _ceil(value: Decimal) -> int:
    return int(value.quantize(SOLVER_PLACES).to_integral_value(rounding=ROUND_CEILING))


def remaining_term_for_constant_amortization(balance: Decimal, amortization: Decimal) -> int:
    """Number of SAC periods needed to clear ``balance`` at a fixed amortization."""
    return _ceil(balance / amortization)


def remaining_term_for_fixed_installment(balance: Decimal, rate: Decimal, installment: Decimal) -> int:
    """Number of PRICE periods needed to clear ``balance`` at a fixed installment.

    Solves ``n = -ln(1 - B*i/PMT) / ln(1 + i)`` and rounds up.

    Raises
    ------
    DegenerateAmortizationError
        If the installment does not exceed the interest accrued on ``balance``.
    """
    argument = 1 - balance * rate / installment
    if argument <= 0:
        raise DegenerateAmortizationError(
            f"Installment {installment} cannot cover interest on balance {balance}"
        )
    return _ceil(-argument.ln() / (1 + rate).ln())


def _passthrough(baseline: BaselineSchedule) -> ReamortizedSchedule:
    return ReamortizedSchedule(
        schedule=baseline.schedule,
        total_paid=baseline.total_paid,
        total_interest=baseline.total_interest,
        actual_months=len(baseline.schedule),
        balance_after_extra=baseline.schedule[0].remaining_balance,
        extra_applied=Decimal("0"),
    )


def _solve_reduce_term(
    params: LoanParameters, balance: Decimal, base_size: Decimal
) -> Tuple[int, Decimal]:
    if params.system == AmortizationSystem.SAC:
        return remaining_term_for_constant_amortization(balance, base_size), base_size
    return remaining_term_for_fixed_installment(balance, params.monthly_rate, base_size), base_size


def _solve_reduce_installment(params: LoanParameters, balance: Decimal) -> Tuple[int, Decimal]:
    periods = params.term_months - 1
    if params.system == AmortizationSystem.SAC:
        return periods, constant_amortization(balance, periods)
    return periods, fixed_installment(balance, params.monthly_rate, periods)


def apply_extra_payment(
    params: LoanParameters,
    baseline: BaselineSchedule,
    extra: Optional[ExtraPayment],
) -> ReamortizedSchedule:
    """Recompute the schedule of ``params`` after a one-time extra payment.

    Returns the baseline unchanged when ``extra`` is absent or zero.
    """
    if extra is None or extra.amount == 0:
        return _passthrough(baseline)
    validate_parameters(params, extra)

    rate = params.monthly_rate
    term = params.term_months
    if params.system == AmortizationSystem.SAC:
        base_size = constant_amortization(params.principal, term)
    else:
        base_size = fixed_installment(params.principal, rate, term)

    # Month 1: scheduled payment plus the extra amount
    interest = params.principal * rate
    if params.system == AmortizationSystem.SAC:
        scheduled = base_size
    else:
        scheduled = base_size - interest
    amortization = scheduled + extra.amount
    drift = params.principal * DRIFT_RATIO
    paid_off = params.principal - amortization <= drift
    if paid_off:
        amortization = params.principal
    balance = params.principal - amortization

    remaining = 0
    period_size = base_size
    if not paid_off:
        if extra.strategy == ReductionStrategy.REDUCE_TERM:
            try:
                remaining, period_size = _solve_reduce_term(params, balance, base_size)
            except DegenerateAmortizationError as exc:
                logger.warning("Treating loan as paid off after the extra payment: %s", exc)
                amortization = params.principal
                balance = Decimal("0")
                paid_off = True
        else:
            remaining, period_size = _solve_reduce_installment(params, balance)

    if paid_off:
        logger.info("Extra payment of %s settles the loan in month 1", extra.amount)
    else:
        logger.debug(
            "%s/%s: %s remaining periods with period size %s",
            params.system.value,
            extra.strategy.value,
            remaining,
            period_size,
        )

    installment = interest + amortization
    schedule: List[ScheduleRow] = [
        ScheduleRow(
            month=1,
            due_date=due_date(params.start_date, 1),
            installment=installment,
            interest_portion=interest,
            amortization_portion=amortization,
            remaining_balance=balance,
        )
    ]
    total_interest = interest
    total_paid = installment
    balance_after_extra = balance
    extra_applied = amortization - scheduled

    for offset in range(1, remaining + 1):
        if balance <= 0:
            break
        interest = balance * rate
        if params.system == AmortizationSystem.SAC:
            amortization = min(period_size, balance)
        else:
            amortization = min(period_size - interest, balance)
        # The last row absorbs whatever is left
        if offset == remaining or balance - amortization <= drift:
            amortization = balance
        installment = interest + amortization
        balance -= amortization

        schedule.append(
            ScheduleRow(
                month=offset + 1,
                due_date=due_date(params.start_date, offset + 1),
                installment=installment,
                interest_portion=interest,
                amortization_portion=amortization,
                remaining_balance=balance,
            )
        )
        total_interest += interest
        total_paid += installment

    return ReamortizedSchedule(
        schedule=schedule,
        total_paid=total_paid,
        total_interest=total_interest,
        actual_months=len(schedule),
        balance_after_extra=balance_after_extra,
        extra_applied=extra_applied,
    )
