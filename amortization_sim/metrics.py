"""Summary figures comparing a baseline schedule with the re-amortized one."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from .data_models import (
    AmortizationSystem,
    BaselineSchedule,
    ExtraPayment,
    ReamortizedSchedule,
    ReductionStrategy,
    SimulationMetrics,
)
from .engine import fixed_installment


def _reference_installment(baseline: BaselineSchedule) -> Decimal:
    """Installment the borrower would have paid in month 2 without the extra payment."""
    params = baseline.params
    if params.system == AmortizationSystem.PRICE:
        return fixed_installment(params.principal, params.monthly_rate, params.term_months)
    if len(baseline.schedule) > 1:
        return baseline.schedule[1].installment
    return baseline.schedule[0].installment


def summarize(
    baseline: BaselineSchedule,
    post_extra: ReamortizedSchedule,
    extra: Optional[ExtraPayment] = None,
) -> SimulationMetrics:
    """Diff the baseline and post-extra-payment trajectories.

    ``installment_reduction`` is only meaningful when the savings went into
    smaller installments; it is zero for ``REDUCE_TERM`` and when no extra
    payment was made. A loan settled in month 1 eliminates its whole
    reference installment.
    """
    if post_extra.actual_months > 1:
        projected = post_extra.schedule[1].installment
    else:
        projected = post_extra.schedule[0].installment

    installment_reduction = Decimal("0")
    if (
        extra is not None
        and extra.amount > 0
        and extra.strategy == ReductionStrategy.REDUCE_INSTALLMENT
    ):
        reference = _reference_installment(baseline)
        if post_extra.actual_months > 1:
            installment_reduction = reference - projected
        else:
            installment_reduction = reference

    return SimulationMetrics(
        interest_saved=baseline.total_interest - post_extra.total_interest,
        months_eliminated=baseline.params.term_months - post_extra.actual_months,
        installment_reduction=installment_reduction,
        projected_installment_after_extra=projected,
    )
