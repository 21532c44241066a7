"""Canonical test fixtures used across the simulator tests.

Fixture: 300K financed, 9.5% effective annual rate, 360 months, contract
signed on 2025-01-15.
"""

import os
from datetime import date
from decimal import Decimal

import pytest

# The web app builds its scenario store at import time
os.environ.setdefault("SCENARIO_DATABASE_URL", "sqlite://")

from amortization_sim.data_models import AmortizationSystem, LoanParameters
from amortization_sim.engine import monthly_rate_from_annual

CENTS = Decimal("0.01")


@pytest.fixture
def monthly_rate() -> Decimal:
    return monthly_rate_from_annual(Decimal("0.095"))


@pytest.fixture
def sac_params(monthly_rate) -> LoanParameters:
    """300K over 360 months, constant amortization."""
    return LoanParameters(
        principal=Decimal("300000"),
        monthly_rate=monthly_rate,
        term_months=360,
        system=AmortizationSystem.SAC,
        start_date=date(2025, 1, 15),
    )


@pytest.fixture
def price_params(monthly_rate) -> LoanParameters:
    """300K over 360 months, fixed installment."""
    return LoanParameters(
        principal=Decimal("300000"),
        monthly_rate=monthly_rate,
        term_months=360,
        system=AmortizationSystem.PRICE,
        start_date=date(2025, 1, 15),
    )


def assert_schedule_invariants(principal, schedule):
    """Every row decomposes exactly and the balance walks down to zero."""
    previous = principal
    for row in schedule:
        assert row.installment == row.interest_portion + row.amortization_portion
        assert row.remaining_balance == previous - row.amortization_portion
        assert row.remaining_balance <= previous
        assert row.remaining_balance >= 0
        previous = row.remaining_balance
    assert schedule[-1].remaining_balance == 0
    assert [row.month for row in schedule] == list(range(1, len(schedule) + 1))
