from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from amortization_sim.data_models import AmortizationSystem, ExtraPayment, RatePeriod
from amortization_sim.engine import (
    compute_baseline,
    constant_amortization,
    fixed_installment,
    monthly_rate_from_annual,
    normalize_rate,
    validate_parameters,
)
from amortization_sim.errors import InvalidInputError

from conftest import CENTS, assert_schedule_invariants


class TestRateNormalization:
    def test_annual_rate_uses_compound_conversion(self):
        rate = monthly_rate_from_annual(Decimal("0.095"))
        # (1.095 ** (1/12)) - 1, not 0.095 / 12
        assert rate.quantize(Decimal("0.0000001")) == Decimal("0.0075915")
        assert rate < Decimal("0.095") / 12

    def test_twelve_compounded_months_recover_annual_rate(self):
        rate = monthly_rate_from_annual(Decimal("0.12"))
        assert ((1 + rate) ** 12 - 1).quantize(Decimal("0.000001")) == Decimal("0.120000")

    def test_monthly_rate_passes_through(self):
        assert normalize_rate(Decimal("0.0076"), RatePeriod.MONTHLY) == Decimal("0.0076")

    def test_non_positive_annual_rate_rejected(self):
        with pytest.raises(InvalidInputError):
            monthly_rate_from_annual(Decimal("0"))
        with pytest.raises(InvalidInputError):
            monthly_rate_from_annual(Decimal("-2"))


class TestPeriodFormulas:
    def test_fixed_installment(self):
        """100K at 1% per month over 12 months."""
        pmt = fixed_installment(Decimal("100000"), Decimal("0.01"), 12)
        assert pmt.quantize(CENTS) == Decimal("8884.88")

    def test_constant_amortization(self):
        assert constant_amortization(Decimal("300000"), 360).quantize(CENTS) == Decimal("833.33")

    def test_non_positive_term_rejected(self):
        with pytest.raises(ValueError):
            fixed_installment(Decimal("1000"), Decimal("0.01"), 0)
        with pytest.raises(ValueError):
            constant_amortization(Decimal("1000"), 0)


class TestValidation:
    @pytest.mark.parametrize(
        "changes",
        [
            {"principal": Decimal("0")},
            {"principal": Decimal("-1")},
            {"principal": Decimal("NaN")},
            {"monthly_rate": Decimal("0")},
            {"monthly_rate": Decimal("1")},
            {"monthly_rate": Decimal("-0.01")},
            {"term_months": 0},
            {"term_months": 421},
            {"term_months": 12.0},
            {"term_months": True},
            {"system": "SAC"},
            {"start_date": "2025-01-15"},
        ],
    )
    def test_invalid_loan_rejected(self, sac_params, changes):
        with pytest.raises(InvalidInputError):
            validate_parameters(replace(sac_params, **changes))

    def test_negative_extra_rejected(self, sac_params):
        with pytest.raises(InvalidInputError):
            validate_parameters(sac_params, ExtraPayment(amount=Decimal("-1")))

    def test_unknown_strategy_rejected(self, sac_params):
        with pytest.raises(InvalidInputError):
            validate_parameters(sac_params, ExtraPayment(amount=Decimal("10"), strategy="TERM"))

    def test_baseline_validates_before_computing(self, sac_params):
        with pytest.raises(InvalidInputError):
            compute_baseline(replace(sac_params, term_months=0))

    def test_maximum_term_accepted(self, sac_params):
        baseline = compute_baseline(replace(sac_params, term_months=420))
        assert len(baseline.schedule) == 420


class TestSacBaseline:
    def test_row_count(self, sac_params):
        assert len(compute_baseline(sac_params).schedule) == 360

    def test_first_installment(self, sac_params, monthly_rate):
        baseline = compute_baseline(sac_params)
        first = baseline.schedule[0]
        assert first.amortization_portion.quantize(CENTS) == Decimal("833.33")
        assert first.interest_portion == Decimal("300000") * monthly_rate
        assert baseline.first_installment == first.installment
        # 833.33 amortization + ~2,277.46 interest
        assert abs(baseline.first_installment - Decimal("3110.79")) < Decimal("0.05")

    def test_first_installment_at_flat_monthly_rate(self, sac_params):
        """0.76111...% per month gives the textbook 833.33 + 2,283.33 split."""
        params = replace(sac_params, monthly_rate=Decimal("0.0913333333333333") / 12)
        baseline = compute_baseline(params)
        assert baseline.schedule[0].interest_portion.quantize(CENTS) == Decimal("2283.33")
        assert baseline.first_installment.quantize(CENTS) == Decimal("3116.67")

    def test_installments_non_increasing(self, sac_params):
        schedule = compute_baseline(sac_params).schedule
        for previous, row in zip(schedule, schedule[1:]):
            assert row.installment <= previous.installment

    def test_invariants(self, sac_params):
        assert_schedule_invariants(sac_params.principal, compute_baseline(sac_params).schedule)

    def test_totals(self, sac_params):
        baseline = compute_baseline(sac_params)
        assert baseline.total_interest == sum(r.interest_portion for r in baseline.schedule)
        assert baseline.total_paid == sum(r.installment for r in baseline.schedule)
        assert baseline.total_interest > sac_params.principal
        assert (baseline.total_paid - baseline.total_interest).quantize(CENTS) == Decimal("300000.00")


class TestPriceBaseline:
    def test_installment_constant(self, price_params):
        baseline = compute_baseline(price_params)
        pmt = fixed_installment(price_params.principal, price_params.monthly_rate, 360)
        for row in baseline.schedule:
            assert abs(row.installment - pmt) < CENTS

    def test_amortization_increasing(self, price_params):
        schedule = compute_baseline(price_params).schedule
        for previous, row in zip(schedule[:-1], schedule[1:-1]):
            assert row.amortization_portion > previous.amortization_portion

    def test_invariants(self, price_params):
        assert_schedule_invariants(price_params.principal, compute_baseline(price_params).schedule)

    def test_price_pays_more_interest_than_sac(self, sac_params, price_params):
        assert compute_baseline(price_params).total_interest > compute_baseline(sac_params).total_interest


class TestEdgeCases:
    @pytest.mark.parametrize("system", list(AmortizationSystem))
    def test_single_month_term(self, sac_params, system):
        params = replace(sac_params, term_months=1, system=system)
        baseline = compute_baseline(params)
        assert len(baseline.schedule) == 1
        row = baseline.schedule[0]
        assert row.amortization_portion == params.principal
        assert row.remaining_balance == 0
        assert row.installment == params.principal + params.principal * params.monthly_rate

    def test_due_dates_clamped_to_month_end(self, sac_params):
        params = replace(sac_params, start_date=date(2025, 1, 31), term_months=13)
        schedule = compute_baseline(params).schedule
        assert schedule[0].due_date == date(2025, 2, 28)
        assert schedule[1].due_date == date(2025, 3, 31)
        assert schedule[12].due_date == date(2026, 2, 28)

    def test_identical_inputs_identical_output(self, price_params):
        assert compute_baseline(price_params) == compute_baseline(price_params)
