import json
from decimal import Decimal

import click
import pytest
from click.testing import CliRunner

from amortization_sim.data_models import AmortizationSystem, ReductionStrategy
from amortization_sim.main import build_inputs_from_options, cli, parse_amount, parse_percent

LOAN = ["-p", "300k", "-r", "9.5", "-t", "360", "-s", "2025-01-15"]


@pytest.fixture
def runner():
    return CliRunner()


class TestParsing:
    @pytest.mark.parametrize(
        "value, expected",
        [("300000", "300000"), ("300k", "300000"), ("1.2m", "1200000"), ("20,000", "20000")],
    )
    def test_parse_amount(self, value, expected):
        assert parse_amount(value) == Decimal(expected)

    def test_parse_amount_invalid(self):
        with pytest.raises(click.BadParameter):
            parse_amount("lots")

    def test_parse_percent(self):
        assert parse_percent("9.5%") == Decimal("0.095")

    def test_build_inputs(self):
        params, extra = build_inputs_from_options(
            "300k", "0.76", "monthly", 360, "price", "2025-01-15", "20k", "installment"
        )
        assert params.monthly_rate == Decimal("0.0076")
        assert params.system == AmortizationSystem.PRICE
        assert extra.amount == Decimal("20000")
        assert extra.strategy == ReductionStrategy.REDUCE_INSTALLMENT

    def test_zero_extra_means_no_extra(self):
        _, extra = build_inputs_from_options("300k", "9.5", "annual", 360, "sac", None, "0", "term")
        assert extra is None

    def test_annual_rate_converted_to_monthly(self):
        params, _ = build_inputs_from_options("300k", "9.5", "annual", 360, "sac", None, None, "term")
        assert params.monthly_rate < Decimal("0.095") / 12


class TestScheduleCommand:
    def test_prints_summary_and_rows(self, runner):
        result = runner.invoke(cli, ["schedule", *LOAN, "--extra", "20000"])
        assert result.exit_code == 0, result.output
        assert "Term reduction     : 24 months" in result.output
        assert "showing first 120 rows" in result.output

    def test_export_json(self, runner, tmp_path):
        path = tmp_path / "out.json"
        result = runner.invoke(cli, ["schedule", *LOAN, "--system", "price", "--output", str(path)])
        assert result.exit_code == 0, result.output
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["summary"]["system"] == "PRICE"
        assert len(data["schedule"]) == 360

    def test_export_csv(self, runner, tmp_path):
        path = tmp_path / "out.csv"
        result = runner.invoke(
            cli, ["schedule", *LOAN, "-e", "20000", "--strategy", "installment", "--output", str(path)]
        )
        assert result.exit_code == 0, result.output
        assert len(path.read_text(encoding="utf-8").strip().splitlines()) == 361

    def test_unsupported_output(self, runner, tmp_path):
        result = runner.invoke(cli, ["schedule", *LOAN, "--output", str(tmp_path / "out.xlsx")])
        assert result.exit_code == 2

    def test_invalid_term_reported(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "300k", "-r", "9.5", "-t", "0"])
        assert result.exit_code == 1
        assert "Term must be between 1 and 420 months" in result.output

    def test_zero_rate_is_usage_error(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "300k", "-r", "0", "-t", "360"])
        assert result.exit_code == 2


class TestSummaryCommand:
    def test_prints_narrative(self, runner):
        result = runner.invoke(cli, ["summary", *LOAN, "-e", "20000", "--strategy", "installment"])
        assert result.exit_code == 0, result.output
        assert "lowers your next installment" in result.output

    def test_export(self, runner, tmp_path):
        path = tmp_path / "summary.json"
        result = runner.invoke(cli, ["summary", *LOAN, "--output", str(path)])
        assert result.exit_code == 0, result.output
        assert json.loads(path.read_text(encoding="utf-8"))["summary"]["actual_months"] == 360

    def test_export_requires_json(self, runner, tmp_path):
        result = runner.invoke(cli, ["summary", *LOAN, "--output", str(tmp_path / "summary.csv")])
        assert result.exit_code == 2


class TestCompareCommand:
    def test_compares_both_strategies(self, runner):
        result = runner.invoke(cli, ["-v", "compare", *LOAN, "--extra", "20000"])
        assert result.exit_code == 0, result.output
        assert "ReduceTerm" in result.output
        assert "ReduceInst" in result.output

    def test_requires_positive_extra(self, runner):
        result = runner.invoke(cli, ["compare", *LOAN, "--extra", "0"])
        assert result.exit_code == 2
