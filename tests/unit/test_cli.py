"""
Unit tests for the command-line interface.
"""

import pytest
from click.testing import CliRunner

from interfaces.cli import cli, parse_flows


CONTRACT = ["-S", "100", "-K", "100", "-T", "1", "-r", "0.05"]

CAPITAL = [
    "--debt", "40000000",
    "--equity", "60000000",
    "--cost-of-debt", "0.06",
    "--cost-of-equity", "0.12",
    "--tax-rate", "0.25",
    "--ebit", "20000000",
    "--interest", "2400000",
    "--assets", "120000000",
    "--liabilities", "50000000",
    "--operating-cash-flow", "15000000",
    "--debt-service", "6000000",
    "--cash", "5000000",
]


@pytest.fixture
def runner():
    return CliRunner()


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "1.0.0" in result.output


def test_price_black_scholes(runner):
    result = runner.invoke(cli, ["price", *CONTRACT, "-v", "0.2"])

    assert result.exit_code == 0, result.output
    assert "Call Option Value (black-scholes): 10.4506" in result.output
    assert "Intrinsic Value: 0.0000" in result.output


def test_price_monte_carlo_reports_error(runner):
    result = runner.invoke(cli, ["price", *CONTRACT, "-v", "0.2", "-m", "monte-carlo", "--sims", "20000"])

    assert result.exit_code == 0, result.output
    assert "Standard Error:" in result.output
    assert "95% Interval:" in result.output


def test_price_american_put(runner):
    result = runner.invoke(
        cli, ["price", *CONTRACT, "-v", "0.2", "-t", "put", "-m", "binomial", "--exercise", "american"]
    )

    assert result.exit_code == 0, result.output
    assert "Put Option Value (binomial)" in result.output


def test_price_invalid_contract(runner):
    result = runner.invoke(cli, ["price", "-S", "100", "-K", "0", "-T", "1", "-r", "0.05", "-v", "0.2"])

    assert result.exit_code == 1
    assert "Strike must be positive" in result.output


def test_price_missing_option(runner):
    result = runner.invoke(cli, ["price", *CONTRACT])

    assert result.exit_code == 2


def test_greeks(runner):
    result = runner.invoke(cli, ["greeks", *CONTRACT, "-v", "0.2"])

    assert result.exit_code == 0, result.output
    assert "Delta:    0.636831" in result.output
    assert "(per day)" in result.output


def test_implied_volatility(runner):
    result = runner.invoke(cli, ["iv", "-p", "10.4506", *CONTRACT])

    assert result.exit_code == 0, result.output
    assert "Implied Volatility: 0.2000" in result.output


def test_implied_volatility_arbitrage_violation(runner):
    result = runner.invoke(cli, ["iv", "-p", "150", *CONTRACT])

    assert result.exit_code == 1
    assert "Arbitrage violation" in result.output


def test_irr(runner):
    result = runner.invoke(cli, ["irr", "--flows=-100,40,40,40", "--rate", "0.05"])

    assert result.exit_code == 0, result.output
    assert "IRR: 0.09" in result.output
    assert "NPV @ 5.00%:" in result.output
    assert "Payback: 2.50 periods" in result.output


def test_irr_bad_flows(runner):
    result = runner.invoke(cli, ["irr", "--flows=-100,abc"])

    assert result.exit_code == 2


def test_irr_without_sign_change(runner):
    result = runner.invoke(cli, ["irr", "--flows=100,40"])

    assert result.exit_code == 1


def test_parse_flows():
    assert parse_flows("-100, 50,60,") == [-100.0, 50.0, 60.0]


def test_project(runner):
    result = runner.invoke(cli, ["project", "--revenue", "10000000", "--growth", "0.15"])

    assert result.exit_code == 0, result.output
    assert "17,490,06" in result.output
    assert "valuation" in result.output


def test_project_invalid_horizon(runner):
    result = runner.invoke(cli, ["project", "--revenue", "100", "--growth", "0.1", "--horizon", "0"])

    assert result.exit_code == 1


def test_wacc_from_weight(runner):
    result = runner.invoke(
        cli,
        ["wacc", "--cost-of-debt", "0.06", "--cost-of-equity", "0.12", "--tax-rate", "0.25", "--debt-weight", "0.4"],
    )

    assert result.exit_code == 0, result.output
    assert "WACC:          0.0900" in result.output


def test_wacc_from_debt_to_equity(runner):
    result = runner.invoke(
        cli,
        ["wacc", "--cost-of-debt", "0.06", "--cost-of-equity", "0.12", "--tax-rate", "0.25", "--debt-to-equity", "1"],
    )

    assert result.exit_code == 0, result.output
    assert "Debt Weight:   0.5000" in result.output


def test_wacc_needs_exactly_one_weight(runner):
    result = runner.invoke(cli, ["wacc", "--cost-of-debt", "0.06", "--cost-of-equity", "0.12", "--tax-rate", "0.25"])

    assert result.exit_code == 2


def test_wacc_invalid_weight(runner):
    result = runner.invoke(
        cli,
        ["wacc", "--cost-of-debt", "0.06", "--cost-of-equity", "0.12", "--tax-rate", "0.25", "--debt-weight", "1.5"],
    )

    assert result.exit_code == 1


def test_optimize_capital(runner):
    result = runner.invoke(cli, ["optimize-capital", *CAPITAL])

    assert result.exit_code == 0, result.output
    assert "Current:   debt weight 0.40, WACC 0.0900, rating AAA" in result.output
    assert "Optimized: debt weight 0.50, WACC 0.0894, rating AA" in result.output
    assert "WACC change: -0.06 pts" in result.output


def test_optimize_capital_for_coverage(runner):
    result = runner.invoke(cli, ["optimize-capital", *CAPITAL, "--goal", "coverage"])

    assert result.exit_code == 0, result.output
    assert "Optimized: debt weight 0.00" in result.output


def test_optimize_capital_invalid_tax(runner):
    args = [a if a != "0.25" else "1.2" for a in CAPITAL]
    result = runner.invoke(cli, ["optimize-capital", *args])

    assert result.exit_code == 1
    assert "tax_rate" in result.output
