"""
Command-line interface for the valuation engine.

This CLI provides access to:
- Option pricing (Black-Scholes, binomial, Monte Carlo)
- Greeks calculation
- Implied volatility solving
- IRR, NPV and payback
- Scenario projections
- WACC and capital structure optimization
"""

import logging

import click
import pandas as pd

from valuation_engine.capital.optimizer import optimize_capital_structure
from valuation_engine.capital.wacc import (
    CapitalStructureInputs,
    calculate_wacc,
    weights_from_ratio,
)
from valuation_engine.core.black_scholes import calculate_greeks
from valuation_engine.core.pricing import price_option
from valuation_engine.scenarios.projection import ScenarioAssumptions, project
from valuation_engine.solvers.implied_vol import implied_volatility
from valuation_engine.solvers.irr import irr, npv, payback_period
from valuation_engine.utils.constants import (
    DEFAULT_CASH_CONVERSION,
    DEFAULT_EBITDA_MARGIN,
    DEFAULT_HORIZON,
    DEFAULT_SIMULATIONS,
    DEFAULT_TREE_STEPS,
    DEFAULT_VALUATION_MULTIPLE,
    IV_INITIAL_GUESS,
    MC_DEFAULT_SEED,
)
from valuation_engine.utils.types import PRICING_MODELS, OptionContract


def contract_options(with_vol=True):
    """Shared options describing an option contract."""
    def decorator(f):
        options = [
            click.option("--underlying", "-S", type=float, required=True, help="Underlying value"),
            click.option("--strike", "-K", type=float, required=True, help="Strike / investment required"),
            click.option("--time", "-T", type=float, required=True, help="Time to expiry (years)"),
            click.option("--rate", "-r", type=float, required=True, help="Risk-free rate"),
        ]
        if with_vol:
            options.append(click.option("--vol", "-v", type=float, required=True, help="Volatility (annualized)"))
        options += [
            click.option("--div", "-q", type=float, default=0.0, help="Dividend yield"),
            click.option("--type", "-t", "option_type", type=click.Choice(["call", "put"]), default="call"),
        ]
        for option in reversed(options):
            f = option(f)
        return f
    return decorator


def parse_flows(value):
    try:
        return [float(item) for item in value.split(",") if item.strip()]
    except ValueError:
        raise click.BadParameter(f"expected comma-separated numbers, got '{value}'")


@click.group()
@click.version_option(version="1.0.0")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Valuation Engine - option pricing, projections and capital structure."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@cli.command()
@contract_options()
@click.option("--model", "-m", type=click.Choice(PRICING_MODELS), default="black-scholes")
@click.option("--steps", type=int, default=DEFAULT_TREE_STEPS, help="Binomial steps")
@click.option("--sims", type=int, default=DEFAULT_SIMULATIONS, help="Monte Carlo paths")
@click.option("--seed", type=int, default=MC_DEFAULT_SEED, help="Monte Carlo seed")
@click.option("--exercise", type=click.Choice(["european", "american"]), default="european")
def price(underlying, strike, time, rate, vol, div, option_type, model, steps, sims, seed, exercise):
    """Calculate an option value with the selected model."""
    try:
        contract = OptionContract(underlying, strike, time, rate, vol, option_type, div)
        result = price_option(
            contract, model, steps=steps, simulations=sims, seed=seed, exercise=exercise
        )
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"\n{option_type.capitalize()} Option Value ({model}): {result.value:.4f}")
    click.echo(f"Intrinsic Value: {result.intrinsic_value:.4f}")
    click.echo(f"Time Value:      {result.time_value:.4f}")
    if result.standard_error is not None:
        lower, upper = result.confidence_interval
        click.echo(f"Standard Error:  {result.standard_error:.4f}")
        click.echo(f"{result.confidence_level:.0%} Interval:    [{lower:.4f}, {upper:.4f}]")


@cli.command()
@contract_options()
def greeks(underlying, strike, time, rate, vol, div, option_type):
    """Calculate all option Greeks."""
    try:
        OptionContract(underlying, strike, time, rate, vol, option_type, div)
        greeks_values = calculate_greeks(underlying, strike, time, rate, vol, div, option_type)
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"\nGreeks for {option_type.capitalize()} Option:")
    click.echo(f"  Delta:  {greeks_values.delta:>10.6f}")
    click.echo(f"  Gamma:  {greeks_values.gamma:>10.6f}")
    click.echo(f"  Vega:   {greeks_values.vega:>10.6f}")
    click.echo(f"  Theta:  {greeks_values.theta:>10.6f} (per day)")
    click.echo(f"  Rho:    {greeks_values.rho:>10.6f}")


@cli.command()
@click.option("--market-price", "-p", type=float, required=True, help="Market price")
@contract_options(with_vol=False)
@click.option("--method", type=click.Choice(["auto", "newton", "brent"]), default="auto")
def iv(market_price, underlying, strike, time, rate, div, option_type, method):
    """Solve for implied volatility."""
    try:
        contract = OptionContract(underlying, strike, time, rate, IV_INITIAL_GUESS, option_type, div)
        result = implied_volatility(market_price, contract, method=method)
    except ValueError as e:
        raise click.ClickException(str(e))

    if not result.success:
        raise click.ClickException(f"Solver failed: {result.message}")

    click.echo(f"\nImplied Volatility: {result.volatility:.4f} ({result.volatility*100:.2f}%)")
    click.echo(f"Method: {result.method}")
    click.echo(f"Iterations: {result.iterations}")


@cli.command("irr")
@click.option("--flows", "-f", required=True, help="Comma-separated cash flows, e.g. -1000,300,400,500")
@click.option("--rate", "-r", type=float, default=None, help="Discount rate for NPV")
def irr_command(flows, rate):
    """Solve for the internal rate of return of a cash-flow series."""
    cash_flows = parse_flows(flows)
    try:
        result = irr(cash_flows)
        net_value = npv(rate, cash_flows) if rate is not None else None
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"\nIRR: {result.rate:.6f} ({result.rate*100:.2f}%)")
    click.echo(f"Iterations: {result.iterations}")
    if not result.converged:
        click.echo(f"Warning: {result.message}", err=True)
    if net_value is not None:
        click.echo(f"NPV @ {rate:.2%}: {net_value:.2f}")
    payback = payback_period(cash_flows)
    click.echo(f"Payback: {payback:.2f} periods" if payback is not None else "Payback: never")


@cli.command("project")
@click.option("--revenue", type=float, required=True, help="First-year revenue")
@click.option("--growth", type=float, required=True, help="Annual growth rate")
@click.option("--horizon", type=int, default=DEFAULT_HORIZON, help="Years to project")
@click.option("--market-multiplier", type=float, default=1.0)
@click.option("--risk-discount", type=float, default=0.0)
@click.option("--cost-inflation", type=float, default=0.0)
@click.option("--capital-efficiency", type=float, default=1.0)
@click.option("--margin", type=float, default=DEFAULT_EBITDA_MARGIN, help="EBITDA margin")
@click.option("--cash-conversion", type=float, default=DEFAULT_CASH_CONVERSION)
@click.option("--multiple", type=float, default=DEFAULT_VALUATION_MULTIPLE, help="Revenue valuation multiple")
def project_command(
    revenue,
    growth,
    horizon,
    market_multiplier,
    risk_discount,
    cost_inflation,
    capital_efficiency,
    margin,
    cash_conversion,
    multiple,
):
    """Project revenue, EBITDA, cash flow and valuation."""
    try:
        assumptions = ScenarioAssumptions(
            growth_rate=growth,
            market_multiplier=market_multiplier,
            risk_discount=risk_discount,
            cost_inflation=cost_inflation,
            capital_efficiency=capital_efficiency,
            ebitda_margin=margin,
            cash_conversion=cash_conversion,
            valuation_multiple=multiple,
        )
        projections = project(revenue, assumptions, horizon)
    except ValueError as e:
        raise click.ClickException(str(e))

    table = pd.DataFrame(
        [
            {
                "year": p.year,
                "revenue": p.revenue,
                "ebitda": p.ebitda,
                "cash_flow": p.cash_flow,
                "valuation": p.valuation,
            }
            for p in projections
        ]
    ).set_index("year")
    click.echo(table.to_string(float_format=lambda x: f"{x:,.0f}"))


@cli.command()
@click.option("--cost-of-debt", type=float, required=True)
@click.option("--cost-of-equity", type=float, required=True)
@click.option("--tax-rate", type=float, required=True)
@click.option("--debt-weight", type=float, default=None, help="Debt share of capital")
@click.option("--debt-to-equity", type=float, default=None, help="Alternative to --debt-weight")
def wacc(cost_of_debt, cost_of_equity, tax_rate, debt_weight, debt_to_equity):
    """Calculate the weighted average cost of capital."""
    if (debt_weight is None) == (debt_to_equity is None):
        raise click.UsageError("Give exactly one of --debt-weight or --debt-to-equity")
    try:
        if debt_to_equity is not None:
            debt_weight, equity_weight = weights_from_ratio(debt_to_equity)
        else:
            equity_weight = 1.0 - debt_weight
        value = calculate_wacc(cost_of_debt, cost_of_equity, tax_rate, debt_weight, equity_weight)
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"\nDebt Weight:   {debt_weight:.4f}")
    click.echo(f"Equity Weight: {equity_weight:.4f}")
    click.echo(f"WACC:          {value:.4f} ({value*100:.2f}%)")


@cli.command("optimize-capital")
@click.option("--debt", type=float, required=True, help="Total (book) debt")
@click.option("--equity", type=float, required=True, help="Total (book) equity")
@click.option("--market-debt", type=float, default=None, help="Market value of debt (default: book)")
@click.option("--market-equity", type=float, default=None, help="Market value of equity (default: book)")
@click.option("--cost-of-debt", type=float, required=True)
@click.option("--cost-of-equity", type=float, required=True)
@click.option("--tax-rate", type=float, required=True)
@click.option("--ebit", type=float, required=True)
@click.option("--interest", type=float, required=True, help="Interest expense")
@click.option("--assets", type=float, required=True, help="Total assets")
@click.option("--liabilities", type=float, required=True, help="Total liabilities")
@click.option("--operating-cash-flow", type=float, required=True)
@click.option("--debt-service", type=float, required=True, help="Total debt service")
@click.option("--cash", type=float, default=0.0, help="Cash and equivalents")
@click.option("--goal", type=click.Choice(["wacc", "coverage", "rating"]), default="wacc")
def optimize_capital(
    debt,
    equity,
    market_debt,
    market_equity,
    cost_of_debt,
    cost_of_equity,
    tax_rate,
    ebit,
    interest,
    assets,
    liabilities,
    operating_cash_flow,
    debt_service,
    cash,
    goal,
):
    """Scan debt ratios and pick the best capital structure for a goal."""
    try:
        inputs = CapitalStructureInputs(
            total_debt=debt,
            total_equity=equity,
            market_value_debt=debt if market_debt is None else market_debt,
            market_value_equity=equity if market_equity is None else market_equity,
            cost_of_debt=cost_of_debt,
            cost_of_equity=cost_of_equity,
            tax_rate=tax_rate,
            ebit=ebit,
            interest_expense=interest,
            total_assets=assets,
            total_liabilities=liabilities,
            operating_cash_flow=operating_cash_flow,
            total_debt_service=debt_service,
            cash_and_equivalents=cash,
        )
        result = optimize_capital_structure(inputs, goal)
    except ValueError as e:
        raise click.ClickException(str(e))

    table = pd.DataFrame(
        [
            {
                "debt_weight": s.debt_weight,
                "wacc": s.wacc,
                "dscr": s.debt_service_coverage,
                "rating": s.credit_rating,
            }
            for s in result.candidates
        ]
    )
    click.echo(table.to_string(index=False))
    click.echo(
        f"\nCurrent:   debt weight {result.current.debt_weight:.2f}, "
        f"WACC {result.current.wacc:.4f}, rating {result.current.credit_rating}"
    )
    click.echo(
        f"Optimized: debt weight {result.optimized.debt_weight:.2f}, "
        f"WACC {result.optimized.wacc:.4f}, rating {result.optimized.credit_rating}"
    )
    click.echo(f"WACC change: {result.wacc_delta*100:+.2f} pts")


if __name__ == "__main__":
    cli()
