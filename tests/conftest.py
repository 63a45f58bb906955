"""
Pytest configuration and shared fixtures.
"""

import pytest

from valuation_engine.capital.wacc import CapitalStructureInputs
from valuation_engine.portfolio.optimizer import StrategicOption
from valuation_engine.scenarios.projection import ScenarioAssumptions, build_scenario_set
from valuation_engine.utils.types import OptionContract


@pytest.fixture
def standard_params():
    """Standard at-the-money option parameters."""
    return {
        "S": 100.0,
        "K": 100.0,
        "T": 1.0,
        "r": 0.05,
        "sigma": 0.20,
        "q": 0.0,
    }


@pytest.fixture
def with_dividend_params():
    """Parameters with non-zero dividend yield."""
    return {
        "S": 100.0,
        "K": 100.0,
        "T": 1.0,
        "r": 0.05,
        "sigma": 0.20,
        "q": 0.02,
    }


@pytest.fixture
def atm_contract():
    """At-the-money call, Black-Scholes value ≈ 10.4506."""
    return OptionContract(
        underlying_value=100.0,
        strike=100.0,
        time_to_expiry=1.0,
        risk_free_rate=0.05,
        volatility=0.20,
    )


@pytest.fixture
def strategic_contract():
    """Expansion opportunity worth 120M for a 100M investment."""
    return OptionContract(
        underlying_value=120_000_000.0,
        strike=100_000_000.0,
        time_to_expiry=1.0,
        risk_free_rate=0.05,
        volatility=0.25,
    )


@pytest.fixture
def base_assumptions():
    return ScenarioAssumptions(growth_rate=0.15)


@pytest.fixture
def optimistic_assumptions():
    return ScenarioAssumptions(growth_rate=0.25, market_multiplier=1.1, ebitda_margin=0.30)


@pytest.fixture
def conservative_assumptions():
    return ScenarioAssumptions(growth_rate=0.05, risk_discount=0.2, cost_inflation=0.02, ebitda_margin=0.20)


@pytest.fixture
def scenario_set(base_assumptions, optimistic_assumptions, conservative_assumptions):
    """Base/optimistic/conservative scenarios from 10M revenue, weighted 50/25/25."""
    return build_scenario_set(
        10_000_000.0,
        base_assumptions,
        optimistic_assumptions,
        conservative_assumptions,
    )


@pytest.fixture
def capital_inputs():
    """
    Firm with 40% debt at market value, rated AAA.

    WACC = 0.06·0.75·0.4 + 0.12·0.6 = 0.09
    """
    return CapitalStructureInputs(
        total_debt=40_000_000.0,
        total_equity=60_000_000.0,
        market_value_debt=40_000_000.0,
        market_value_equity=60_000_000.0,
        cost_of_debt=0.06,
        cost_of_equity=0.12,
        tax_rate=0.25,
        ebit=20_000_000.0,
        interest_expense=2_400_000.0,
        total_assets=120_000_000.0,
        total_liabilities=50_000_000.0,
        operating_cash_flow=15_000_000.0,
        total_debt_service=6_000_000.0,
        cash_and_equivalents=5_000_000.0,
    )


@pytest.fixture
def strategic_options():
    return [
        StrategicOption("exp", "Regional expansion", "expansion", 5_000_000.0, 6_500_000.0, 2.0, 0.30),
        StrategicOption("acq", "Competitor acquisition", "acquisition", 12_000_000.0, 13_000_000.0, 1.5, 0.40),
        StrategicOption("plat", "Platform launch", "platform", 3_000_000.0, 4_500_000.0, 3.0, 0.50, timing_score=80),
    ]
