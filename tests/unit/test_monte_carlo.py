"""
Unit tests for Monte Carlo pricing.

This module validates:
1. Agreement with Black-Scholes within the reported error
2. Reproducibility under a fixed seed
3. Standard error scaling and interval shape
4. Parameter validation
"""

import numpy as np
import pytest

from valuation_engine.core.black_scholes import price_black_scholes
from valuation_engine.core.monte_carlo import monte_carlo_price, simulate_terminal_values


def test_agrees_with_black_scholes(atm_contract):
    result = monte_carlo_price(atm_contract, simulations=200_000, seed=7)

    assert result.value == pytest.approx(10.4506, rel=0.02)


def test_estimate_within_reported_error(atm_contract):
    reference = price_black_scholes(atm_contract).value
    result = monte_carlo_price(atm_contract, simulations=200_000, seed=11)

    assert abs(result.value - reference) < 4.0 * result.standard_error


def test_put_pricing(atm_contract):
    put = atm_contract.with_changes(option_type="put")
    result = monte_carlo_price(put, simulations=200_000, seed=3)

    assert result.value == pytest.approx(price_black_scholes(put).value, rel=0.02)


def test_same_seed_same_result(atm_contract):
    first = monte_carlo_price(atm_contract, simulations=10_000, seed=123)
    second = monte_carlo_price(atm_contract, simulations=10_000, seed=123)

    assert first == second


def test_default_seed_is_reproducible(atm_contract):
    assert monte_carlo_price(atm_contract, simulations=5_000) == monte_carlo_price(
        atm_contract, simulations=5_000
    )


def test_batching_does_not_change_estimate_much(atm_contract):
    whole = monte_carlo_price(atm_contract, simulations=50_000, seed=5)
    batched = monte_carlo_price(atm_contract, simulations=50_000, seed=5, batch_size=7_000)

    assert batched.simulations == whole.simulations
    assert batched.value == pytest.approx(whole.value, rel=0.05)


def test_standard_error_shrinks_with_paths(atm_contract):
    small = monte_carlo_price(atm_contract, simulations=10_000, seed=1)
    large = monte_carlo_price(atm_contract, simulations=160_000, seed=1)

    # 16x the paths, roughly a quarter of the error
    assert large.standard_error < small.standard_error
    assert large.standard_error == pytest.approx(small.standard_error / 4.0, rel=0.2)


def test_interval_is_symmetric_and_ordered(atm_contract):
    result = monte_carlo_price(atm_contract, simulations=20_000, seed=9)
    lower, upper = result.confidence_interval

    assert lower < result.value < upper
    assert result.value - lower == pytest.approx(upper - result.value)
    assert result.confidence_level == 0.95


def test_terminal_values_have_risk_neutral_mean(atm_contract):
    rng = np.random.default_rng(2)
    terminal = simulate_terminal_values(atm_contract, 400_000, rng)

    assert terminal.shape == (400_000,)
    assert terminal.min() > 0.0
    assert terminal.mean() == pytest.approx(100.0 * np.exp(0.05), rel=0.01)


def test_zero_volatility_is_deterministic(atm_contract):
    contract = atm_contract.with_changes(volatility=0.0)
    result = monte_carlo_price(contract, simulations=1_000, seed=4)

    assert result.value == pytest.approx(100.0 - 100.0 * np.exp(-0.05), abs=1e-9)
    assert result.standard_error == pytest.approx(0.0, abs=1e-6)


@pytest.mark.parametrize("simulations", [0, 1, 10.5, 10_000_001])
def test_invalid_simulation_count_raises(atm_contract, simulations):
    with pytest.raises(ValueError):
        monte_carlo_price(atm_contract, simulations=simulations)


@pytest.mark.parametrize("level", [0.0, 1.0, 1.5])
def test_invalid_confidence_level_raises(atm_contract, level):
    with pytest.raises(ValueError):
        monte_carlo_price(atm_contract, simulations=1_000, confidence_level=level)


def test_invalid_batch_size_raises(atm_contract):
    with pytest.raises(ValueError):
        monte_carlo_price(atm_contract, simulations=1_000, batch_size=0)
