"""
Unit tests for model selection and pricing consistency diagnostics.

This module validates:
1. price_option dispatches to each model
2. No-arbitrage price bounds
3. Put-call parity checks
4. Cross-model agreement
"""

import pytest

from valuation_engine.core.pricing import price_all_models, price_option
from valuation_engine.diagnostics.consistency import (
    check_contract_parity,
    check_model_agreement,
    check_price_bounds,
    check_put_call_parity,
)


# ===========================
# Model Selection Tests
# ===========================


@pytest.mark.parametrize("model", ["black-scholes", "binomial", "monte-carlo"])
def test_price_option_uses_selected_model(atm_contract, model):
    result = price_option(atm_contract, model, steps=200, simulations=50_000, seed=1)

    assert result.model == model
    assert result.value == pytest.approx(10.4506, rel=0.03)


def test_monte_carlo_only_fields(atm_contract):
    result = price_option(atm_contract, "monte-carlo", simulations=10_000, seed=1)

    assert result.standard_error is not None
    assert result.simulations == 10_000
    assert result.steps is None


def test_unknown_model_raises(atm_contract):
    with pytest.raises(ValueError, match="model must be one of"):
        price_option(atm_contract, "trinomial")


def test_price_all_models_keys(atm_contract):
    results = price_all_models(atm_contract, steps=100, simulations=20_000, seed=2)

    assert set(results) == {"black-scholes", "binomial", "monte-carlo"}


def test_pricing_is_pure(strategic_contract):
    first = price_all_models(strategic_contract, steps=100, simulations=20_000, seed=3)
    second = price_all_models(strategic_contract, steps=100, simulations=20_000, seed=3)

    assert first == second


# ===========================
# Price Bounds Tests
# ===========================


def test_price_bounds_valid(atm_contract):
    check = check_price_bounds(atm_contract, 10.45)

    assert check.is_valid
    assert check.violations == []


def test_price_below_lower_bound(atm_contract):
    # Lower bound for S=120: 120 - 100·e^(-0.05) ≈ 24.88
    contract = atm_contract.with_changes(underlying_value=120.0)
    check = check_price_bounds(contract, 20.0)

    assert not check.is_valid
    assert "below lower bound" in check.violations[0]


def test_put_price_above_upper_bound(atm_contract):
    put = atm_contract.with_changes(option_type="put")
    check = check_price_bounds(put, 99.0)

    assert not check.is_valid
    assert "above upper bound" in check.violations[0]
    assert check.details["upper_bound"] == pytest.approx(95.1229, abs=1e-4)


# ===========================
# Parity Tests
# ===========================


def test_put_call_parity_holds(atm_contract):
    check = check_put_call_parity(10.4506, 5.5735, atm_contract, tolerance=1e-4)
    assert check.is_valid


def test_put_call_parity_violation(atm_contract):
    check = check_put_call_parity(12.0, 5.0, atm_contract)

    assert not check.is_valid
    assert check.details["difference"] > 0.0
    assert "Put-call parity violated" in check.violations[0]


def test_contract_parity_at_strategic_scale(strategic_contract):
    assert check_contract_parity(strategic_contract).is_valid


# ===========================
# Model Agreement Tests
# ===========================


def test_models_agree_near_the_money(atm_contract):
    check = check_model_agreement(atm_contract, steps=500, simulations=200_000, seed=42)

    assert check.is_valid, check.violations
    assert check.details["binomial_deviation"] < 0.02
    assert check.details["monte-carlo_deviation"] < 0.02


def test_model_disagreement_reported(atm_contract):
    check = check_model_agreement(atm_contract, tolerance=1e-6, steps=5, simulations=1_000, seed=1)

    assert not check.is_valid
    assert any("binomial" in v for v in check.violations)
