"""
Pricing consistency diagnostics.

This module cross-checks option prices:
- Price bounds validation
- Put-call parity
- Agreement between the closed-form, lattice and simulation models
"""

import math
from typing import Optional

from valuation_engine.core.black_scholes import black_scholes_price
from valuation_engine.core.pricing import price_all_models
from valuation_engine.utils.constants import (
    ARBITRAGE_TOLERANCE,
    DEFAULT_SIMULATIONS,
    DEFAULT_TREE_STEPS,
    MC_DEFAULT_SEED,
    MODEL_AGREEMENT_TOLERANCE,
    PARITY_TOLERANCE,
)
from valuation_engine.utils.types import ConsistencyCheck, OptionContract


def check_price_bounds(
    contract: OptionContract,
    price: float,
    tolerance: float = ARBITRAGE_TOLERANCE,
) -> ConsistencyCheck:
    """
    Validate a price against the no-arbitrage bounds of its contract.

    Checks:
        Call: max(S·e^(-qT) - K·e^(-rT), 0) <= C <= S·e^(-qT)
        Put:  max(K·e^(-rT) - S·e^(-qT), 0) <= P <= K·e^(-rT)
    """
    T = contract.time_to_expiry
    discount_spot = contract.underlying_value * math.exp(-contract.dividend_yield * T)
    discount_strike = contract.strike * math.exp(-contract.risk_free_rate * T)

    if contract.option_type == "call":
        lower = max(discount_spot - discount_strike, 0.0)
        upper = discount_spot
    else:
        lower = max(discount_strike - discount_spot, 0.0)
        upper = discount_strike

    violations = []
    if price < lower - tolerance:
        violations.append(f"Price {price:.4f} below lower bound {lower:.4f}")
    if price > upper + tolerance:
        violations.append(f"Price {price:.4f} above upper bound {upper:.4f}")

    details = {"price": price, "lower_bound": lower, "upper_bound": upper}
    return ConsistencyCheck(is_valid=not violations, violations=violations, details=details)


def check_put_call_parity(
    call_price: float,
    put_price: float,
    contract: OptionContract,
    tolerance: float = PARITY_TOLERANCE,
) -> ConsistencyCheck:
    """
    Validate put-call parity for the contract's inputs.

    Put-call parity:
        C - P = S·e^(-qT) - K·e^(-rT)

    The tolerance is relative to the strike so the check works for
    contracts quoted in millions as well as in units.
    """
    T = contract.time_to_expiry
    lhs = call_price - put_price
    rhs = (
        contract.underlying_value * math.exp(-contract.dividend_yield * T)
        - contract.strike * math.exp(-contract.risk_free_rate * T)
    )

    diff = abs(lhs - rhs)
    is_valid = diff < tolerance * max(contract.strike, 1.0)

    violations = []
    if not is_valid:
        violations.append(
            f"Put-call parity violated: C - P = {lhs:.6f}, "
            f"S·e^(-qT) - K·e^(-rT) = {rhs:.6f}, diff = {diff:.6f}"
        )

    details = {"parity_lhs": lhs, "parity_rhs": rhs, "difference": diff}
    return ConsistencyCheck(is_valid=is_valid, violations=violations, details=details)


def check_model_agreement(
    contract: OptionContract,
    tolerance: float = MODEL_AGREEMENT_TOLERANCE,
    steps: int = DEFAULT_TREE_STEPS,
    simulations: int = DEFAULT_SIMULATIONS,
    seed: Optional[int] = MC_DEFAULT_SEED,
) -> ConsistencyCheck:
    """
    Price a contract with all three models and compare to Black-Scholes.

    Agreement is only expected for near-the-money contracts with moderate
    volatility and enough steps/paths; deep out-of-the-money values are
    tiny and their relative error is not meaningful.

    Returns:
        ConsistencyCheck whose details hold each model's value and its
        relative deviation from the Black-Scholes value
    """
    results = price_all_models(contract, steps=steps, simulations=simulations, seed=seed)
    reference = results["black-scholes"].value

    violations = []
    details = {}
    for model, result in results.items():
        details[model] = result.value
        if model == "black-scholes":
            continue
        deviation = abs(result.value - reference) / reference if reference > 0 else abs(result.value)
        details[f"{model}_deviation"] = deviation
        if deviation > tolerance:
            violations.append(
                f"{model} value {result.value:.6f} deviates {deviation:.2%} "
                f"from black-scholes value {reference:.6f}"
            )

    return ConsistencyCheck(is_valid=not violations, violations=violations, details=details)


def check_contract_parity(contract: OptionContract) -> ConsistencyCheck:
    """Closed-form put-call parity for a contract (sanity check of the pricer)."""
    args = (
        contract.underlying_value,
        contract.strike,
        contract.time_to_expiry,
        contract.risk_free_rate,
        contract.volatility,
        contract.dividend_yield,
    )
    call_price = black_scholes_price(*args, option_type="call")
    put_price = black_scholes_price(*args, option_type="put")
    return check_put_call_parity(call_price, put_price, contract)
