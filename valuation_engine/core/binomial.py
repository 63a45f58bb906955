"""
Cox-Ross-Rubinstein binomial lattice.

The lattice discretizes time to expiry into `steps` periods with
up/down factors u = e^(σ√dt), d = 1/u and risk-neutral probability
p = (e^((r-q)dt) - d) / (u - d). Option values are backward-induced
from terminal payoffs. American exercise compares each node's
continuation value with its immediate exercise value.

More steps increase accuracy (the European price converges to
Black-Scholes at rate O(1/steps)) and cost O(steps²).
"""

import logging
import math

import numpy as np

from valuation_engine.core.black_scholes import intrinsic_value
from valuation_engine.utils.constants import DEFAULT_TREE_STEPS, EPSILON_VOL, MAX_TREE_STEPS
from valuation_engine.utils.types import ExerciseStyle, OptionContract, PricingResult

logger = logging.getLogger(__name__)


def _payoff(prices: np.ndarray, strike: float, option_type: str) -> np.ndarray:
    if option_type == "call":
        return np.maximum(prices - strike, 0.0)
    return np.maximum(strike - prices, 0.0)


def binomial_price(
    contract: OptionContract,
    steps: int = DEFAULT_TREE_STEPS,
    exercise: ExerciseStyle = "european",
) -> float:
    """
    Price an option on a recombining binomial lattice.

    Args:
        contract: Validated option contract
        steps: Number of time steps in the lattice (>= 1)
        exercise: "european" or "american"

    Returns:
        Option value at the root of the tree

    Raises:
        ValueError: If steps is out of range, exercise style is unknown,
                    or the lattice admits arbitrage (p outside [0, 1])
    """
    if not isinstance(steps, int) or steps < 1:
        raise ValueError(f"Tree steps must be a positive integer, got steps={steps}")
    if steps > MAX_TREE_STEPS:
        raise ValueError(f"Tree steps must not exceed {MAX_TREE_STEPS}, got steps={steps}")
    if exercise not in ("european", "american"):
        raise ValueError(f"Exercise must be 'european' or 'american', got '{exercise}'")

    S = contract.underlying_value
    K = contract.strike
    T = contract.time_to_expiry
    r = contract.risk_free_rate
    q = contract.dividend_yield
    sigma = max(contract.volatility, EPSILON_VOL)

    dt = T / steps
    u = math.exp(sigma * math.sqrt(dt))
    d = 1.0 / u
    growth = math.exp((r - q) * dt)
    p = (growth - d) / (u - d)

    if not 0.0 <= p <= 1.0:
        raise ValueError(
            f"Risk-neutral probability {p:.4f} outside [0, 1]; "
            f"increase steps (got {steps}) or volatility (got {contract.volatility})"
        )

    discount = math.exp(-r * dt)

    # Terminal node j has j down moves
    down_moves = np.arange(steps + 1)
    prices = S * u ** (steps - down_moves) * d ** down_moves
    values = _payoff(prices, K, contract.option_type)

    for step in range(steps - 1, -1, -1):
        values = discount * (p * values[:-1] + (1.0 - p) * values[1:])

        if exercise == "american":
            down_moves = np.arange(step + 1)
            node_prices = S * u ** (step - down_moves) * d ** down_moves
            values = np.maximum(values, _payoff(node_prices, K, contract.option_type))

    return float(values[0])


def price_binomial(
    contract: OptionContract,
    steps: int = DEFAULT_TREE_STEPS,
    exercise: ExerciseStyle = "european",
) -> PricingResult:
    """Price a contract on the lattice and wrap the value in a PricingResult."""
    value = max(binomial_price(contract, steps, exercise), 0.0)
    intrinsic = intrinsic_value(contract.underlying_value, contract.strike, contract.option_type)

    logger.debug("Binomial %s %s with %d steps: %.6f", exercise, contract.option_type, steps, value)

    return PricingResult(
        value=value,
        model="binomial",
        intrinsic_value=intrinsic,
        time_value=value - intrinsic,
        steps=steps,
    )
