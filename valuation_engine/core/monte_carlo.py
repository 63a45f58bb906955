"""
Monte Carlo option pricing under geometric Brownian motion.

Terminal asset values are drawn in closed form,
    S_T = S · exp((r - q - σ²/2)T + σ√T·Z),  Z ~ N(0, 1),
so a single step per path is exact for European payoffs. Paths are
simulated in bounded batches and only the running sum and sum of squares
of the discounted payoffs are kept, so memory does not grow with the
simulation count.

Standard error shrinks as 1/√n; the confidence interval is
estimate ± z·SE.
"""

import logging
import math
from typing import Optional

import numpy as np

from valuation_engine.core.black_scholes import intrinsic_value
from valuation_engine.core.distributions import z_score
from valuation_engine.utils.constants import (
    DEFAULT_CONFIDENCE_LEVEL,
    DEFAULT_SIMULATIONS,
    MAX_SIMULATIONS,
    MC_BATCH_SIZE,
    MC_DEFAULT_SEED,
    MIN_SIMULATIONS,
)
from valuation_engine.utils.types import OptionContract, PricingResult

logger = logging.getLogger(__name__)


def _validate_simulations(simulations: int) -> None:
    if not isinstance(simulations, int) or simulations < MIN_SIMULATIONS:
        raise ValueError(
            f"Simulation count must be an integer >= {MIN_SIMULATIONS}, got simulations={simulations}"
        )
    if simulations > MAX_SIMULATIONS:
        raise ValueError(
            f"Simulation count must not exceed {MAX_SIMULATIONS}, got simulations={simulations}"
        )


def simulate_terminal_values(
    contract: OptionContract,
    simulations: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Draw terminal values of the underlying under the risk-neutral measure.

    Args:
        contract: Validated option contract
        simulations: Number of independent paths
        rng: Numpy random generator

    Returns:
        Array of shape (simulations,) with simulated S_T
    """
    T = contract.time_to_expiry
    sigma = contract.volatility
    drift = (contract.risk_free_rate - contract.dividend_yield - 0.5 * sigma * sigma) * T
    diffusion = sigma * math.sqrt(T)

    shocks = rng.standard_normal(simulations)
    return contract.underlying_value * np.exp(drift + diffusion * shocks)


def monte_carlo_price(
    contract: OptionContract,
    simulations: int = DEFAULT_SIMULATIONS,
    seed: Optional[int] = MC_DEFAULT_SEED,
    confidence_level: float = DEFAULT_CONFIDENCE_LEVEL,
    batch_size: int = MC_BATCH_SIZE,
) -> PricingResult:
    """
    Estimate the option value by simulating terminal asset values.

    Args:
        contract: Validated option contract
        simulations: Number of simulated paths
        seed: Seed for numpy's default_rng; identical seeds reproduce
              identical results. None draws fresh OS entropy.
        confidence_level: Level of the reported confidence interval
        batch_size: Maximum number of paths drawn at once

    Returns:
        PricingResult with value, standard error and confidence interval

    Raises:
        ValueError: If simulations, batch_size or confidence_level is invalid
    """
    _validate_simulations(simulations)
    if batch_size < 1:
        raise ValueError(f"Batch size must be positive, got batch_size={batch_size}")
    z = z_score(confidence_level)

    rng = np.random.default_rng(seed)
    discount = math.exp(-contract.risk_free_rate * contract.time_to_expiry)

    payoff_sum = 0.0
    payoff_sum_sq = 0.0
    remaining = simulations

    while remaining > 0:
        batch = min(batch_size, remaining)
        terminal = simulate_terminal_values(contract, batch, rng)

        if contract.option_type == "call":
            payoffs = np.maximum(terminal - contract.strike, 0.0)
        else:
            payoffs = np.maximum(contract.strike - terminal, 0.0)
        discounted = payoffs * discount

        payoff_sum += float(discounted.sum())
        payoff_sum_sq += float(np.dot(discounted, discounted))
        remaining -= batch

    logger.debug(
        "Monte Carlo %s: %d paths in batches of %d", contract.option_type, simulations, batch_size
    )

    value = payoff_sum / simulations
    # Sample variance; clamp rounding noise below zero
    variance = max((payoff_sum_sq - simulations * value * value) / (simulations - 1), 0.0)
    standard_error = math.sqrt(variance / simulations)

    lower = max(value - z * standard_error, 0.0)
    upper = value + z * standard_error
    intrinsic = intrinsic_value(contract.underlying_value, contract.strike, contract.option_type)

    return PricingResult(
        value=value,
        model="monte-carlo",
        intrinsic_value=intrinsic,
        time_value=value - intrinsic,
        standard_error=standard_error,
        confidence_interval=(lower, upper),
        confidence_level=confidence_level,
        simulations=simulations,
    )
