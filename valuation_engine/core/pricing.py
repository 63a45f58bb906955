"""
Model selection for option pricing.

All three models take the same OptionContract, so callers pick a model
by name and pass only the parameters that model uses.
"""

from typing import Optional

from valuation_engine.core.binomial import price_binomial
from valuation_engine.core.black_scholes import price_black_scholes
from valuation_engine.core.monte_carlo import monte_carlo_price
from valuation_engine.utils.constants import (
    DEFAULT_CONFIDENCE_LEVEL,
    DEFAULT_SIMULATIONS,
    DEFAULT_TREE_STEPS,
    MC_DEFAULT_SEED,
)
from valuation_engine.utils.types import (
    PRICING_MODELS,
    ExerciseStyle,
    OptionContract,
    PricingModel,
    PricingResult,
)


def price_option(
    contract: OptionContract,
    model: PricingModel = "black-scholes",
    steps: int = DEFAULT_TREE_STEPS,
    simulations: int = DEFAULT_SIMULATIONS,
    seed: Optional[int] = MC_DEFAULT_SEED,
    exercise: ExerciseStyle = "european",
    confidence_level: float = DEFAULT_CONFIDENCE_LEVEL,
) -> PricingResult:
    """
    Price a contract with the selected model.

    Args:
        contract: Validated option contract
        model: "black-scholes", "binomial" or "monte-carlo"
        steps: Lattice steps (binomial only)
        simulations: Path count (Monte Carlo only)
        seed: Random seed (Monte Carlo only)
        exercise: Exercise style (binomial only)
        confidence_level: Interval level (Monte Carlo only)

    Returns:
        PricingResult from the selected model

    Raises:
        ValueError: If the model name is unknown or a model parameter is invalid
    """
    if model == "black-scholes":
        return price_black_scholes(contract)
    elif model == "binomial":
        return price_binomial(contract, steps=steps, exercise=exercise)
    elif model == "monte-carlo":
        return monte_carlo_price(
            contract, simulations=simulations, seed=seed, confidence_level=confidence_level
        )
    else:
        raise ValueError(f"model must be one of {', '.join(PRICING_MODELS)}, got '{model}'")


def price_all_models(
    contract: OptionContract,
    steps: int = DEFAULT_TREE_STEPS,
    simulations: int = DEFAULT_SIMULATIONS,
    seed: Optional[int] = MC_DEFAULT_SEED,
) -> dict[str, PricingResult]:
    """Price one contract with every model, keyed by model name."""
    return {
        model: price_option(contract, model, steps=steps, simulations=simulations, seed=seed)
        for model in PRICING_MODELS
    }
