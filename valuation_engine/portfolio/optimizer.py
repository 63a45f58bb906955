"""
Strategic option portfolio.

A strategic option (expand, acquire, launch a platform...) is valued as a
call on its expected value with the required investment as strike. A
selection of valued options is summarized by investment, return, risk,
diversification and timing scores.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Literal, Mapping, Optional, Sequence

from valuation_engine.core.pricing import price_option
from valuation_engine.utils.constants import (
    DEFAULT_SIMULATIONS,
    DEFAULT_TREE_STEPS,
    DIVERSIFICATION_CAP,
    DIVERSIFICATION_PER_OPTION,
    MC_DEFAULT_SEED,
    RISK_SCALING_FACTOR,
)
from valuation_engine.utils.types import Greeks, OptionContract, PricingModel, PricingResult

logger = logging.getLogger(__name__)

StrategicOptionType = Literal["expansion", "acquisition", "innovation", "platform", "international"]
STRATEGIC_OPTION_TYPES = ("expansion", "acquisition", "innovation", "platform", "international")


@dataclass(frozen=True)
class StrategicOption:
    """
    A strategic opportunity with option-like payoff.

    Attributes:
        option_id: Unique identifier
        name: Display name
        option_type: Kind of opportunity
        investment_required: Cost to exercise (strike), > 0
        expected_value: Present value of the opportunity (underlying), > 0
        time_to_expiry: Years until the decision must be made, > 0
        volatility: Annualized uncertainty of the expected value, >= 0
        risk_free_rate: Discount rate, >= 0
        timing_score: Readiness to act, 0 to 100
    """
    option_id: str
    name: str
    option_type: StrategicOptionType
    investment_required: float
    expected_value: float
    time_to_expiry: float
    volatility: float
    risk_free_rate: float = 0.05
    timing_score: float = 50.0

    def __post_init__(self) -> None:
        if self.option_type not in STRATEGIC_OPTION_TYPES:
            raise ValueError(
                f"option_type must be one of {', '.join(STRATEGIC_OPTION_TYPES)}, got '{self.option_type}'"
            )
        if not 0.0 <= self.timing_score <= 100.0:
            raise ValueError(f"timing_score must be in [0, 100], got timing_score={self.timing_score}")
        # Validates the pricing fields
        self.to_contract()

    def to_contract(self) -> OptionContract:
        """Call on the expected value struck at the required investment."""
        return OptionContract(
            underlying_value=self.expected_value,
            strike=self.investment_required,
            time_to_expiry=self.time_to_expiry,
            risk_free_rate=self.risk_free_rate,
            volatility=self.volatility,
            option_type="call",
        )


@dataclass
class PortfolioOptimization:
    """
    Summary of a selection of valued strategic options.

    Attributes:
        selected: Options in the selection, duplicates removed
        total_investment: Sum of required investments
        expected_return: Investment-weighted return of valuation over investment
        risk_score: Mean volatility × RISK_SCALING_FACTOR
        diversification_score: min(DIVERSIFICATION_CAP, count × DIVERSIFICATION_PER_OPTION)
        optimal_timing: option_id -> timing_score / 100
        valuations: option_id -> option value
    """
    selected: list[StrategicOption]
    total_investment: float
    expected_return: float
    risk_score: float
    diversification_score: float
    optimal_timing: dict[str, float] = field(default_factory=dict)
    valuations: dict[str, float] = field(default_factory=dict)


def value_options(
    options: Iterable[StrategicOption],
    model: PricingModel = "black-scholes",
    steps: int = DEFAULT_TREE_STEPS,
    simulations: int = DEFAULT_SIMULATIONS,
    seed: Optional[int] = MC_DEFAULT_SEED,
) -> dict[str, PricingResult]:
    """
    Price each strategic option with one model.

    Returns:
        option_id -> PricingResult
    """
    results = {}
    for option in options:
        results[option.option_id] = price_option(
            option.to_contract(), model, steps=steps, simulations=simulations, seed=seed
        )
    logger.debug("Valued %d strategic options with %s", len(results), model)
    return results


def _unique(options: Iterable[StrategicOption]) -> list[StrategicOption]:
    seen = set()
    unique = []
    for option in options:
        if option.option_id not in seen:
            seen.add(option.option_id)
            unique.append(option)
    return unique


def optimize_portfolio(
    options: Sequence[StrategicOption],
    valuations: Mapping[str, object],
) -> PortfolioOptimization:
    """
    Summarize a selection of strategic options.

    Args:
        options: Selected options; repeated option_ids count once
        valuations: option_id -> PricingResult or plain value

    Returns:
        PortfolioOptimization for the selection

    Raises:
        ValueError: If the selection is empty or an option has no valuation
    """
    selected = _unique(options)
    if not selected:
        raise ValueError("Portfolio selection cannot be empty")

    values = {}
    for option in selected:
        if option.option_id not in valuations:
            raise ValueError(f"No valuation for option '{option.option_id}'")
        valuation = valuations[option.option_id]
        values[option.option_id] = valuation.value if isinstance(valuation, PricingResult) else float(valuation)

    total_investment = sum(o.investment_required for o in selected)
    expected_return = sum(
        (o.investment_required / total_investment)
        * (values[o.option_id] - o.investment_required)
        / o.investment_required
        for o in selected
    )
    mean_volatility = sum(o.volatility for o in selected) / len(selected)

    return PortfolioOptimization(
        selected=selected,
        total_investment=total_investment,
        expected_return=expected_return,
        risk_score=mean_volatility * RISK_SCALING_FACTOR,
        diversification_score=min(DIVERSIFICATION_CAP, len(selected) * DIVERSIFICATION_PER_OPTION),
        optimal_timing={o.option_id: o.timing_score / 100.0 for o in selected},
        valuations=values,
    )


def aggregate_greeks(results: Iterable[PricingResult]) -> Greeks:
    """
    Sum position Greeks across priced options.

    Raises:
        ValueError: If a result carries no Greeks (only Black-Scholes
                    results do)
    """
    totals = dict(delta=0.0, gamma=0.0, theta=0.0, vega=0.0, rho=0.0)
    for result in results:
        if result.greeks is None:
            raise ValueError(f"Result from model '{result.model}' has no Greeks")
        for name in totals:
            totals[name] += getattr(result.greeks, name)
    return Greeks(**totals)
