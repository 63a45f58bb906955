"""
Confidence intervals and tail risk for scenario outcomes.

Two views of uncertainty are provided:

- Analytical: the scenarios form a discrete distribution weighted by
  their probabilities; intervals are mean ± z·σ of that distribution.
- Simulated: each path picks a scenario by probability and applies a
  mean-preserving lognormal shock; intervals are percentiles of the
  simulated outcomes.

In both views every interval contains the mean and a higher confidence
level never gives a narrower interval.
"""

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import numpy as np

from valuation_engine.core.distributions import z_score
from valuation_engine.scenarios.projection import METRICS, Metric, ScenarioDefinition
from valuation_engine.utils.constants import (
    DEFAULT_CONFIDENCE_LEVEL,
    DEFAULT_CONFIDENCE_LEVELS,
    DEFAULT_SIMULATIONS,
    MAX_SIMULATIONS,
    MC_DEFAULT_SEED,
    MIN_SIMULATIONS,
    PROBABILITY_TOLERANCE,
    PROBABILITY_TOTAL,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfidenceInterval:
    metric: str
    year: int
    level: float
    lower: float
    mean: float
    upper: float

    @property
    def width(self) -> float:
        return self.upper - self.lower


def _as_list(scenarios) -> list[ScenarioDefinition]:
    if isinstance(scenarios, Mapping):
        scenarios = list(scenarios.values())
    scenarios = list(scenarios)
    if not scenarios:
        raise ValueError("At least one scenario is required")
    return scenarios


def _validate_levels(levels: Sequence[float]) -> list[float]:
    if not levels:
        raise ValueError("At least one confidence level is required")
    for level in levels:
        if not 0.0 < level < 1.0:
            raise ValueError(f"Confidence level must be between 0 and 1, got {level}")
    return sorted(levels)


def scenario_weights(scenarios) -> np.ndarray:
    """
    Normalized probability weights of the scenarios.

    Raises:
        ValueError: If the probabilities do not sum to 100
    """
    scenarios = _as_list(scenarios)
    probabilities = np.array([s.probability for s in scenarios], dtype=float)
    total = probabilities.sum()
    if abs(total - PROBABILITY_TOTAL) > PROBABILITY_TOLERANCE:
        raise ValueError(f"Scenario probabilities must sum to {PROBABILITY_TOTAL:g}, got {total:g}")
    return probabilities / total


def weighted_statistics(scenarios, metric: Metric, year: int) -> tuple[float, float]:
    """
    Probability-weighted mean and standard deviation of a metric.

    Returns:
        (mean, standard deviation) across scenarios for the given year
    """
    if metric not in METRICS:
        raise ValueError(f"metric must be one of {', '.join(METRICS)}, got '{metric}'")
    scenarios = _as_list(scenarios)
    weights = scenario_weights(scenarios)
    values = np.array([s.projection_for(year).metric(metric) for s in scenarios], dtype=float)

    mean = float(np.dot(weights, values))
    variance = float(np.dot(weights, (values - mean) ** 2))
    return mean, math.sqrt(variance)


def confidence_intervals(
    scenarios,
    metric: Metric,
    year: int,
    levels: Sequence[float] = DEFAULT_CONFIDENCE_LEVELS,
) -> list[ConfidenceInterval]:
    """
    Normal-approximation intervals of the probability-weighted blend.

    Returns:
        One ConfidenceInterval per level, ordered by level
    """
    levels = _validate_levels(levels)
    mean, std = weighted_statistics(scenarios, metric, year)

    intervals = []
    for level in levels:
        half_width = z_score(level) * std
        intervals.append(
            ConfidenceInterval(
                metric=metric,
                year=year,
                level=level,
                lower=mean - half_width,
                mean=mean,
                upper=mean + half_width,
            )
        )
    return intervals


def simulate_valuation_paths(
    scenario: ScenarioDefinition,
    volatility: float,
    simulations: int = DEFAULT_SIMULATIONS,
    seed: Optional[int] = MC_DEFAULT_SEED,
    metric: Metric = "valuation",
) -> np.ndarray:
    """
    Geometric Brownian paths around one scenario's projected metric.

    Path value in projection step t (1-based) is the projected value times
    exp(σ·W_t - σ²t/2), so every year keeps the projected value as its
    expectation.

    Returns:
        Array of shape (simulations, number of projected years)
    """
    if volatility < 0:
        raise ValueError(f"Volatility cannot be negative, got volatility={volatility}")
    if not isinstance(simulations, int) or not MIN_SIMULATIONS <= simulations <= MAX_SIMULATIONS:
        raise ValueError(
            f"Simulation count must be an integer in [{MIN_SIMULATIONS}, {MAX_SIMULATIONS}], "
            f"got simulations={simulations}"
        )
    if metric not in METRICS:
        raise ValueError(f"metric must be one of {', '.join(METRICS)}, got '{metric}'")

    projected = np.array([p.metric(metric) for p in scenario.projections], dtype=float)
    steps = np.arange(1, projected.size + 1, dtype=float)

    rng = np.random.default_rng(seed)
    brownian = np.cumsum(rng.standard_normal((simulations, projected.size)), axis=1)
    return projected * np.exp(volatility * brownian - 0.5 * volatility * volatility * steps)


def simulate_outcomes(
    scenarios,
    metric: Metric,
    year: int,
    volatility: float,
    simulations: int = DEFAULT_SIMULATIONS,
    seed: Optional[int] = MC_DEFAULT_SEED,
) -> np.ndarray:
    """
    Simulate a metric's outcome in a given year.

    Each path draws a scenario with its probability, then multiplies the
    scenario's projected value by exp(σ√t·Z - σ²t/2), where t is the
    number of years from the first projected year (at least 1).

    Args:
        scenarios: Scenarios with probabilities summing to 100
        metric: Metric to simulate
        year: Projection year
        volatility: Annualized volatility of the metric (>= 0)
        simulations: Number of paths
        seed: Seed for numpy's default_rng

    Returns:
        Array of simulated outcomes
    """
    if volatility < 0:
        raise ValueError(f"Volatility cannot be negative, got volatility={volatility}")
    if not isinstance(simulations, int) or not MIN_SIMULATIONS <= simulations <= MAX_SIMULATIONS:
        raise ValueError(
            f"Simulation count must be an integer in [{MIN_SIMULATIONS}, {MAX_SIMULATIONS}], "
            f"got simulations={simulations}"
        )

    scenarios = _as_list(scenarios)
    weights = scenario_weights(scenarios)
    values = np.array([s.projection_for(year).metric(metric) for s in scenarios], dtype=float)
    elapsed = max(year - scenarios[0].projections[0].year, 1)

    rng = np.random.default_rng(seed)
    picks = rng.choice(len(scenarios), size=simulations, p=weights)
    shocks = rng.standard_normal(simulations)
    diffusion = volatility * math.sqrt(elapsed)

    logger.debug("Simulating %d outcomes of %s in year %d", simulations, metric, year)
    return values[picks] * np.exp(diffusion * shocks - 0.5 * diffusion * diffusion)


def monte_carlo_intervals(
    scenarios,
    metric: Metric,
    year: int,
    volatility: float,
    levels: Sequence[float] = DEFAULT_CONFIDENCE_LEVELS,
    simulations: int = DEFAULT_SIMULATIONS,
    seed: Optional[int] = MC_DEFAULT_SEED,
) -> list[ConfidenceInterval]:
    """
    Percentile intervals of simulated outcomes.

    Percentile bounds are nested by construction, so intervals widen
    monotonically as the level increases.
    """
    levels = _validate_levels(levels)
    outcomes = simulate_outcomes(scenarios, metric, year, volatility, simulations, seed)
    mean = float(outcomes.mean())

    intervals = []
    for level in levels:
        lower, upper = np.percentile(outcomes, [50.0 * (1.0 - level), 50.0 * (1.0 + level)])
        # Heavy right tails can push the mean past an upper percentile
        intervals.append(
            ConfidenceInterval(
                metric=metric,
                year=year,
                level=level,
                lower=min(float(lower), mean),
                mean=mean,
                upper=max(float(upper), mean),
            )
        )
    return intervals


def value_at_risk(returns: Sequence[float], confidence: float = DEFAULT_CONFIDENCE_LEVEL) -> float:
    """
    Historical value at risk.

    Returns:
        The return at the (1 - confidence) quantile of the sorted returns;
        negative values are losses
    """
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"Confidence must be between 0 and 1, got {confidence}")
    ordered = np.sort(np.asarray(returns, dtype=float))
    if ordered.size == 0:
        raise ValueError("Value at risk needs at least one return")
    index = int(math.floor((1.0 - confidence) * ordered.size))
    return float(ordered[min(index, ordered.size - 1)])


def conditional_value_at_risk(
    returns: Sequence[float], confidence: float = DEFAULT_CONFIDENCE_LEVEL
) -> float:
    """
    Expected shortfall: the mean of the returns in the tail below VaR.

    When the tail holds no observation the worst return is used.
    """
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"Confidence must be between 0 and 1, got {confidence}")
    ordered = np.sort(np.asarray(returns, dtype=float))
    if ordered.size == 0:
        raise ValueError("Conditional value at risk needs at least one return")
    cutoff = int(math.floor((1.0 - confidence) * ordered.size))
    if cutoff == 0:
        return float(ordered[0])
    return float(ordered[:cutoff].mean())
