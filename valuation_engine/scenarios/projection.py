"""
Multi-year financial projections per scenario.

A scenario is driven by a ScenarioAssumptions record. Revenue compounds
at the effective growth rate

    g = growth_rate · market_multiplier · (1 - risk_discount)

and for year index t = 0..H-1:

    revenue_t   = revenue_0 · (1 + g)^t
    ebitda_t    = revenue_t · ebitda_margin · (1 - cost_inflation)^t
    cash_flow_t = ebitda_t · cash_conversion · capital_efficiency
    valuation_t = revenue_t · valuation_multiple

Base, optimistic, conservative and custom scenarios all have this shape
so they can be compared side by side.
"""

import logging
import math
from dataclasses import asdict, dataclass, fields
from typing import Literal, Mapping, Optional, Sequence

from valuation_engine.utils.constants import (
    DEFAULT_CASH_CONVERSION,
    DEFAULT_EBITDA_MARGIN,
    DEFAULT_HORIZON,
    DEFAULT_SCENARIO_PROBABILITIES,
    DEFAULT_VALUATION_MULTIPLE,
    PROBABILITY_TOLERANCE,
    PROBABILITY_TOTAL,
)

logger = logging.getLogger(__name__)

Metric = Literal["revenue", "ebitda", "cash_flow", "valuation"]
METRICS = ("revenue", "ebitda", "cash_flow", "valuation")
Impact = Literal["low", "medium", "high", "critical"]


def _check_percentage(name: str, value: float) -> None:
    if not 0.0 <= value <= 100.0:
        raise ValueError(f"{name} must be within [0, 100], got {name}={value}")


@dataclass(frozen=True)
class ScenarioAssumptions:
    """
    Growth, margin and multiple assumptions for one scenario.

    Attributes:
        growth_rate: Annual revenue growth before adjustments
        market_multiplier: Scales growth for market conditions (1.0 = neutral)
        risk_discount: Fraction of growth given up to risk, in [0, 1)
        cost_inflation: Annual erosion of the EBITDA margin, in [0, 1)
        capital_efficiency: Scales cash conversion (1.0 = neutral)
        ebitda_margin: EBITDA / revenue
        cash_conversion: Cash flow / EBITDA
        valuation_multiple: Valuation / revenue
    """
    growth_rate: float
    market_multiplier: float = 1.0
    risk_discount: float = 0.0
    cost_inflation: float = 0.0
    capital_efficiency: float = 1.0
    ebitda_margin: float = DEFAULT_EBITDA_MARGIN
    cash_conversion: float = DEFAULT_CASH_CONVERSION
    valuation_multiple: float = DEFAULT_VALUATION_MULTIPLE

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValueError(f"{f.name} must be a finite number, got {f.name}={value!r}")
        if self.growth_rate <= -1.0:
            raise ValueError(f"growth_rate must be greater than -100%, got growth_rate={self.growth_rate}")
        if self.market_multiplier < 0:
            raise ValueError(f"market_multiplier cannot be negative, got {self.market_multiplier}")
        if not 0.0 <= self.risk_discount < 1.0:
            raise ValueError(f"risk_discount must be within [0, 1), got {self.risk_discount}")
        if self.effective_growth <= -1.0:
            # Revenue would hit zero or flip sign after one year
            raise ValueError(
                f"Effective growth must be greater than -100%, got {self.effective_growth} "
                f"(growth_rate={self.growth_rate}, market_multiplier={self.market_multiplier}, "
                f"risk_discount={self.risk_discount})"
            )
        if not 0.0 <= self.cost_inflation < 1.0:
            raise ValueError(f"cost_inflation must be within [0, 1), got {self.cost_inflation}")
        for name in ("capital_efficiency", "ebitda_margin", "cash_conversion", "valuation_multiple"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative, got {name}={getattr(self, name)}")

    @property
    def effective_growth(self) -> float:
        return effective_growth(self)


@dataclass(frozen=True)
class YearlyProjection:
    year: int
    revenue: float
    ebitda: float
    cash_flow: float
    valuation: float

    def metric(self, name: str) -> float:
        if name not in METRICS:
            raise ValueError(f"metric must be one of {', '.join(METRICS)}, got '{name}'")
        return getattr(self, name)


@dataclass(frozen=True)
class Assumption:
    category: str
    description: str
    value: float
    confidence: float

    def __post_init__(self) -> None:
        _check_percentage("confidence", self.confidence)


@dataclass(frozen=True)
class ValueDriver:
    name: str
    impact: Impact
    description: str
    current_value: float
    projected_value: float


@dataclass(frozen=True)
class RiskFactor:
    category: str
    description: str
    probability: float
    impact: Impact
    mitigation: Optional[str] = None

    def __post_init__(self) -> None:
        _check_percentage("probability", self.probability)


@dataclass(frozen=True)
class ScenarioDefinition:
    """
    A named scenario: its projections plus the narrative around them.

    Attributes:
        name: Scenario name ("base", "optimistic", ...)
        projections: Yearly projections, years strictly increasing with no gaps
        assumptions: Assumption records the projections were built from
        key_drivers: Key value drivers
        risk_factors: Risks that could move the scenario
        confidence: Confidence in the scenario, in [0, 100]
        probability: Probability weight of the scenario, in [0, 100]
    """
    name: str
    projections: tuple[YearlyProjection, ...]
    assumptions: tuple[Assumption, ...] = ()
    key_drivers: tuple[ValueDriver, ...] = ()
    risk_factors: tuple[RiskFactor, ...] = ()
    confidence: float = 50.0
    probability: float = 0.0

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Scenario name must not be empty")
        if not self.projections:
            raise ValueError(f"Scenario '{self.name}' has no projections")
        years = [p.year for p in self.projections]
        for previous, current in zip(years, years[1:]):
            if current != previous + 1:
                raise ValueError(
                    f"Scenario '{self.name}' years must be consecutive, got {years}"
                )
        _check_percentage("confidence", self.confidence)
        _check_percentage("probability", self.probability)

    @property
    def final_year(self) -> YearlyProjection:
        return self.projections[-1]

    def projection_for(self, year: int) -> YearlyProjection:
        offset = year - self.projections[0].year
        if not 0 <= offset < len(self.projections):
            raise ValueError(f"Scenario '{self.name}' has no projection for year {year}")
        return self.projections[offset]


def effective_growth(assumptions: ScenarioAssumptions) -> float:
    """Growth rate after market and risk adjustments."""
    return assumptions.growth_rate * assumptions.market_multiplier * (1.0 - assumptions.risk_discount)


def project(
    revenue_0: float,
    assumptions: ScenarioAssumptions,
    horizon: int = DEFAULT_HORIZON,
    start_year: int = 1,
) -> tuple[YearlyProjection, ...]:
    """
    Project revenue, EBITDA, cash flow and valuation over a horizon.

    Args:
        revenue_0: Revenue of the first projected year
        assumptions: Scenario assumptions
        horizon: Number of years (>= 1)
        start_year: Label of the first year

    Returns:
        Tuple of YearlyProjection with consecutive years

    Examples:
        >>> final = project(10_000_000, ScenarioAssumptions(growth_rate=0.15))[-1]
        >>> abs(final.revenue - 17_490_062.5) < 1e-3
        True
    """
    if revenue_0 < 0:
        raise ValueError(f"Starting revenue cannot be negative, got revenue_0={revenue_0}")
    if not isinstance(horizon, int) or horizon < 1:
        raise ValueError(f"Horizon must be a positive integer, got horizon={horizon}")

    growth = effective_growth(assumptions)
    projections = []
    for t in range(horizon):
        revenue = revenue_0 * (1.0 + growth) ** t
        ebitda = revenue * assumptions.ebitda_margin * (1.0 - assumptions.cost_inflation) ** t
        cash_flow = ebitda * assumptions.cash_conversion * assumptions.capital_efficiency
        valuation = revenue * assumptions.valuation_multiple
        projections.append(
            YearlyProjection(
                year=start_year + t,
                revenue=revenue,
                ebitda=ebitda,
                cash_flow=cash_flow,
                valuation=valuation,
            )
        )
    return tuple(projections)


def assumptions_to_records(
    assumptions: ScenarioAssumptions, confidence: float = 50.0
) -> tuple[Assumption, ...]:
    """Describe each assumption field as an Assumption record."""
    categories = {
        "growth_rate": "growth",
        "market_multiplier": "market",
        "risk_discount": "risk",
        "cost_inflation": "cost",
        "capital_efficiency": "capital",
        "ebitda_margin": "cost",
        "cash_conversion": "capital",
        "valuation_multiple": "market",
    }
    return tuple(
        Assumption(
            category=categories[name],
            description=name.replace("_", " "),
            value=value,
            confidence=confidence,
        )
        for name, value in asdict(assumptions).items()
    )


def build_scenario(
    name: str,
    revenue_0: float,
    assumptions: ScenarioAssumptions,
    horizon: int = DEFAULT_HORIZON,
    probability: float = 0.0,
    confidence: float = 50.0,
    key_drivers: Sequence[ValueDriver] = (),
    risk_factors: Sequence[RiskFactor] = (),
    start_year: int = 1,
) -> ScenarioDefinition:
    """Project one scenario and wrap it with its narrative."""
    return ScenarioDefinition(
        name=name,
        projections=project(revenue_0, assumptions, horizon, start_year),
        assumptions=assumptions_to_records(assumptions, confidence),
        key_drivers=tuple(key_drivers),
        risk_factors=tuple(risk_factors),
        confidence=confidence,
        probability=probability,
    )


def build_scenario_set(
    revenue_0: float,
    base: ScenarioAssumptions,
    optimistic: ScenarioAssumptions,
    conservative: ScenarioAssumptions,
    custom: Optional[Mapping[str, tuple[ScenarioAssumptions, float]]] = None,
    probabilities: Sequence[float] = DEFAULT_SCENARIO_PROBABILITIES,
    horizon: int = DEFAULT_HORIZON,
    start_year: int = 1,
) -> dict[str, ScenarioDefinition]:
    """
    Build base, optimistic, conservative and any custom scenarios.

    Args:
        revenue_0: Shared starting revenue
        base, optimistic, conservative: Assumptions of the standard cases
        custom: Optional name -> (assumptions, probability) for extra scenarios
        probabilities: Probabilities of base, optimistic, conservative
        horizon: Projection horizon in years
        start_year: Label of the first year

    Returns:
        Dict of scenario name -> ScenarioDefinition, standard cases first

    Raises:
        ValueError: If the probabilities do not sum to 100 or a custom
                    scenario reuses a standard name
    """
    if len(probabilities) != 3:
        raise ValueError(f"Expected 3 probabilities (base, optimistic, conservative), got {len(probabilities)}")

    cases = {
        "base": (base, probabilities[0]),
        "optimistic": (optimistic, probabilities[1]),
        "conservative": (conservative, probabilities[2]),
    }
    for name, case in (custom or {}).items():
        if name in cases:
            raise ValueError(f"Custom scenario name '{name}' clashes with a standard scenario")
        cases[name] = case

    total = sum(probability for _, probability in cases.values())
    if abs(total - PROBABILITY_TOTAL) > PROBABILITY_TOLERANCE:
        raise ValueError(f"Scenario probabilities must sum to {PROBABILITY_TOTAL:g}, got {total:g}")

    logger.debug("Building %d scenarios over %d years", len(cases), horizon)

    return {
        name: build_scenario(
            name,
            revenue_0,
            assumptions,
            horizon=horizon,
            probability=probability,
            start_year=start_year,
        )
        for name, (assumptions, probability) in cases.items()
    }


def compare_scenarios(
    scenarios: Mapping[str, ScenarioDefinition],
    metric: Metric,
    year: int,
    reference: str = "base",
) -> dict[str, tuple[float, Optional[float]]]:
    """
    Compare a metric across scenarios for one year.

    Returns:
        name -> (metric value, percentage difference vs the reference
        scenario); the difference is None when the reference value is 0
    """
    if reference not in scenarios:
        raise ValueError(f"Reference scenario '{reference}' not found")

    reference_value = scenarios[reference].projection_for(year).metric(metric)
    comparison = {}
    for name, scenario in scenarios.items():
        value = scenario.projection_for(year).metric(metric)
        if reference_value == 0:
            comparison[name] = (value, None)
        else:
            comparison[name] = (value, (value - reference_value) / reference_value * 100.0)
    return comparison


def growth_rates(projections: Sequence[YearlyProjection]) -> list[float]:
    """Year-over-year revenue growth in percent; 0 when the prior year is 0."""
    rates = []
    for previous, current in zip(projections, projections[1:]):
        if previous.revenue > 0:
            rates.append((current.revenue - previous.revenue) / previous.revenue * 100.0)
        else:
            rates.append(0.0)
    return rates


def margins(projections: Sequence[YearlyProjection]) -> list[float]:
    """EBITDA margin per year in percent; 0 when revenue is 0."""
    return [p.ebitda / p.revenue * 100.0 if p.revenue > 0 else 0.0 for p in projections]

