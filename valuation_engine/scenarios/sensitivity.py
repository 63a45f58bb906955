"""
One-at-a-time sensitivity analysis of scenario projections.

Each SensitivityVariable names a ScenarioAssumptions field. The field is
set to its pessimistic and then its optimistic value while every other
field stays at the base value, and the final-year metrics are compared
with the base case as percentage impacts.
"""

import logging
from dataclasses import dataclass, fields, replace
from typing import Literal, Optional, Sequence

from valuation_engine.scenarios.projection import (
    METRICS,
    Metric,
    ScenarioAssumptions,
    project,
)
from valuation_engine.utils.constants import DEFAULT_HORIZON

logger = logging.getLogger(__name__)

Case = Literal["pessimistic", "optimistic"]

ASSUMPTION_FIELDS = tuple(f.name for f in fields(ScenarioAssumptions))


@dataclass(frozen=True)
class SensitivityVariable:
    """
    A named assumption and the range it is stressed over.

    Attributes:
        name: ScenarioAssumptions field name, e.g. "growth_rate"
        base_value: Value in the base case
        pessimistic: Value in the pessimistic case
        optimistic: Value in the optimistic case
    """
    name: str
    base_value: float
    pessimistic: float
    optimistic: float

    def __post_init__(self) -> None:
        if self.name not in ASSUMPTION_FIELDS:
            raise ValueError(
                f"Unknown sensitivity variable '{self.name}', expected one of {', '.join(ASSUMPTION_FIELDS)}"
            )


@dataclass(frozen=True)
class SensitivityResult:
    """
    Final-year outcome of moving one variable to one bound.

    Attributes:
        variable: Variable name
        case: "pessimistic" or "optimistic"
        value: Value the variable was set to
        impacts: metric -> percentage change vs the base case, or None
                 when the base metric is zero
    """
    variable: str
    case: Case
    value: float
    impacts: dict[str, Optional[float]]

    @property
    def scenario(self) -> str:
        return f"{self.variable}:{self.case}"


def _percentage_impact(value: float, base: float) -> Optional[float]:
    if base == 0:
        return None
    return (value - base) / base * 100.0


def sensitivity_analysis(
    revenue_0: float,
    base_assumptions: ScenarioAssumptions,
    variables: Sequence[SensitivityVariable],
    horizon: int = DEFAULT_HORIZON,
    metrics: Sequence[Metric] = ("revenue", "ebitda", "valuation"),
) -> list[SensitivityResult]:
    """
    Stress each variable to both bounds and measure the final-year impact.

    The base case uses base_assumptions with each variable set to its
    base_value.

    Args:
        revenue_0: Starting revenue
        base_assumptions: Base scenario assumptions
        variables: Variables to stress
        horizon: Projection horizon
        metrics: Metrics to report

    Returns:
        Two SensitivityResult per variable (pessimistic then optimistic)

    Raises:
        ValueError: If no variables are given, a metric is unknown, or a
                    stressed value makes the assumptions invalid
    """
    if not variables:
        raise ValueError("Sensitivity analysis needs at least one variable")
    for metric in metrics:
        if metric not in METRICS:
            raise ValueError(f"metric must be one of {', '.join(METRICS)}, got '{metric}'")

    base = replace(base_assumptions, **{v.name: v.base_value for v in variables})
    base_final = project(revenue_0, base, horizon)[-1]

    results = []
    for variable in variables:
        for case in ("pessimistic", "optimistic"):
            value = getattr(variable, case)
            stressed = replace(base, **{variable.name: value})
            final = project(revenue_0, stressed, horizon)[-1]
            impacts = {
                metric: _percentage_impact(final.metric(metric), base_final.metric(metric))
                for metric in metrics
            }
            results.append(
                SensitivityResult(variable=variable.name, case=case, value=value, impacts=impacts)
            )

    logger.debug("Sensitivity analysis produced %d results", len(results))
    return results


def tornado(results: Sequence[SensitivityResult], metric: Metric = "valuation") -> list[tuple[str, float]]:
    """
    Rank variables by the swing between their two cases.

    Returns:
        (variable, swing in percentage points) sorted by swing, largest
        first; variables whose impact is undefined are left out
    """
    by_variable: dict[str, dict[str, float]] = {}
    for result in results:
        impact = result.impacts.get(metric)
        if impact is None:
            continue
        by_variable.setdefault(result.variable, {})[result.case] = impact

    swings = [
        (name, abs(cases["optimistic"] - cases["pessimistic"]))
        for name, cases in by_variable.items()
        if "optimistic" in cases and "pessimistic" in cases
    ]
    return sorted(swings, key=lambda item: item[1], reverse=True)
