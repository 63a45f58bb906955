"""
Capital structure scan and optimization.

A firm is re-levered to a candidate debt ratio D/(D+E) at constant total
capital. At each ratio:

- interest expense and debt service scale with the debt load
- the credit rating is re-estimated from the re-levered ratios
- cost of equity is unlevered and re-levered (Modigliani-Miller) at the
  current cost of debt
- cost of debt moves by the change in rating risk premium, a distress
  cost borne by the debt alone

The best candidate for the chosen goal is picked from the scan.
"""

import logging
from dataclasses import dataclass, replace
from typing import Literal, Optional, Sequence

from valuation_engine.capital.leverage import (
    CreditAssessment,
    LeverageMetrics,
    estimate_credit_rating,
    leverage_metrics,
)
from valuation_engine.capital.wacc import (
    CapitalStructureInputs,
    calculate_wacc,
    relever_cost_of_equity,
    unlever_cost_of_equity,
    wacc_breakdown,
)
from valuation_engine.utils.constants import DEFAULT_DEBT_RATIO_GRID, STANDARD_DEBT_RATIOS

logger = logging.getLogger(__name__)

Goal = Literal["wacc", "coverage", "rating"]
GOALS = ("wacc", "coverage", "rating")


@dataclass(frozen=True)
class CapitalStructure:
    """
    A firm's financing mix and what it costs.

    Attributes:
        debt_weight: Debt share of total capital
        equity_weight: Equity share of total capital (1 - debt_weight)
        debt_to_equity: debt_weight / equity_weight
        wacc: Weighted average cost of capital at this mix
        debt_service_coverage: Operating cash flow / debt service, or
                               None without debt service
        credit_rating: Letter rating at this mix
        cost_of_debt: Pre-tax cost of debt at this mix
        cost_of_equity: Cost of equity at this mix
        credit: Full rating assessment
        metrics: Leverage ratios at this mix
    """
    debt_weight: float
    equity_weight: float
    debt_to_equity: float
    wacc: float
    debt_service_coverage: Optional[float]
    credit_rating: str
    cost_of_debt: float
    cost_of_equity: float
    credit: CreditAssessment
    metrics: LeverageMetrics


@dataclass
class OptimizationResult:
    goal: str
    current: CapitalStructure
    optimized: CapitalStructure
    wacc_delta: float
    candidates: list[CapitalStructure]


def _relevered_inputs(inputs: CapitalStructureInputs, debt_ratio: float) -> CapitalStructureInputs:
    total_capital = inputs.total_capital
    new_debt = total_capital * debt_ratio
    new_equity = total_capital - new_debt

    if inputs.total_debt > 0:
        scale = new_debt / inputs.total_debt
        interest = inputs.interest_expense * scale
        debt_service = inputs.total_debt_service * scale
    else:
        interest = new_debt * inputs.cost_of_debt
        debt_service = interest

    return replace(
        inputs,
        total_debt=new_debt,
        total_equity=new_equity,
        market_value_debt=new_debt,
        market_value_equity=new_equity,
        interest_expense=interest,
        total_debt_service=debt_service,
        total_liabilities=max(inputs.total_liabilities - inputs.total_debt + new_debt, 0.0),
    )


def current_structure(inputs: CapitalStructureInputs) -> CapitalStructure:
    """The firm's structure as reported, at its own costs of capital."""
    breakdown = wacc_breakdown(inputs)
    metrics = leverage_metrics(inputs)
    credit = estimate_credit_rating(metrics, inputs)

    return CapitalStructure(
        debt_weight=breakdown.debt_weight,
        equity_weight=breakdown.equity_weight,
        debt_to_equity=inputs.market_value_debt / inputs.market_value_equity
        if inputs.market_value_equity > 0
        else float("inf"),
        wacc=breakdown.wacc,
        debt_service_coverage=metrics.debt_service_coverage,
        credit_rating=credit.rating,
        cost_of_debt=inputs.cost_of_debt,
        cost_of_equity=inputs.cost_of_equity,
        credit=credit,
        metrics=metrics,
    )


def structure_at_ratio(inputs: CapitalStructureInputs, debt_ratio: float) -> CapitalStructure:
    """
    Re-lever a firm to a debt ratio and price its capital.

    Args:
        inputs: Current firm figures
        debt_ratio: Target D/(D+E), in [0, 1)

    Returns:
        CapitalStructure at the target ratio

    Raises:
        ValueError: If debt_ratio is outside [0, 1) or the firm has no
                    market equity to unlever from
    """
    if not 0.0 <= debt_ratio < 1.0:
        raise ValueError(f"debt_ratio must be in [0, 1), got debt_ratio={debt_ratio}")
    if inputs.market_value_equity <= 0:
        raise ValueError("Cannot re-lever a firm without market equity")

    current_credit = estimate_credit_rating(leverage_metrics(inputs), inputs)
    unlevered = unlever_cost_of_equity(
        inputs.cost_of_equity,
        inputs.cost_of_debt,
        inputs.tax_rate,
        inputs.market_value_debt / inputs.market_value_equity,
    )

    relevered = _relevered_inputs(inputs, debt_ratio)
    metrics = leverage_metrics(relevered)
    credit = estimate_credit_rating(metrics, relevered)

    cost_of_debt = max(inputs.cost_of_debt + credit.risk_premium - current_credit.risk_premium, 0.0)
    debt_to_equity = debt_ratio / (1.0 - debt_ratio)
    cost_of_equity = relever_cost_of_equity(
        unlevered, inputs.cost_of_debt, inputs.tax_rate, debt_to_equity
    )

    return CapitalStructure(
        debt_weight=debt_ratio,
        equity_weight=1.0 - debt_ratio,
        debt_to_equity=debt_to_equity,
        wacc=calculate_wacc(cost_of_debt, cost_of_equity, inputs.tax_rate, debt_ratio, 1.0 - debt_ratio),
        debt_service_coverage=metrics.debt_service_coverage,
        credit_rating=credit.rating,
        cost_of_debt=cost_of_debt,
        cost_of_equity=cost_of_equity,
        credit=credit,
        metrics=metrics,
    )


def scan_structures(
    inputs: CapitalStructureInputs, ratios: Sequence[float] = DEFAULT_DEBT_RATIO_GRID
) -> list[CapitalStructure]:
    """Price the firm at every debt ratio of a grid, in grid order."""
    if not ratios:
        raise ValueError("Debt ratio grid cannot be empty")
    return [structure_at_ratio(inputs, ratio) for ratio in ratios]


def _coverage_key(structure: CapitalStructure) -> float:
    # No debt service means coverage is unbounded
    if structure.debt_service_coverage is None:
        return float("inf")
    return structure.debt_service_coverage


def optimize_capital_structure(
    inputs: CapitalStructureInputs,
    goal: Goal = "wacc",
    ratios: Sequence[float] = DEFAULT_DEBT_RATIO_GRID,
) -> OptimizationResult:
    """
    Scan debt ratios and pick the best for a goal.

    Goals:
        wacc: lowest WACC
        coverage: highest debt service coverage
        rating: highest credit score, lowest WACC among equal scores

    Ties keep the earliest candidate in grid order.

    Returns:
        OptimizationResult with the current and optimized structures and
        wacc_delta = optimized WACC - current WACC
    """
    if goal not in GOALS:
        raise ValueError(f"goal must be one of {', '.join(GOALS)}, got '{goal}'")

    candidates = scan_structures(inputs, ratios)
    if goal == "wacc":
        optimized = min(candidates, key=lambda s: s.wacc)
    elif goal == "coverage":
        optimized = max(candidates, key=_coverage_key)
    else:
        optimized = max(candidates, key=lambda s: (s.credit.score, -s.wacc))

    current = current_structure(inputs)
    logger.info(
        "Optimized capital structure for %s: debt weight %.2f, WACC %.4f (current %.4f)",
        goal,
        optimized.debt_weight,
        optimized.wacc,
        current.wacc,
    )
    return OptimizationResult(
        goal=goal,
        current=current,
        optimized=optimized,
        wacc_delta=optimized.wacc - current.wacc,
        candidates=candidates,
    )


def target_structure(inputs: CapitalStructureInputs, target_debt_to_equity: float) -> CapitalStructure:
    """Structure at a target debt-to-equity ratio, D/E → D/(D+E)."""
    if target_debt_to_equity < 0:
        raise ValueError(
            f"Target debt-to-equity cannot be negative, got target_debt_to_equity={target_debt_to_equity}"
        )
    return structure_at_ratio(inputs, target_debt_to_equity / (1.0 + target_debt_to_equity))


def standard_structures(inputs: CapitalStructureInputs) -> dict[str, CapitalStructure]:
    """Conservative, moderate and aggressive structures (20/40/60% debt)."""
    return {name: structure_at_ratio(inputs, ratio) for name, ratio in STANDARD_DEBT_RATIOS.items()}
