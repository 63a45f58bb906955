"""
Leverage ratios, credit rating estimate and debt capacity.

Every ratio returns None when its denominator is zero so an all-equity
firm or one without interest expense never raises.
"""

import math
from dataclasses import dataclass
from typing import Optional

from valuation_engine.capital.wacc import CapitalStructureInputs
from valuation_engine.utils.constants import (
    CREDIT_RATING_BANDS,
    DEFAULT_MAX_DEBT_TO_EBITDA,
    DEFAULT_MIN_INTEREST_COVERAGE,
)

RATING_ORDER = tuple(band[1] for band in CREDIT_RATING_BANDS)


@dataclass(frozen=True)
class LeverageMetrics:
    debt_to_equity: Optional[float]
    debt_to_assets: Optional[float]
    equity_to_assets: Optional[float]
    interest_coverage: Optional[float]
    debt_service_coverage: Optional[float]
    times_interest_earned: Optional[float]
    cash_coverage: Optional[float]
    debt_to_ebit: Optional[float]
    debt_to_capital: Optional[float]


@dataclass(frozen=True)
class CreditAssessment:
    """
    Estimated credit rating.

    Attributes:
        rating: Letter rating, AAA (best) to CCC (worst)
        score: Points out of 100
        risk_premium: Spread over the risk-free cost of debt
        description: Short text for the rating
    """
    rating: str
    score: int
    risk_premium: float
    description: str

    @property
    def rank(self) -> int:
        """Ordinal position, 0 for AAA; lower is better."""
        return RATING_ORDER.index(self.rating)


@dataclass(frozen=True)
class DebtCapacity:
    leverage_limit: float
    coverage_limit: Optional[float]
    max_debt: float
    additional_capacity: float
    binding_constraint: str


def safe_ratio(numerator: float, denominator: float) -> Optional[float]:
    """
    numerator / denominator, or None when the denominator is zero.

    Examples:
        >>> safe_ratio(10.0, 4.0)
        2.5
        >>> safe_ratio(10.0, 0.0) is None
        True
    """
    if denominator == 0:
        return None
    return numerator / denominator


def leverage_metrics(inputs: CapitalStructureInputs) -> LeverageMetrics:
    """Book-value leverage and coverage ratios of a firm."""
    interest_coverage = safe_ratio(inputs.ebit, inputs.interest_expense)

    return LeverageMetrics(
        debt_to_equity=safe_ratio(inputs.total_debt, inputs.total_equity),
        debt_to_assets=safe_ratio(inputs.total_liabilities, inputs.total_assets),
        equity_to_assets=safe_ratio(inputs.total_equity, inputs.total_assets),
        interest_coverage=interest_coverage,
        debt_service_coverage=safe_ratio(inputs.operating_cash_flow, inputs.total_debt_service),
        times_interest_earned=interest_coverage,
        cash_coverage=safe_ratio(
            inputs.operating_cash_flow + inputs.cash_and_equivalents, inputs.total_debt_service
        ),
        debt_to_ebit=safe_ratio(inputs.total_debt, inputs.ebit),
        debt_to_capital=safe_ratio(inputs.total_debt, inputs.total_debt + inputs.total_equity),
    )


def _band_points(value: Optional[float], thresholds: tuple, higher_is_better: bool, undefined: int) -> int:
    if value is None:
        return undefined
    for threshold, points in thresholds:
        if (value >= threshold) if higher_is_better else (value <= threshold):
            return points
    return 5


def estimate_credit_rating(metrics: LeverageMetrics, inputs: CapitalStructureInputs) -> CreditAssessment:
    """
    Score leverage, interest coverage, debt service coverage and cash flow
    quality (25 points each) and map the total to a letter rating.

    Undefined coverage ratios mean there is nothing to cover and score
    full points; an undefined debt-to-equity ratio (no equity) scores the
    minimum.

    Returns:
        CreditAssessment for the first band whose minimum score is met
    """
    debt_to_equity = metrics.debt_to_equity
    if debt_to_equity is not None and debt_to_equity < 0:
        # negative book equity
        debt_to_equity = None

    score = _band_points(
        debt_to_equity, ((0.3, 25), (0.6, 20), (1.0, 15), (1.5, 10)), False, undefined=5
    )
    score += _band_points(
        metrics.interest_coverage, ((8.0, 25), (4.0, 20), (2.5, 15), (1.5, 10)), True, undefined=25
    )
    score += _band_points(
        metrics.debt_service_coverage, ((2.0, 25), (1.5, 20), (1.25, 15), (1.0, 10)), True, undefined=25
    )
    cash_flow_quality = inputs.operating_cash_flow / (inputs.ebit or 1.0)
    score += _band_points(cash_flow_quality, ((0.9, 25), (0.7, 20), (0.5, 15), (0.3, 10)), True, undefined=5)

    _, rating, premium, description = next(band for band in CREDIT_RATING_BANDS if score >= band[0])
    return CreditAssessment(rating=rating, score=score, risk_premium=premium, description=description)


def debt_capacity(
    ebitda: float,
    ebit: float,
    cost_of_debt: float,
    max_debt_to_ebitda: float = DEFAULT_MAX_DEBT_TO_EBITDA,
    min_interest_coverage: float = DEFAULT_MIN_INTEREST_COVERAGE,
    existing_debt: float = 0.0,
) -> DebtCapacity:
    """
    Largest debt load meeting both a leverage and a coverage covenant.

    Leverage limit: EBITDA × max debt/EBITDA.
    Coverage limit: EBIT / (min coverage × kd); absent when kd is zero.

    Args:
        ebitda: Earnings before interest, taxes, depreciation, amortization
        ebit: Earnings before interest and taxes
        cost_of_debt: Interest rate on new debt
        max_debt_to_ebitda: Leverage covenant
        min_interest_coverage: Coverage covenant
        existing_debt: Debt already outstanding

    Returns:
        DebtCapacity with the binding limit and the headroom above
        existing debt (never negative)

    Examples:
        >>> capacity = debt_capacity(10.0, 8.0, 0.05)
        >>> capacity.max_debt, capacity.binding_constraint
        (30.0, 'leverage')
    """
    if max_debt_to_ebitda <= 0 or min_interest_coverage <= 0:
        raise ValueError(
            f"Covenants must be positive, got max_debt_to_ebitda={max_debt_to_ebitda}, "
            f"min_interest_coverage={min_interest_coverage}"
        )
    if cost_of_debt < 0 or math.isnan(cost_of_debt):
        raise ValueError(f"Cost of debt cannot be negative, got cost_of_debt={cost_of_debt}")
    if existing_debt < 0:
        raise ValueError(f"Existing debt cannot be negative, got existing_debt={existing_debt}")

    leverage_limit = max(ebitda * max_debt_to_ebitda, 0.0)
    coverage_limit = safe_ratio(ebit, min_interest_coverage * cost_of_debt)
    if coverage_limit is not None:
        coverage_limit = max(coverage_limit, 0.0)

    if coverage_limit is not None and coverage_limit < leverage_limit:
        max_debt, binding = coverage_limit, "coverage"
    else:
        max_debt, binding = leverage_limit, "leverage"

    return DebtCapacity(
        leverage_limit=leverage_limit,
        coverage_limit=coverage_limit,
        max_debt=max_debt,
        additional_capacity=max(max_debt - existing_debt, 0.0),
        binding_constraint=binding,
    )
