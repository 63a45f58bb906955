"""
Weighted average cost of capital.

WACC = kd·(1 - t)·wd + ke·we, with wd + we = 1.

Costs and rates are decimals (0.06 for 6%). Weights are fractions of
total capital, never percentages.
"""

import math
from dataclasses import dataclass
from typing import Optional

from valuation_engine.utils.constants import DEFAULT_TERMINAL_GROWTH, WEIGHT_TOLERANCE


@dataclass(frozen=True)
class CapitalStructureInputs:
    """
    Balance-sheet and income figures of a firm.

    Market values set the WACC weights; book figures feed the leverage
    ratios.
    """
    total_debt: float
    total_equity: float
    market_value_debt: float
    market_value_equity: float
    cost_of_debt: float
    cost_of_equity: float
    tax_rate: float
    ebit: float
    interest_expense: float
    total_assets: float
    total_liabilities: float
    operating_cash_flow: float
    total_debt_service: float
    cash_and_equivalents: float = 0.0

    def __post_init__(self) -> None:
        for name, value in vars(self).items():
            if not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {name}={value!r}")
        # ebit, total_equity and operating_cash_flow may be negative
        for name in (
            "total_debt",
            "market_value_debt",
            "market_value_equity",
            "cost_of_debt",
            "cost_of_equity",
            "interest_expense",
            "total_assets",
            "total_liabilities",
            "total_debt_service",
            "cash_and_equivalents",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} cannot be negative, got {name}={value}")
        if not 0.0 <= self.tax_rate < 1.0:
            raise ValueError(f"tax_rate must be in [0, 1), got tax_rate={self.tax_rate}")
        if self.market_value_debt + self.market_value_equity <= 0:
            raise ValueError("Market value of debt plus equity must be positive")

    @property
    def total_capital(self) -> float:
        return self.market_value_debt + self.market_value_equity


@dataclass(frozen=True)
class WACCBreakdown:
    """
    Components of a WACC calculation.

    Attributes:
        wacc: Weighted average cost of capital
        weighted_cost_of_debt: kd·(1 - t)·wd
        weighted_cost_of_equity: ke·we
        debt_weight: wd
        equity_weight: we
        after_tax_cost_of_debt: kd·(1 - t)
        tax_shield: Reduction in WACC from interest deductibility, kd·t·wd
    """
    wacc: float
    weighted_cost_of_debt: float
    weighted_cost_of_equity: float
    debt_weight: float
    equity_weight: float
    after_tax_cost_of_debt: float
    tax_shield: float


def calculate_wacc(
    cost_of_debt: float,
    cost_of_equity: float,
    tax_rate: float,
    debt_weight: float,
    equity_weight: float,
) -> float:
    """
    Weighted average cost of capital.

    Args:
        cost_of_debt: Pre-tax cost of debt (kd)
        cost_of_equity: Cost of equity (ke)
        tax_rate: Marginal tax rate (t)
        debt_weight: Debt share of capital (wd)
        equity_weight: Equity share of capital (we)

    Returns:
        kd·(1 - t)·wd + ke·we

    Raises:
        ValueError: If the weights do not sum to 1, a weight is negative,
                    or the tax rate is outside [0, 1)

    Examples:
        >>> round(calculate_wacc(0.06, 0.12, 0.25, 0.4, 0.6), 4)
        0.09
    """
    if debt_weight < 0 or equity_weight < 0:
        raise ValueError(
            f"Weights cannot be negative, got debt_weight={debt_weight}, equity_weight={equity_weight}"
        )
    if abs(debt_weight + equity_weight - 1.0) > WEIGHT_TOLERANCE:
        raise ValueError(
            f"Weights must sum to 1, got debt_weight + equity_weight = {debt_weight + equity_weight}"
        )
    if not 0.0 <= tax_rate < 1.0:
        raise ValueError(f"tax_rate must be in [0, 1), got tax_rate={tax_rate}")

    return cost_of_debt * (1.0 - tax_rate) * debt_weight + cost_of_equity * equity_weight


def weights_from_ratio(debt_to_equity: float) -> tuple[float, float]:
    """
    Capital weights implied by a debt-to-equity ratio.

    Returns:
        (debt_weight, equity_weight) = (D/E / (1 + D/E), 1 / (1 + D/E))

    Examples:
        >>> weights_from_ratio(1.0)
        (0.5, 0.5)
    """
    if debt_to_equity < 0 or math.isnan(debt_to_equity):
        raise ValueError(f"Debt-to-equity cannot be negative, got debt_to_equity={debt_to_equity}")
    return debt_to_equity / (1.0 + debt_to_equity), 1.0 / (1.0 + debt_to_equity)


def wacc_breakdown(inputs: CapitalStructureInputs) -> WACCBreakdown:
    """WACC of a firm weighted by the market values of its debt and equity."""
    debt_weight = inputs.market_value_debt / inputs.total_capital
    equity_weight = 1.0 - debt_weight
    after_tax = inputs.cost_of_debt * (1.0 - inputs.tax_rate)

    return WACCBreakdown(
        wacc=calculate_wacc(
            inputs.cost_of_debt, inputs.cost_of_equity, inputs.tax_rate, debt_weight, equity_weight
        ),
        weighted_cost_of_debt=after_tax * debt_weight,
        weighted_cost_of_equity=inputs.cost_of_equity * equity_weight,
        debt_weight=debt_weight,
        equity_weight=equity_weight,
        after_tax_cost_of_debt=after_tax,
        tax_shield=inputs.cost_of_debt * inputs.tax_rate * debt_weight,
    )


def unlever_cost_of_equity(
    cost_of_equity: float, cost_of_debt: float, tax_rate: float, debt_to_equity: float
) -> float:
    """
    Cost of equity of the same firm without debt (Modigliani-Miller with taxes).

    ku = (ke + kd·(1 - t)·D/E) / (1 + (1 - t)·D/E)
    """
    if debt_to_equity < 0:
        raise ValueError(f"Debt-to-equity cannot be negative, got debt_to_equity={debt_to_equity}")
    leverage = (1.0 - tax_rate) * debt_to_equity
    return (cost_of_equity + cost_of_debt * leverage) / (1.0 + leverage)


def relever_cost_of_equity(
    unlevered_cost: float, cost_of_debt: float, tax_rate: float, debt_to_equity: float
) -> float:
    """
    Cost of equity at a given leverage (Modigliani-Miller with taxes).

    ke = ku + (ku - kd)·(1 - t)·D/E

    Examples:
        >>> round(relever_cost_of_equity(0.10, 0.05, 0.2, 1.0), 4)
        0.14
    """
    if debt_to_equity < 0:
        raise ValueError(f"Debt-to-equity cannot be negative, got debt_to_equity={debt_to_equity}")
    return unlevered_cost + (unlevered_cost - cost_of_debt) * (1.0 - tax_rate) * debt_to_equity


def enterprise_value_impact(
    current_wacc: float,
    optimized_wacc: float,
    free_cash_flow: float,
    growth_rate: float = DEFAULT_TERMINAL_GROWTH,
) -> Optional[float]:
    """
    Change in Gordon-growth enterprise value from a WACC change.

    EV = FCF / (WACC - g)

    Returns:
        EV(optimized) - EV(current), or None when either WACC does not
        exceed the growth rate (the perpetuity has no finite value)
    """
    if current_wacc <= growth_rate or optimized_wacc <= growth_rate:
        return None
    current_value = free_cash_flow / (current_wacc - growth_rate)
    optimized_value = free_cash_flow / (optimized_wacc - growth_rate)
    return optimized_value - current_value
