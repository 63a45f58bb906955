"""
Net present value, internal rate of return and payback period.

Cash flows are indexed by period: cash_flows[0] occurs today
(typically the negative investment), cash_flows[i] at the end of
period i. IRR is found with Newton-Raphson starting from 10%; steps
that would cross -100% are pulled back inside the domain.

Series with several sign changes can have several IRRs. The solver
returns the root it converges to from the initial guess and flags
non-convergence; it does not search for other roots.
"""

import logging
from typing import Optional, Sequence

from valuation_engine.solvers.newton_raphson import newton_raphson
from valuation_engine.utils.constants import (
    IRR_INITIAL_GUESS,
    IRR_MAX_ITERATIONS,
    IRR_MIN_DERIVATIVE,
    IRR_PRECISION,
)
from valuation_engine.utils.types import IRRResult

logger = logging.getLogger(__name__)


def _validate_rate(rate: float) -> None:
    if rate <= -1.0:
        raise ValueError(f"Discount rate must be greater than -100%, got rate={rate}")


def npv(rate: float, cash_flows: Sequence[float]) -> float:
    """
    Net present value: Σ cf_i / (1 + rate)^i.

    Examples:
        >>> round(npv(0.10, [-100.0, 110.0]), 10)
        0.0
    """
    _validate_rate(rate)
    return sum(cf / (1.0 + rate) ** i for i, cf in enumerate(cash_flows))


def npv_derivative(rate: float, cash_flows: Sequence[float]) -> float:
    """First derivative of NPV with respect to the rate: Σ -i·cf_i / (1 + rate)^(i+1)."""
    _validate_rate(rate)
    return sum(-i * cf / (1.0 + rate) ** (i + 1) for i, cf in enumerate(cash_flows))


def irr(
    cash_flows: Sequence[float],
    precision: float = IRR_PRECISION,
    initial_guess: float = IRR_INITIAL_GUESS,
    max_iterations: int = IRR_MAX_ITERATIONS,
) -> IRRResult:
    """
    Solve for the internal rate of return.

    Args:
        cash_flows: [-investment, cf1, cf2, ...]
        precision: Stop when |NPV| or |Δrate| falls below this
        initial_guess: Starting rate
        max_iterations: Iteration cap

    Returns:
        IRRResult; converged=False still carries the last estimate

    Raises:
        ValueError: If fewer than two cash flows are given or the flows
                    never change sign (no IRR exists), or initial_guess <= -1
    """
    flows = [float(cf) for cf in cash_flows]
    if len(flows) < 2:
        raise ValueError(f"IRR needs at least two cash flows, got {len(flows)}")
    if not any(cf < 0 for cf in flows) or not any(cf > 0 for cf in flows):
        raise ValueError("IRR needs at least one negative and one positive cash flow")

    result = newton_raphson(
        lambda rate: npv(rate, flows),
        lambda rate: npv_derivative(rate, flows),
        initial_guess=initial_guess,
        tolerance=precision,
        max_iterations=max_iterations,
        min_derivative=IRR_MIN_DERIVATIVE,
        lower_bound=-1.0,
    )

    if not result.success:
        logger.warning("IRR did not converge: %s", result.message)

    return IRRResult(
        rate=result.root,
        iterations=result.iterations,
        converged=result.success,
        message=result.message,
    )


def payback_period(cash_flows: Sequence[float]) -> Optional[float]:
    """
    Periods until cumulative cash flow turns non-negative.

    The final period is interpolated linearly, so a payback halfway
    through period 3 returns 2.5. Returns None if the investment is
    never recovered.

    Examples:
        >>> payback_period([-100.0, 40.0, 40.0, 40.0])
        2.5
    """
    cumulative = 0.0
    for period, cf in enumerate(cash_flows):
        previous = cumulative
        cumulative += cf
        if cumulative >= 0 and previous < 0:
            return period - 1 + (-previous / cf)
        if cumulative >= 0 and period == 0:
            return 0.0
    return None


def discounted_payback_period(cash_flows: Sequence[float], rate: float) -> Optional[float]:
    """Payback period of the cash flows discounted at `rate`."""
    _validate_rate(rate)
    discounted = [cf / (1.0 + rate) ** i for i, cf in enumerate(cash_flows)]
    return payback_period(discounted)
