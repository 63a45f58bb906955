"""
Brent's method for implied volatility calculation.

Brent's method (bisection combined with inverse quadratic interpolation)
is the robust fallback when Newton-Raphson fails. It converges whenever
the pricing error changes sign between the volatility bounds.
"""

import logging

from scipy.optimize import brentq

from valuation_engine.core.black_scholes import black_scholes_price
from valuation_engine.utils.constants import IV_MAX_VOL, IV_MIN_VOL, IV_VOL_TOLERANCE
from valuation_engine.utils.types import ImpliedVolResult, OptionContract

logger = logging.getLogger(__name__)


def brent_iv(
    market_price: float,
    contract: OptionContract,
    vol_lower: float = IV_MIN_VOL,
    vol_upper: float = IV_MAX_VOL,
    tolerance: float = IV_VOL_TOLERANCE,
) -> ImpliedVolResult:
    """
    Solve for implied volatility using Brent's method.

    Args:
        market_price: Observed price of the option
        contract: Contract whose volatility field is ignored
        vol_lower: Lower bound for volatility search
        vol_upper: Upper bound for volatility search
        tolerance: Convergence tolerance on sigma

    Returns:
        ImpliedVolResult; success=False if the bounds do not bracket a root
    """

    def objective(sigma: float) -> float:
        return (
            black_scholes_price(
                contract.underlying_value,
                contract.strike,
                contract.time_to_expiry,
                contract.risk_free_rate,
                sigma,
                contract.dividend_yield,
                contract.option_type,
            )
            - market_price
        )

    try:
        implied_vol, info = brentq(
            objective,
            vol_lower,
            vol_upper,
            xtol=tolerance,
            rtol=1e-8,
            maxiter=100,
            full_output=True,
        )
    except ValueError:
        # brentq raises when objective(a) and objective(b) share a sign
        obj_lower = objective(vol_lower)
        obj_upper = objective(vol_upper)
        logger.warning("Brent bracket failed for market price %s", market_price)

        return ImpliedVolResult(
            volatility=0.0,
            iterations=0,
            method="brent",
            success=False,
            message=(
                f"Brent method failed: objective function doesn't bracket a root. "
                f"obj({vol_lower:.4f}) = {obj_lower:.4f}, "
                f"obj({vol_upper:.4f}) = {obj_upper:.4f}."
            ),
        )

    price_error = abs(objective(implied_vol))

    return ImpliedVolResult(
        volatility=float(implied_vol),
        iterations=info.iterations,
        method="brent",
        success=bool(info.converged),
        message=f"{info.flag} with price error {price_error:.2e}",
    )
