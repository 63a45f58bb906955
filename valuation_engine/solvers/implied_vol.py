"""
Implied volatility solver with automatic method selection.

Newton-Raphson on the Black-Scholes price (with vega as the derivative)
is tried first; Brent's method is the fallback when Newton stalls or
leaves the volatility bounds.
"""

import math
from typing import Optional

from valuation_engine.core.black_scholes import black_scholes_price, vega
from valuation_engine.solvers.brent import brent_iv
from valuation_engine.solvers.newton_raphson import newton_raphson
from valuation_engine.utils.constants import (
    IV_INITIAL_GUESS,
    IV_MAX_ITERATIONS,
    IV_MAX_VOL,
    IV_MIN_VEGA,
    IV_MIN_VOL,
    IV_PRICE_TOLERANCE,
    PERCENT_UNIT,
)
from valuation_engine.utils.types import ImpliedVolResult, OptionContract


def brenner_subrahmanyam_approximation(market_price: float, S: float, T: float) -> float:
    """
    Brenner-Subrahmanyam approximation for ATM implied volatility.

    Formula (for ATM):
        σ ≈ √(2π/T) × (C/S)

    Reference:
        Brenner, M., & Subrahmanyam, M. G. (1988). A Simple Formula to
        Compute the Implied Standard Deviation. Financial Analysts Journal, 44(5), 80-83.
    """
    if S <= 0 or T <= 0 or market_price <= 0:
        return IV_INITIAL_GUESS

    sigma_guess = math.sqrt(2.0 * math.pi / T) * (market_price / S)

    return max(0.01, min(sigma_guess, 5.0))


def get_initial_guess(market_price: float, contract: OptionContract) -> float:
    """Brenner-Subrahmanyam near the money, a fixed guess otherwise."""
    if 0.9 <= contract.moneyness <= 1.1:
        return brenner_subrahmanyam_approximation(
            market_price, contract.underlying_value, contract.time_to_expiry
        )
    return IV_INITIAL_GUESS


def validate_arbitrage_bounds(market_price: float, contract: OptionContract) -> Optional[str]:
    """
    Check if a market price violates no-arbitrage bounds.

    Returns:
        None if valid, error message string if a violation is detected
    """
    T = contract.time_to_expiry
    discount_spot = contract.underlying_value * math.exp(-contract.dividend_yield * T)
    discount_strike = contract.strike * math.exp(-contract.risk_free_rate * T)

    if contract.option_type == "call":
        lower_bound = max(discount_spot - discount_strike, 0.0)
        upper_bound = discount_spot
    else:
        lower_bound = max(discount_strike - discount_spot, 0.0)
        upper_bound = discount_strike

    label = contract.option_type.capitalize()
    if market_price < lower_bound - 1e-6:
        return f"{label} price {market_price:.4f} below lower bound {lower_bound:.4f}"
    if market_price > upper_bound + 1e-6:
        return f"{label} price {market_price:.4f} above upper bound {upper_bound:.4f}"

    return None


def newton_iv(
    market_price: float,
    contract: OptionContract,
    initial_guess: float,
    max_iterations: int = IV_MAX_ITERATIONS,
    price_tolerance: float = IV_PRICE_TOLERANCE,
) -> ImpliedVolResult:
    """
    Solve for implied volatility with the generic Newton-Raphson solver.

    Steps outside [IV_MIN_VOL, IV_MAX_VOL] and vega below IV_MIN_VEGA
    end the iteration unsuccessfully so the caller can fall back to Brent.
    """
    S = contract.underlying_value
    K = contract.strike
    T = contract.time_to_expiry
    r = contract.risk_free_rate
    q = contract.dividend_yield

    def pricing_error(sigma: float) -> float:
        if not IV_MIN_VOL <= sigma <= IV_MAX_VOL:
            return math.nan
        return black_scholes_price(S, K, T, r, sigma, q, contract.option_type) - market_price

    def raw_vega(sigma: float) -> float:
        if not IV_MIN_VOL <= sigma <= IV_MAX_VOL:
            return math.nan
        return vega(S, K, T, r, sigma, q) * PERCENT_UNIT

    result = newton_raphson(
        pricing_error,
        raw_vega,
        initial_guess=initial_guess,
        tolerance=price_tolerance,
        max_iterations=max_iterations,
        min_derivative=IV_MIN_VEGA,
    )

    return ImpliedVolResult(
        volatility=result.root,
        iterations=result.iterations,
        method="newton-raphson",
        success=result.success,
        message=result.message,
    )


def implied_volatility(
    market_price: float,
    contract: OptionContract,
    method: str = "auto",
    initial_guess: Optional[float] = None,
) -> ImpliedVolResult:
    """
    Solve for the volatility that reproduces a market price.

    Args:
        market_price: Observed price
        contract: Contract whose volatility field is ignored
        method: "auto" (default), "newton", or "brent"
        initial_guess: Starting volatility (auto-generated if None)

    Returns:
        ImpliedVolResult from the method that produced the answer

    Raises:
        ValueError: If the market price violates no-arbitrage bounds or
                    the method name is unknown

    Examples:
        >>> contract = OptionContract(100, 100, 1.0, 0.05, 0.2)
        >>> result = implied_volatility(10.45, contract)
        >>> round(result.volatility, 2)
        0.2
    """
    if method not in ("auto", "newton", "brent"):
        raise ValueError(f"method must be 'auto', 'newton' or 'brent', got '{method}'")

    violation = validate_arbitrage_bounds(market_price, contract)
    if violation:
        raise ValueError(f"Arbitrage violation detected: {violation}")

    if initial_guess is None:
        initial_guess = get_initial_guess(market_price, contract)

    if method in ("auto", "newton"):
        nr_result = newton_iv(market_price, contract, initial_guess)

        if nr_result.success or method == "newton":
            return nr_result

    return brent_iv(market_price, contract)
