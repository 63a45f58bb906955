"""
Closed-form Black-Scholes-Merton valuation with a continuous payout yield.

A strategic (real) option is a call whose underlying is the present value
of the opportunity and whose strike is the investment it requires, so the
same formula serves both market contracts and strategic initiatives.

Two private kernels carry the arithmetic: ``_price`` for the premium and
``_greeks`` for every sensitivity from a single d1/d2 evaluation. The
scalar helpers below validate their arguments once and delegate;
``price_black_scholes`` trusts its already validated ``OptionContract``.

References:
    Black, F., & Scholes, M. (1973). The Pricing of Options and Corporate Liabilities.
    Journal of Political Economy, 81(3), 637-654.
"""

import math

from valuation_engine.core.distributions import normal_cdf, normal_pdf
from valuation_engine.utils.constants import (
    DAYS_PER_YEAR,
    EPSILON_TIME,
    EPSILON_VOL,
    MAX_STANDARD_DEVIATIONS,
    PERCENT_UNIT,
)
from valuation_engine.utils.types import Greeks, OptionContract, OptionType, PricingResult


def _validate_inputs(S: float, K: float, T: float, r: float, sigma: float, q: float) -> None:
    """Reject non-finite or out-of-range scalar inputs. T = 0 is allowed."""
    for name, value in (("S", S), ("K", K), ("T", T), ("r", r), ("sigma", sigma), ("q", q)):
        if not math.isfinite(value):
            raise ValueError(f"{name} must be a finite number, got {name}={value}")
    if S <= 0:
        raise ValueError(f"Spot price must be positive, got S={S}")
    if K <= 0:
        raise ValueError(f"Strike price must be positive, got K={K}")
    if T < 0:
        raise ValueError(f"Time to expiration cannot be negative, got T={T}")
    if r < 0:
        raise ValueError(f"Risk-free rate cannot be negative, got r={r}")
    if sigma < 0:
        raise ValueError(f"Volatility cannot be negative, got sigma={sigma}")
    if q < 0:
        raise ValueError(f"Dividend yield cannot be negative, got q={q}")


def _contract_args(contract: OptionContract):
    return (
        contract.underlying_value,
        contract.strike,
        contract.time_to_expiry,
        contract.risk_free_rate,
        contract.volatility,
        contract.dividend_yield,
    )


def _is_degenerate(T: float, sigma: float) -> bool:
    """No diffusion left: the payoff is already known."""
    return T < EPSILON_TIME or sigma < EPSILON_VOL


def _d1_d2(S, K, T, r, sigma, q):
    # Degenerate cases collapse to +/- infinity depending on moneyness
    if T < EPSILON_TIME:
        edge = math.inf if S > K else -math.inf
        return edge, edge
    if sigma < EPSILON_VOL:
        edge = math.inf if S * math.exp((r - q) * T) > K else -math.inf
        return edge, edge

    spread = sigma * math.sqrt(T)
    # log(S) - log(K) keeps extreme moneyness from overflowing
    value = (math.log(S) - math.log(K) + (r - q + 0.5 * sigma * sigma) * T) / spread
    return value, value - spread


def _price(S, K, T, r, sigma, q, option_type) -> float:
    """Unchecked premium. ``option_type`` other than "call" prices a put."""
    sign = 1.0 if option_type == "call" else -1.0
    spot_pv = S * math.exp(-q * T)
    strike_pv = K * math.exp(-r * T)

    if T < EPSILON_TIME:
        return max(sign * (spot_pv - strike_pv), 0.0)
    if sigma < EPSILON_VOL:
        forward = S * math.exp((r - q) * T)
        return max(sign * (forward - K), 0.0) * math.exp(-r * T)

    d1_value, d2_value = _d1_d2(S, K, T, r, sigma, q)
    if abs(d1_value) > MAX_STANDARD_DEVIATIONS:
        # Exercise is certain or impossible; the option is its discounted payoff
        return max(sign * (spot_pv - strike_pv), 0.0)

    return sign * (spot_pv * normal_cdf(sign * d1_value) - strike_pv * normal_cdf(sign * d2_value))


def _greeks(S, K, T, r, sigma, q, option_type) -> Greeks:
    """Unchecked sensitivities sharing one d1/d2 and one set of discount factors."""
    is_call = option_type == "call"
    carry = math.exp(-q * T)

    if _is_degenerate(T, sigma):
        # Delta is a step; curvature and the other sensitivities vanish
        if T < EPSILON_TIME:
            reference, step = S, 1.0
        else:
            reference, step = S * math.exp((r - q) * T), carry
        if is_call:
            delta_value = step if reference > K else 0.0
        else:
            delta_value = -step if reference < K else 0.0
        return Greeks(delta=delta_value, gamma=0.0, theta=0.0, vega=0.0, rho=0.0)

    d1_value, d2_value = _d1_d2(S, K, T, r, sigma, q)
    root_t = math.sqrt(T)
    strike_discount = math.exp(-r * T)
    density = normal_pdf(d1_value)

    # Signed exercise probabilities: N(d) for calls, -N(-d) for puts
    if is_call:
        n1, n2 = normal_cdf(d1_value), normal_cdf(d2_value)
    else:
        n1, n2 = -normal_cdf(-d1_value), -normal_cdf(-d2_value)

    decay = -(S * sigma * carry * density) / (2.0 * root_t)
    annual_theta = decay - r * K * strike_discount * n2 + q * S * carry * n1

    return Greeks(
        delta=carry * n1,
        gamma=carry * density / (S * sigma * root_t),
        theta=annual_theta / DAYS_PER_YEAR,
        vega=S * carry * root_t * density / PERCENT_UNIT,
        rho=K * T * strike_discount * n2 / PERCENT_UNIT,
    )


def d1(S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0) -> float:
    """
    d1 = [ln(S/K) + (r - q + σ²/2)T] / (σ√T)

    Returns +/- infinity when T or σ is effectively zero.
    """
    _validate_inputs(S, K, T, r, sigma, q)
    return _d1_d2(S, K, T, r, sigma, q)[0]


def d2(S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0) -> float:
    """d2 = d1 - σ√T; N(d2) is the risk-neutral exercise probability of a call."""
    _validate_inputs(S, K, T, r, sigma, q)
    return _d1_d2(S, K, T, r, sigma, q)[1]


def black_scholes_call(
    S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0
) -> float:
    """
    European call premium, C = S·e^(-qT)·N(d1) - K·e^(-rT)·N(d2).

    Examples:
        >>> price = black_scholes_call(100, 100, 1.0, 0.05, 0.20, 0.0)
        >>> abs(price - 10.4506) < 0.01
        True

    At expiry the discounted intrinsic value is returned; with zero
    volatility the discounted forward payoff; beyond eight standard
    deviations the discounted payoff of certain (or no) exercise.
    """
    _validate_inputs(S, K, T, r, sigma, q)
    return _price(S, K, T, r, sigma, q, "call")


def black_scholes_put(
    S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0
) -> float:
    """
    European put premium, P = K·e^(-rT)·N(-d2) - S·e^(-qT)·N(-d1).

    Examples:
        >>> price = black_scholes_put(100, 100, 1.0, 0.05, 0.20, 0.0)
        >>> abs(price - 5.5735) < 0.01
        True
    """
    _validate_inputs(S, K, T, r, sigma, q)
    return _price(S, K, T, r, sigma, q, "put")


def black_scholes_price(
    S: float,
    K: float,
    T: float,
    r: float,
    sigma: float,
    q: float = 0.0,
    option_type: OptionType = "call",
) -> float:
    """
    Premium of a call or a put.

    Raises:
        ValueError: On invalid inputs or an option_type other than "call"/"put"
    """
    if option_type not in ("call", "put"):
        raise ValueError(f"option_type must be 'call' or 'put', got '{option_type}'")
    _validate_inputs(S, K, T, r, sigma, q)
    return _price(S, K, T, r, sigma, q, option_type)


def intrinsic_value(S: float, K: float, option_type: OptionType = "call") -> float:
    """Immediate exercise value of the option."""
    if option_type == "call":
        return max(S - K, 0.0)
    return max(K - S, 0.0)


# ===========================
# Greeks Calculations
# ===========================


def calculate_greeks(
    S: float,
    K: float,
    T: float,
    r: float,
    sigma: float,
    q: float = 0.0,
    option_type: OptionType = "call",
) -> Greeks:
    """
    All five sensitivities from one validation and one d1/d2 evaluation.

    Theta is per calendar day; vega and rho are per one point (0.01) move.

    Example:
        >>> greeks = calculate_greeks(100, 100, 1.0, 0.05, 0.20)
        >>> print(f"Delta: {greeks.delta:.4f}")
        Delta: 0.6368
    """
    _validate_inputs(S, K, T, r, sigma, q)
    return _greeks(S, K, T, r, sigma, q, option_type)


def delta(
    S: float,
    K: float,
    T: float,
    r: float,
    sigma: float,
    q: float = 0.0,
    option_type: OptionType = "call",
) -> float:
    """∂V/∂S: e^(-qT)·N(d1) for a call, -e^(-qT)·N(-d1) for a put."""
    return calculate_greeks(S, K, T, r, sigma, q, option_type).delta


def gamma(S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0) -> float:
    """∂²V/∂S² = e^(-qT)·φ(d1) / (S·σ·√T), the same for calls and puts."""
    return calculate_greeks(S, K, T, r, sigma, q).gamma


def vega(S: float, K: float, T: float, r: float, sigma: float, q: float = 0.0) -> float:
    """
    ∂V/∂σ per volatility point, S·e^(-qT)·√T·φ(d1) / 100.

    A vega of 0.35 means the premium rises by 0.35 when volatility moves
    from 20% to 21%.
    """
    return calculate_greeks(S, K, T, r, sigma, q).vega


def theta(
    S: float,
    K: float,
    T: float,
    r: float,
    sigma: float,
    q: float = 0.0,
    option_type: OptionType = "call",
) -> float:
    """Value lost per calendar day as expiry approaches."""
    return calculate_greeks(S, K, T, r, sigma, q, option_type).theta


def rho(
    S: float,
    K: float,
    T: float,
    r: float,
    sigma: float,
    q: float = 0.0,
    option_type: OptionType = "call",
) -> float:
    """∂V/∂r per rate point: K·T·e^(-rT)·N(d2)/100, negated with N(-d2) for puts."""
    return calculate_greeks(S, K, T, r, sigma, q, option_type).rho


def price_black_scholes(contract: OptionContract) -> PricingResult:
    """
    Price a contract in closed form and attach its Greeks.

    The contract validated itself on construction, so the kernels are
    called directly.
    """
    args = _contract_args(contract)
    value = max(_price(*args, contract.option_type), 0.0)
    intrinsic = intrinsic_value(contract.underlying_value, contract.strike, contract.option_type)

    return PricingResult(
        value=value,
        model="black-scholes",
        intrinsic_value=intrinsic,
        time_value=value - intrinsic,
        greeks=_greeks(*args, contract.option_type),
    )
