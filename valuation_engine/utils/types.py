"""
Data types and structures for option pricing and root finding.

This module defines the dataclasses shared by the pricing models and
solvers: the option contract, Greeks, pricing results and solver results.
"""

import math
from dataclasses import dataclass, replace
from typing import Literal, Optional

OptionType = Literal["call", "put"]
PricingModel = Literal["black-scholes", "binomial", "monte-carlo"]
ExerciseStyle = Literal["european", "american"]

PRICING_MODELS = ("black-scholes", "binomial", "monte-carlo")


@dataclass(frozen=True)
class OptionContract:
    """
    Immutable container for the inputs of a (real) option.

    For strategic options the underlying value is the present value of
    the expected payoff of the opportunity and the strike is the
    investment required to exercise it.

    Attributes:
        underlying_value: Current value of the underlying asset
        strike: Strike price / investment required
        time_to_expiry: Time to expiration in years (> 0)
        risk_free_rate: Risk-free interest rate (annualized, continuous)
        volatility: Annualized standard deviation of returns (>= 0)
        option_type: Either "call" or "put"
        dividend_yield: Continuous dividend / value-leakage yield
    """
    underlying_value: float
    strike: float
    time_to_expiry: float
    risk_free_rate: float
    volatility: float
    option_type: OptionType = "call"
    dividend_yield: float = 0.0

    def __post_init__(self) -> None:
        """Reject inputs that would silently produce a wrong price."""
        for name in (
            "underlying_value",
            "strike",
            "time_to_expiry",
            "risk_free_rate",
            "volatility",
            "dividend_yield",
        ):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {name}={value!r}")
        if self.underlying_value <= 0:
            raise ValueError(
                f"Underlying value must be positive, got underlying_value={self.underlying_value}"
            )
        if self.strike <= 0:
            raise ValueError(f"Strike must be positive, got strike={self.strike}")
        if self.time_to_expiry <= 0:
            raise ValueError(
                f"Time to expiry must be positive, got time_to_expiry={self.time_to_expiry}"
            )
        if self.risk_free_rate < 0:
            raise ValueError(
                f"Risk-free rate cannot be negative, got risk_free_rate={self.risk_free_rate}"
            )
        if self.volatility < 0:
            raise ValueError(f"Volatility cannot be negative, got volatility={self.volatility}")
        if self.dividend_yield < 0:
            raise ValueError(
                f"Dividend yield cannot be negative, got dividend_yield={self.dividend_yield}"
            )
        if self.option_type not in ("call", "put"):
            raise ValueError(f"Option type must be 'call' or 'put', got {self.option_type}")

    def with_changes(self, **changes) -> "OptionContract":
        """Return a re-validated copy with the given fields replaced."""
        return replace(self, **changes)

    @property
    def moneyness(self) -> float:
        return self.underlying_value / self.strike


@dataclass(frozen=True)
class Greeks:
    """
    Container for option Greeks.

    Attributes:
        delta: ∂V/∂S
        gamma: ∂²V/∂S²
        theta: ∂V/∂t, per calendar day
        vega: ∂V/∂σ, per 1 volatility point
        rho: ∂V/∂r, per 1 rate point
    """
    delta: float
    gamma: float
    theta: float
    vega: float
    rho: float


@dataclass(frozen=True)
class PricingResult:
    """
    Result of pricing an OptionContract with one model.

    Attributes:
        value: Option value (>= 0)
        model: Model used to price
        intrinsic_value: max(S - K, 0) for calls, max(K - S, 0) for puts
        time_value: value - intrinsic_value
        greeks: Closed-form Greeks (Black-Scholes only)
        standard_error: Standard error of the estimate (Monte Carlo only)
        confidence_interval: (lower, upper) around the estimate (Monte Carlo only)
        confidence_level: Level of the confidence interval
        steps: Lattice steps (binomial only)
        simulations: Simulated paths (Monte Carlo only)
    """
    value: float
    model: PricingModel
    intrinsic_value: float
    time_value: float
    greeks: Optional[Greeks] = None
    standard_error: Optional[float] = None
    confidence_interval: Optional[tuple[float, float]] = None
    confidence_level: Optional[float] = None
    steps: Optional[int] = None
    simulations: Optional[int] = None


@dataclass(frozen=True)
class RootResult:
    """
    Result from the generic Newton-Raphson solver.

    Attributes:
        root: Last estimate of the root
        iterations: Number of iterations performed
        success: Whether a convergence criterion was met
        message: Additional information about convergence
    """
    root: float
    iterations: int
    success: bool
    message: str = ""


@dataclass(frozen=True)
class IRRResult:
    """
    Result from the IRR solver.

    A non-converged result still carries the best available estimate;
    callers decide how to present the caveat.
    """
    rate: float
    iterations: int
    converged: bool
    message: str = ""


@dataclass(frozen=True)
class ImpliedVolResult:
    """
    Result from implied volatility solver.

    Attributes:
        volatility: Solved implied volatility (annualized)
        iterations: Number of iterations required for convergence
        method: Method used ('newton-raphson' or 'brent')
        success: Whether the solver converged successfully
        message: Additional information about convergence
    """
    volatility: float
    iterations: int
    method: Literal["newton-raphson", "brent"]
    success: bool
    message: str = ""


@dataclass
class ConsistencyCheck:
    """
    Result from a pricing consistency diagnostic.

    Attributes:
        is_valid: Whether all checks passed
        violations: List of specific violations detected
        details: Dictionary with detailed check results
    """
    is_valid: bool
    violations: list[str]
    details: dict[str, float]
