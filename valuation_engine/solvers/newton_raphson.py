"""
Generic Newton-Raphson root finder.

The update is x_{n+1} = x_n - f(x_n) / f'(x_n). The method converges
quadratically near a simple root but can diverge from a poor starting
point, so every exit path reports whether a convergence criterion was
met instead of raising. Used by the IRR and implied volatility solvers.

Functions defined only above some bound (NPV needs rate > -100%) pass
``lower_bound``; a step that would cross it is replaced by a move
halfway from the current estimate to the bound.
"""

import logging
import math
from typing import Callable, Optional

from valuation_engine.utils.types import RootResult

logger = logging.getLogger(__name__)


def newton_raphson(
    func: Callable[[float], float],
    derivative: Callable[[float], float],
    initial_guess: float,
    tolerance: float = 1e-7,
    max_iterations: int = 1000,
    min_derivative: float = 1e-12,
    lower_bound: Optional[float] = None,
) -> RootResult:
    """
    Solve func(x) = 0 with Newton-Raphson iteration.

    Args:
        func: Function whose root is sought
        derivative: First derivative of func
        initial_guess: Starting estimate
        tolerance: Stop when |func(x)| < tolerance or |Δx| < tolerance
        max_iterations: Iteration cap guaranteeing termination
        min_derivative: Abort when |derivative(x)| falls below this
        lower_bound: Exclusive lower edge of func's domain, if any

    Returns:
        RootResult with the last estimate and a success flag

    Notes:
        - success=False with the last stable estimate if the derivative
          vanishes or a step leaves the finite numbers
        - success=False with the last estimate at the iteration cap
        - the estimate never reaches lower_bound
    """
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be positive, got {max_iterations}")
    if tolerance <= 0:
        raise ValueError(f"tolerance must be positive, got {tolerance}")
    if lower_bound is not None and initial_guess <= lower_bound:
        raise ValueError(
            f"initial_guess must lie above lower_bound, got {initial_guess} <= {lower_bound}"
        )

    x = initial_guess
    damped_steps = 0

    def failure(message: str, iterations: int) -> RootResult:
        if damped_steps:
            message += f"; step left the domain {damped_steps} time(s)"
        return RootResult(root=x, iterations=iterations, success=False, message=message)

    for iteration in range(1, max_iterations + 1):
        fx = func(x)

        if abs(fx) < tolerance:
            return RootResult(
                root=x,
                iterations=iteration,
                success=True,
                message=f"Converged in {iteration} iterations (function tol)",
            )

        dfx = derivative(x)

        if not math.isfinite(dfx) or abs(dfx) < min_derivative:
            logger.warning("Newton-Raphson derivative vanished at x=%s (iteration %d)", x, iteration)
            return failure(f"Derivative too small ({dfx:.2e}) at iteration {iteration}", iteration)

        x_new = x - fx / dfx

        if lower_bound is not None and x_new <= lower_bound:
            logger.debug(
                "Newton-Raphson step to x=%s left the domain above %s (iteration %d)",
                x_new,
                lower_bound,
                iteration,
            )
            damped_steps += 1
            x = 0.5 * (x + lower_bound)
            continue

        if not math.isfinite(x_new):
            logger.warning("Newton-Raphson step diverged from x=%s (iteration %d)", x, iteration)
            return failure(f"Step diverged at iteration {iteration}", iteration)

        if abs(x_new - x) < tolerance:
            return RootResult(
                root=x_new,
                iterations=iteration,
                success=True,
                message=f"Converged in {iteration} iterations (step tol)",
            )

        x = x_new

    logger.warning("Newton-Raphson hit the %d iteration cap at x=%s", max_iterations, x)
    return failure(f"Max iterations ({max_iterations}) reached without convergence", max_iterations)
