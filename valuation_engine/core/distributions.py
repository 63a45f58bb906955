"""
Statistical distributions with numerical safeguards.

This module provides numerically stable implementations of the
standard normal cumulative distribution function (CDF), probability
density function (PDF) and two-sided critical values, with special
handling for extreme values.
"""

import math
from scipy.stats import norm

from valuation_engine.utils.constants import MAX_STANDARD_DEVIATIONS


def normal_cdf(x: float) -> float:
    """
    Standard normal cumulative distribution function with bounds clamping.

    For |x| > 8, the CDF is effectively 0 (x < -8) or 1 (x > 8) due to
    floating point precision limits. We clamp to these values to prevent
    underflow and improve numerical stability.

    Examples:
        >>> normal_cdf(0.0)
        0.5
        >>> normal_cdf(10.0)
        1.0
    """
    if x > MAX_STANDARD_DEVIATIONS:
        return 1.0
    if x < -MAX_STANDARD_DEVIATIONS:
        return 0.0

    return float(norm.cdf(x))


def normal_pdf(x: float) -> float:
    """
    Standard normal probability density function with overflow protection.

    For |x| > 10 the density is below 2e-22 and is returned as zero.

    Notes:
        φ(x) = (1/√(2π)) * exp(-x²/2)
    """
    if abs(x) > 10.0:
        return 0.0

    return (1.0 / math.sqrt(2.0 * math.pi)) * math.exp(-0.5 * x * x)


def z_score(confidence_level: float) -> float:
    """
    Two-sided critical value of the standard normal distribution.

    Args:
        confidence_level: Probability mass inside the interval, in (0, 1)

    Returns:
        z such that P(-z < Z < z) = confidence_level (1.96 for 0.95)

    Raises:
        ValueError: If confidence_level is not strictly between 0 and 1
    """
    if not 0.0 < confidence_level < 1.0:
        raise ValueError(
            f"Confidence level must be between 0 and 1, got confidence_level={confidence_level}"
        )
    return float(norm.ppf(0.5 + confidence_level / 2.0))
