"""
Unit tests for the Newton-Raphson root finder and the IRR/NPV helpers.

This module validates:
1. Generic root finding and its failure modes
2. IRR against known solutions
3. NPV, payback and discounted payback
"""

import math

import pytest

from valuation_engine.solvers.irr import (
    discounted_payback_period,
    irr,
    npv,
    npv_derivative,
    payback_period,
)
from valuation_engine.solvers.newton_raphson import newton_raphson
from valuation_engine.utils.constants import IRR_PRECISION


# ===========================
# Newton-Raphson Tests
# ===========================


def test_newton_finds_square_root():
    result = newton_raphson(lambda x: x * x - 2.0, lambda x: 2.0 * x, initial_guess=1.0)

    assert result.success
    assert result.root == pytest.approx(math.sqrt(2.0), abs=1e-7)
    assert result.iterations < 10


def test_newton_vanishing_derivative():
    result = newton_raphson(lambda x: x * x + 1.0, lambda x: 2.0 * x, initial_guess=0.0)

    assert not result.success
    assert result.root == 0.0
    assert "Derivative too small" in result.message


def test_newton_iteration_cap():
    # x³ - 2x + 2 cycles between 0 and 1 from x=0
    result = newton_raphson(
        lambda x: x**3 - 2.0 * x + 2.0, lambda x: 3.0 * x * x - 2.0, initial_guess=0.0, max_iterations=25
    )

    assert not result.success
    assert result.iterations == 25
    assert "Max iterations" in result.message


def test_newton_nan_derivative_stops():
    result = newton_raphson(lambda x: x - 5.0, lambda x: math.nan, initial_guess=1.0)

    assert not result.success
    assert result.root == 1.0


def test_newton_stays_above_lower_bound():
    # From x=3 the raw step for log(x) lands at -0.3, outside the domain
    result = newton_raphson(math.log, lambda x: 1.0 / x, initial_guess=3.0, lower_bound=0.0)

    assert result.success
    assert result.root == pytest.approx(1.0, abs=1e-7)


def test_newton_initial_guess_below_bound_raises():
    with pytest.raises(ValueError):
        newton_raphson(math.log, lambda x: 1.0 / x, initial_guess=0.0, lower_bound=0.0)


@pytest.mark.parametrize("kwargs", [{"max_iterations": 0}, {"tolerance": 0.0}])
def test_newton_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        newton_raphson(lambda x: x, lambda x: 1.0, initial_guess=1.0, **kwargs)


# ===========================
# IRR Tests
# ===========================


def test_irr_single_period():
    result = irr([-100.0, 110.0])

    assert result.converged
    assert result.rate == pytest.approx(0.10, abs=1e-7)


def test_irr_known_solution():
    """-1000 then 300, 400, 500, 200 → IRR ≈ 15.4%"""
    flows = [-1000.0, 300.0, 400.0, 500.0, 200.0]
    result = irr(flows)

    assert result.converged
    assert npv(result.rate, flows) == pytest.approx(0.0, abs=1e-6)
    assert 0.15 < result.rate < 0.16


def test_irr_negative_rate():
    result = irr([-100.0, 50.0, 40.0])

    assert result.converged
    assert result.rate < 0.0
    assert npv(result.rate, [-100.0, 50.0, 40.0]) == pytest.approx(0.0, abs=1e-6)


def test_irr_non_convergence_is_flagged():
    result = irr([-100.0, 50.0, 40.0], max_iterations=1)

    assert not result.converged
    assert math.isfinite(result.rate)


def test_irr_deeply_negative_rate_stays_in_domain():
    """The first Newton step from 10% lands near -983%; the root is about -55%."""
    flows = [-1000.0, 10.0, 10.0, 10.0, 10.0, 10.0]
    result = irr(flows)

    assert result.converged
    assert -1.0 < result.rate < -0.5
    assert npv(result.rate, flows) == pytest.approx(0.0, abs=1e-6)


def test_irr_reports_steps_that_left_the_domain():
    result = irr([-1000.0, 10.0, 10.0, 10.0, 10.0, 10.0], max_iterations=2)

    assert not result.converged
    assert result.rate > -1.0
    assert "left the domain" in result.message


@pytest.mark.parametrize("rate", [-0.5, -0.2, 0.0, 0.05, 0.25, 0.8, 2.0])
def test_irr_recovers_rate_used_to_price_flows(rate):
    inflows = [100.0, 200.0, 300.0, 400.0]
    investment = sum(cf / (1.0 + rate) ** i for i, cf in enumerate(inflows, 1))
    result = irr([-investment, *inflows])

    assert result.converged
    assert result.rate == pytest.approx(rate, abs=IRR_PRECISION)


def test_irr_initial_guess_outside_domain_raises():
    with pytest.raises(ValueError):
        irr([-100.0, 110.0], initial_guess=-1.0)


@pytest.mark.parametrize("flows", [[-100.0], [], [100.0, 50.0], [-100.0, -50.0]])
def test_irr_invalid_flows(flows):
    with pytest.raises(ValueError):
        irr(flows)


# ===========================
# NPV and Payback Tests
# ===========================


def test_npv_known_value():
    assert npv(0.10, [-100.0, 60.0, 60.0]) == pytest.approx(4.1322, abs=1e-4)


def test_npv_derivative_matches_finite_difference():
    flows = [-1000.0, 300.0, 400.0, 500.0]
    h = 1e-6
    numerical = (npv(0.1 + h, flows) - npv(0.1 - h, flows)) / (2 * h)

    assert npv_derivative(0.1, flows) == pytest.approx(numerical, rel=1e-5)


def test_npv_rejects_rate_at_minus_one():
    with pytest.raises(ValueError):
        npv(-1.0, [-100.0, 110.0])


def test_payback_interpolates():
    assert payback_period([-100.0, 40.0, 40.0, 40.0]) == pytest.approx(2.5)


def test_payback_never_recovered():
    assert payback_period([-100.0, 10.0, 10.0]) is None


def test_discounted_payback_is_later():
    flows = [-100.0, 40.0, 40.0, 40.0, 40.0]

    assert discounted_payback_period(flows, 0.10) > payback_period(flows)
    assert discounted_payback_period(flows, 0.0) == pytest.approx(2.5)
    assert discounted_payback_period(flows[:4], 0.10) is None
