"""
Unit tests for scenario projections.

This module validates:
1. The compounding formulas and the 10M/15% reference projection
2. Scenario ordering (optimistic >= base >= conservative)
3. Record validation and scenario set construction
4. Comparison helpers
"""

import math

import pytest

from valuation_engine.scenarios.projection import (
    RiskFactor,
    ScenarioAssumptions,
    ScenarioDefinition,
    YearlyProjection,
    build_scenario,
    build_scenario_set,
    compare_scenarios,
    effective_growth,
    growth_rates,
    margins,
    project,
)


# ===========================
# Projection Formula Tests
# ===========================


def test_reference_revenue_projection(base_assumptions):
    """10M at 15% for 5 years: year-5 revenue = 10M · 1.15^4 ≈ 17,490,063."""
    projections = project(10_000_000.0, base_assumptions, horizon=5)

    assert [p.year for p in projections] == [1, 2, 3, 4, 5]
    assert projections[0].revenue == 10_000_000.0
    assert projections[-1].revenue == pytest.approx(17_490_062.5)


def test_derived_metrics():
    assumptions = ScenarioAssumptions(
        growth_rate=0.10,
        cost_inflation=0.05,
        capital_efficiency=0.9,
        ebitda_margin=0.30,
        cash_conversion=0.8,
        valuation_multiple=4.0,
    )
    year_3 = project(1_000.0, assumptions, horizon=3)[2]

    revenue = 1_000.0 * 1.1**2
    ebitda = revenue * 0.30 * 0.95**2
    assert year_3.revenue == pytest.approx(revenue)
    assert year_3.ebitda == pytest.approx(ebitda)
    assert year_3.cash_flow == pytest.approx(ebitda * 0.8 * 0.9)
    assert year_3.valuation == pytest.approx(revenue * 4.0)


def test_effective_growth_adjustments():
    assumptions = ScenarioAssumptions(growth_rate=0.20, market_multiplier=1.5, risk_discount=0.5)

    assert effective_growth(assumptions) == pytest.approx(0.15)
    assert assumptions.effective_growth == pytest.approx(0.15)


def test_start_year_label(base_assumptions):
    projections = project(100.0, base_assumptions, horizon=3, start_year=2025)
    assert [p.year for p in projections] == [2025, 2026, 2027]


def test_negative_growth_shrinks_revenue():
    projections = project(100.0, ScenarioAssumptions(growth_rate=-0.10), horizon=3)
    assert projections[-1].revenue == pytest.approx(81.0)


@pytest.mark.parametrize("horizon", [0, -1, 2.5])
def test_invalid_horizon_raises(base_assumptions, horizon):
    with pytest.raises(ValueError):
        project(100.0, base_assumptions, horizon=horizon)


def test_negative_revenue_raises(base_assumptions):
    with pytest.raises(ValueError):
        project(-1.0, base_assumptions)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"growth_rate": -1.0},
        {"growth_rate": 0.1, "risk_discount": 1.0},
        {"growth_rate": 0.1, "cost_inflation": -0.1},
        {"growth_rate": 0.1, "ebitda_margin": -0.2},
        {"growth_rate": 0.1, "market_multiplier": -1.0},
        {"growth_rate": math.nan},
        {"growth_rate": "0.1"},
        {"growth_rate": -0.6, "market_multiplier": 2.0},
        {"growth_rate": -0.5, "market_multiplier": 2.0},
    ],
)
def test_invalid_assumptions_raise(kwargs):
    with pytest.raises(ValueError):
        ScenarioAssumptions(**kwargs)


# ===========================
# Scenario Ordering Tests
# ===========================


@pytest.mark.parametrize("metric", ["revenue", "ebitda", "cash_flow", "valuation"])
def test_scenarios_ordered_by_growth(scenario_set, metric):
    optimistic = scenario_set["optimistic"].final_year.metric(metric)
    base = scenario_set["base"].final_year.metric(metric)
    conservative = scenario_set["conservative"].final_year.metric(metric)

    assert optimistic >= base >= conservative


def test_scenario_set_defaults(scenario_set):
    assert list(scenario_set) == ["base", "optimistic", "conservative"]
    assert [s.probability for s in scenario_set.values()] == [50.0, 25.0, 25.0]
    assert all(s.projections[0].revenue == 10_000_000.0 for s in scenario_set.values())


def test_scenario_set_with_custom(base_assumptions):
    scenarios = build_scenario_set(
        1_000.0,
        base_assumptions,
        ScenarioAssumptions(growth_rate=0.3),
        ScenarioAssumptions(growth_rate=0.0),
        custom={"breakout": (ScenarioAssumptions(growth_rate=0.6), 10.0)},
        probabilities=(40.0, 25.0, 25.0),
    )

    assert list(scenarios) == ["base", "optimistic", "conservative", "breakout"]
    assert scenarios["breakout"].probability == 10.0


def test_scenario_set_probabilities_must_sum_to_100(base_assumptions):
    with pytest.raises(ValueError, match="sum to 100"):
        build_scenario_set(
            1_000.0, base_assumptions, base_assumptions, base_assumptions, probabilities=(50.0, 30.0, 30.0)
        )


def test_custom_name_clash_raises(base_assumptions):
    with pytest.raises(ValueError, match="clashes"):
        build_scenario_set(
            1_000.0,
            base_assumptions,
            base_assumptions,
            base_assumptions,
            custom={"base": (base_assumptions, 0.0)},
        )


# ===========================
# Record Validation Tests
# ===========================


def test_scenario_years_must_be_consecutive():
    projections = (
        YearlyProjection(1, 100.0, 25.0, 20.0, 350.0),
        YearlyProjection(3, 120.0, 30.0, 24.0, 420.0),
    )
    with pytest.raises(ValueError, match="consecutive"):
        ScenarioDefinition(name="gap", projections=projections)


def test_scenario_needs_projections():
    with pytest.raises(ValueError):
        ScenarioDefinition(name="empty", projections=())


@pytest.mark.parametrize("field", ["confidence", "probability"])
def test_scenario_percentages_validated(base_assumptions, field):
    with pytest.raises(ValueError):
        build_scenario("bad", 100.0, base_assumptions, **{field: 120.0})


def test_risk_factor_probability_validated():
    with pytest.raises(ValueError):
        RiskFactor("market", "Demand shock", probability=-5.0, impact="high")


def test_build_scenario_records_assumptions(base_assumptions):
    scenario = build_scenario("base", 100.0, base_assumptions, confidence=70.0)

    growth = [a for a in scenario.assumptions if a.description == "growth rate"]
    assert growth[0].value == 0.15
    assert growth[0].confidence == 70.0


def test_projection_for_missing_year(scenario_set):
    with pytest.raises(ValueError, match="no projection for year 9"):
        scenario_set["base"].projection_for(9)


def test_unknown_metric_raises(scenario_set):
    with pytest.raises(ValueError):
        scenario_set["base"].final_year.metric("profit")


# ===========================
# Comparison Tests
# ===========================


def test_compare_scenarios(scenario_set):
    comparison = compare_scenarios(scenario_set, "revenue", year=5)

    assert comparison["base"][1] == pytest.approx(0.0)
    assert comparison["optimistic"][1] > 0.0
    assert comparison["conservative"][1] < 0.0


def test_compare_scenarios_unknown_reference(scenario_set):
    with pytest.raises(ValueError):
        compare_scenarios(scenario_set, "revenue", year=5, reference="stretch")


def test_growth_rates_and_margins(base_assumptions):
    projections = project(100.0, base_assumptions, horizon=3)

    assert growth_rates(projections) == pytest.approx([15.0, 15.0])
    assert margins(projections) == pytest.approx([25.0, 25.0, 25.0])
