"""
Numerical constants, tolerances and model defaults for the valuation engine.

This module defines edge case thresholds, solver convergence criteria and
the default parameters of every model. Public functions take these as
keyword defaults so callers can override them per call.
"""

# Edge case detection thresholds
EPSILON_TIME = 1e-6  # ~30 seconds; below this, use intrinsic value
EPSILON_VOL = 1e-6  # below this, deterministic pricing

# Normal distribution bounds
MAX_STANDARD_DEVIATIONS = 8.0  # Beyond ±8σ, CDF is effectively 0 or 1

# Greeks reporting units
DAYS_PER_YEAR = 365.0  # Theta reported per calendar day
PERCENT_UNIT = 100.0  # Vega and rho reported per 1 point move

# IRR solver parameters
IRR_INITIAL_GUESS = 0.10
IRR_PRECISION = 1e-7
IRR_MAX_ITERATIONS = 1000
IRR_MIN_DERIVATIVE = 1e-12  # Below this, abort with last stable estimate

# Implied volatility solver parameters
IV_PRICE_TOLERANCE = 1e-6
IV_VOL_TOLERANCE = 1e-8
IV_MAX_ITERATIONS = 50
IV_MIN_VEGA = 1e-6  # Below this, switch to Brent method
IV_INITIAL_GUESS = 0.25
IV_MIN_VOL = 0.001
IV_MAX_VOL = 10.0

# Binomial tree
DEFAULT_TREE_STEPS = 100
MAX_TREE_STEPS = 10_000

# Monte Carlo
DEFAULT_SIMULATIONS = 100_000
MIN_SIMULATIONS = 2
MAX_SIMULATIONS = 10_000_000  # Callers bound their own budget below this
MC_BATCH_SIZE = 250_000  # Paths drawn per batch to bound memory
MC_DEFAULT_SEED = 42

# Confidence analysis
DEFAULT_CONFIDENCE_LEVEL = 0.95
DEFAULT_CONFIDENCE_LEVELS = (0.90, 0.95, 0.99)
PROBABILITY_TOTAL = 100.0
PROBABILITY_TOLERANCE = 1e-6

# Model consistency diagnostics
MODEL_AGREEMENT_TOLERANCE = 0.02  # 2% relative to Black-Scholes
ARBITRAGE_TOLERANCE = 1e-4
PARITY_TOLERANCE = 1e-6

# Scenario projections
DEFAULT_HORIZON = 5
DEFAULT_EBITDA_MARGIN = 0.25
DEFAULT_CASH_CONVERSION = 0.8
DEFAULT_VALUATION_MULTIPLE = 3.5
DEFAULT_SCENARIO_PROBABILITIES = (50.0, 25.0, 25.0)  # base, optimistic, conservative

# Capital structure
WEIGHT_TOLERANCE = 1e-9
DEFAULT_DEBT_RATIO_GRID = tuple(round(0.05 * i, 2) for i in range(0, 17))  # 0%..80%
STANDARD_DEBT_RATIOS = {"conservative": 0.2, "moderate": 0.4, "aggressive": 0.6}
DEFAULT_MAX_DEBT_TO_EBITDA = 3.0
DEFAULT_MIN_INTEREST_COVERAGE = 3.0
DEFAULT_TERMINAL_GROWTH = 0.03

# Credit rating bands: (minimum score, rating, risk premium, description)
CREDIT_RATING_BANDS = (
    (85, "AAA", 0.005, "Excellent credit quality, minimal risk"),
    (75, "AA", 0.01, "High credit quality, low risk"),
    (65, "A", 0.02, "Good credit quality, moderate risk"),
    (55, "BBB", 0.035, "Adequate credit quality, some risk"),
    (45, "BB", 0.055, "Speculative grade, elevated risk"),
    (35, "B", 0.08, "Highly speculative, high risk"),
    (0, "CCC", 0.12, "Substantial risk, near default"),
)

# Portfolio scoring
RISK_SCALING_FACTOR = 10.0
DIVERSIFICATION_PER_OPTION = 2.0
DIVERSIFICATION_CAP = 10.0
