"""
Constants
Centralised storage for dimension weights, severities and stop thresholds.
"""
SEVERITIES = ["P0", "P1", "P2", "P3"]

# Dimension weights: must sum to 1.0
DIMENSION_WEIGHTS = {
    "correctness": 0.15,
    "completeness": 0.10,
    "robustness": 0.10,
    "readability": 0.10,
    "maintainability": 0.10,
    "complexity": 0.08,
    "duplication": 0.07,
    "test_coverage": 0.10,
    "test_quality": 0.05,
    "security": 0.08,
    "documentation": 0.04,
    "style": 0.03,
}

# Early-exit thresholds
EXCELLENT_SCORE = 95.0
STUCK_LOW_MARGIN = 20.0
STUCK_LOW_MIN_ITERATION = 5
STUCK_RECURRING_MIN = 3
NO_IMPROVEMENT_WINDOW = 3

# Trend detection (strict upper bounds)
OSCILLATION_WINDOW = 4
OSCILLATION_MAX_SWING = 3.0
DIMINISHING_WINDOW = 3
DIMINISHING_MAX_DELTA = 1.0

# Convergence
CONVERGED_MIN_AT_TARGET = 2
CONVERGED_MAX_DELTA = 5.0

# Coverage debt is raised when coverage drops by more than this many points
COVERAGE_DROP_TOLERANCE = 1.0

# Fix batch cap bounds
MIN_FIX_BATCH_CAP = 5
MAX_FIX_BATCH_CAP = 7
