"""
Trend Predicate Tests
=====================
Pins the boundary semantics of the stop predicates with literal fixtures.
Both thresholds are strict: a swing of exactly 3.0 is not oscillating and a
delta of exactly 1.0 is not diminishing.
"""
from fix_iterate.utils.trend import is_diminishing, is_oscillating, no_improvement


# ---------------------------------------------------------------------------
# no_improvement
# ---------------------------------------------------------------------------
def test_no_improvement_flat_tail():
    assert no_improvement([60, 62, 62, 62], 3) is True


def test_no_improvement_decreasing_tail():
    assert no_improvement([70, 65, 64, 60], 3) is True


def test_no_improvement_rising_tail():
    assert no_improvement([60, 61, 62], 3) is False


def test_no_improvement_only_looks_at_last_n():
    # An earlier rise does not matter
    assert no_improvement([50, 70, 69, 69], 3) is True
    # A rise inside the window does
    assert no_improvement([70, 69, 69, 70], 3) is False


def test_no_improvement_needs_n_values():
    assert no_improvement([62, 62], 3) is False
    assert no_improvement([], 3) is False


# ---------------------------------------------------------------------------
# is_oscillating
# ---------------------------------------------------------------------------
def test_oscillating_wide_swing_is_not_oscillating():
    # up, down, up but swing = 74 - 70 = 4
    assert is_oscillating([70, 73, 71, 74]) is False


def test_oscillating_narrow_swing():
    # up, down, up with swing 2.5
    assert is_oscillating([70, 72, 70.5, 72.5]) is True


def test_oscillating_down_up_down():
    assert is_oscillating([75, 73, 74, 72.5]) is True


def test_oscillating_swing_exactly_three_is_not_oscillating():
    assert is_oscillating([70, 73, 71, 72]) is False


def test_oscillating_swing_just_below_three():
    assert is_oscillating([70, 72.9, 71, 72]) is True


def test_oscillating_requires_alternation():
    assert is_oscillating([70, 71, 72, 71]) is False


def test_oscillating_flat_step_breaks_alternation():
    assert is_oscillating([70, 71, 71, 70]) is False


def test_oscillating_uses_last_four_values():
    assert is_oscillating([40, 55, 70, 72, 70.5, 72.5]) is True


def test_oscillating_needs_four_values():
    assert is_oscillating([70, 72, 70.5]) is False


# ---------------------------------------------------------------------------
# is_diminishing
# ---------------------------------------------------------------------------
def test_diminishing_small_deltas():
    assert is_diminishing([80, 80.5, 81, 81.3], 3) is True


def test_diminishing_delta_exactly_one_is_progress():
    assert is_diminishing([80, 81, 82, 83], 3) is False


def test_diminishing_uses_absolute_deltas():
    assert is_diminishing([80, 79.5, 79.8, 79.4]) is True


def test_diminishing_one_large_delta_breaks_it():
    assert is_diminishing([80, 80.5, 82, 82.3]) is False


def test_diminishing_needs_n_plus_one_values():
    assert is_diminishing([80, 80.5, 81], 3) is False
