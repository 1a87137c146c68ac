"""
Trend Predicates
================
Pure functions over a score sequence used by the convergence controller.

Boundary convention: both thresholds are strict upper bounds.
    - oscillation swing must be < 3.0 (a swing of exactly 3.0 is not oscillating)
    - every diminishing delta must be < 1.0 (a delta of exactly 1.0 is progress)
"""
from typing import Sequence

from fix_iterate.core.constants import (
    DIMINISHING_MAX_DELTA,
    DIMINISHING_WINDOW,
    OSCILLATION_MAX_SWING,
    OSCILLATION_WINDOW,
)


def no_improvement(seq: Sequence[float], n: int) -> bool:
    """True when the last ``n`` values are non-increasing (each ≤ previous)."""
    if n < 2 or len(seq) < n:
        return False
    window = seq[-n:]
    return all(curr <= prev for prev, curr in zip(window, window[1:]))


def is_oscillating(
    seq: Sequence[float],
    window: int = OSCILLATION_WINDOW,
    max_swing: float = OSCILLATION_MAX_SWING,
) -> bool:
    """
    True when the last ``window`` values alternate direction and stay within
    a swing smaller than ``max_swing``.

    A flat step (equal neighbours) has no direction and breaks alternation.
    """
    if len(seq) < window:
        return False
    values = seq[-window:]
    steps = [curr - prev for prev, curr in zip(values, values[1:])]
    if any(step == 0 for step in steps):
        return False
    alternating = all((a > 0) != (b > 0) for a, b in zip(steps, steps[1:]))
    return alternating and (max(values) - min(values)) < max_swing


def is_diminishing(
    seq: Sequence[float],
    n: int = DIMINISHING_WINDOW,
    max_delta: float = DIMINISHING_MAX_DELTA,
) -> bool:
    """True when each of the last ``n`` consecutive differences is below ``max_delta`` in magnitude."""
    if n < 1 or len(seq) < n + 1:
        return False
    values = seq[-(n + 1):]
    return all(abs(curr - prev) < max_delta for prev, curr in zip(values, values[1:]))
