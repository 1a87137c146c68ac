"""
Controller State
Everything the convergence controller remembers between iterations.

Owned exclusively by one loop run: created at loop start, discarded after
the final report. The controller never mutates a state it was given; each
evaluation returns a successor state.
"""
from typing import Dict, List, Set

from pydantic import BaseModel


class ControllerState(BaseModel):
    # Score of every completed review phase, verify outcome notwithstanding
    history: List[float] = []
    # Last score whose preceding verify passed
    previous_score: float = 0.0
    consecutive_at_target: int = 0

    # Recurrence tracking: issue key → iteration first observed
    seen_issue_first_iteration: Dict[str, int] = {}
    prev_issue_keys: Set[str] = set()

    # Coverage tracking (gaps are skipped, never interpolated)
    coverage_history: List[float] = []
    pending_coverage_debt: bool = False

    last_iteration: int = 0
