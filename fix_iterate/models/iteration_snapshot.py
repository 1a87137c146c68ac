"""
Iteration Snapshot Model
========================
Pydantic model representing one complete cycle of the fix-iterate loop.

Represents one loop cycle: Review → Decide → Fix → Verify.

Fields:
    iteration         : loop counter (1-based)
    score             : review score of this iteration
    issue_count       : issues reported by the review
    recurring_keys    : issue keys also reported by the previous review
    decision          : "CONTINUE" or "STOP"
    stop_reason       : set when decision is STOP
    planned_fixes     : issue keys handed to the fixer
    escalated_fixes   : planned keys flagged for a different strategy
    fix_outcome       : what the fixer reported (None when stopped before fixing)
    verify_passed     : post-fix verification outcome (None when not run)
    rolled_back       : True if files were reverted after a failed verify
    non_progressing   : True if verify failed even after rollback
    coverage_percent  : coverage observed by the verifier
    iteration_time_seconds: wall clock time for this iteration

Used by:
    - Loop driver to track progress across iterations
    - Results writer to compile the final report
"""
from typing import List, Optional

from pydantic import BaseModel

from .dimension_scores import DimensionScores
from .fix_result import FixOutcome


class IterationSnapshot(BaseModel):
    iteration: int
    score: float
    issue_count: int = 0
    recurring_keys: List[str] = []
    decision: str = ""
    stop_reason: str = ""
    planned_fixes: List[str] = []
    escalated_fixes: List[str] = []
    fix_outcome: Optional[FixOutcome] = None
    verify_passed: Optional[bool] = None
    rolled_back: bool = False
    non_progressing: bool = False
    coverage_percent: Optional[float] = None
    dimensions: Optional[DimensionScores] = None
    iteration_time_seconds: float = 0.0
