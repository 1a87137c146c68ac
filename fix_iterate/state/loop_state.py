"""
Loop State
TypedDict holding everything one fix-iterate run accumulates for the final report.
Fields: focus, iteration, snapshots, score history, fix totals, stop reason, etc.
"""
from typing import List, Optional, TypedDict

from fix_iterate.models.dimension_scores import DimensionScores
from fix_iterate.models.iteration_snapshot import IterationSnapshot
from fix_iterate.state.controller_state import ControllerState


class LoopState(TypedDict):
    # Run parameters
    focus: str
    target_score: float
    max_iterations: int
    single_agent: bool

    # Progress tracking
    iteration: int
    snapshots: List[IterationSnapshot]
    score_history: List[float]
    controller_state: ControllerState

    # Dimension breakdown of the first and latest review
    first_dimensions: Optional[DimensionScores]
    last_dimensions: Optional[DimensionScores]

    # Fix totals
    fixes_applied: List[str]
    fixes_skipped: List[str]
    fixes_reverted: List[str]
    files_touched: List[str]
    tests_written: List[str]
    rollback_count: int
    non_progressing_count: int

    # Timing
    start_time: float

    # Final summary
    status: str                 # pending, stopped, error
    stop_reason: str
    final_score: float
    execution_summary: str
