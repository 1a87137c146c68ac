"""
Decision Model
==============
The controller's answer to one IterationRecord: CONTINUE with a fix plan,
or STOP with a reason. Either way it carries the successor ControllerState.

Stop reasons:
    EXCELLENT       : score reached the excellence ceiling
    STUCK_LOW       : far below target with no improvement, late in the run
    STUCK_RECURRING : the same issues keep coming back without improvement
    OSCILLATING     : score bounces up and down in a narrow band
    DIMINISHING     : score changes have become negligible
    CONVERGED       : target held for consecutive verified iterations
    MAX_ITERATIONS  : iteration budget spent
    NOTHING_TO_FIX  : only issues excluded from automatic fixing remain
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from fix_iterate.state.controller_state import ControllerState
from .issue import Issue

CONTINUE = "CONTINUE"
STOP = "STOP"


class StopReason(str, Enum):
    EXCELLENT = "EXCELLENT"
    STUCK_LOW = "STUCK_LOW"
    STUCK_RECURRING = "STUCK_RECURRING"
    OSCILLATING = "OSCILLATING"
    DIMINISHING = "DIMINISHING"
    CONVERGED = "CONVERGED"
    MAX_ITERATIONS = "MAX_ITERATIONS"
    NOTHING_TO_FIX = "NOTHING_TO_FIX"


# Reasons that mean the loop gave up rather than finished
STALLED_REASONS = frozenset({
    StopReason.STUCK_LOW,
    StopReason.STUCK_RECURRING,
    StopReason.OSCILLATING,
    StopReason.DIMINISHING,
})


class PlannedFix(BaseModel):
    issue: Issue
    # Recurring P0/P1: the previous strategy did not hold, try a different one
    escalate: bool = False


class FixPlan(BaseModel):
    iteration: int
    fixes: List[PlannedFix] = []
    deferred: List[Issue] = []
    coverage_debt: bool = False
    focus: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.fixes


class Decision(BaseModel):
    action: str
    state: ControllerState
    plan: Optional[FixPlan] = None
    reason: Optional[StopReason] = None
    recurring_keys: List[str] = []

    @classmethod
    def proceed(cls, plan: FixPlan, state: ControllerState, recurring_keys: List[str]) -> "Decision":
        return cls(action=CONTINUE, plan=plan, state=state, recurring_keys=recurring_keys)

    @classmethod
    def stop(cls, reason: StopReason, state: ControllerState, recurring_keys: Optional[List[str]] = None) -> "Decision":
        return cls(action=STOP, reason=reason, state=state, recurring_keys=recurring_keys or [])

    @property
    def is_stop(self) -> bool:
        return self.action == STOP
