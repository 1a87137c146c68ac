"""
Convergence Controller
======================
The decision engine of the fix-iterate loop.
Consumes one IterationRecord at a time and answers CONTINUE(plan) or STOP(reason).

Evaluation order (per record):
    1. Recurrence detection (current keys ∩ previous keys), history append
    2. Verify bookkeeping (only when the record's verify passed)
    3. Early exits, first match wins:
         EXCELLENT → STUCK_LOW → STUCK_RECURRING → OSCILLATING → DIMINISHING
    4. CONVERGED (target held twice in a row, score stable)
    5. Fix planning (P0 → P1 → P2 under the batch cap, never P3)

MAX_ITERATIONS is not decided here: the loop driver checks
iteration_budget_exhausted() once an iteration's phases have completed.

BOUNDARY RULES:
    - Controller NEVER performs I/O.
    - Controller NEVER mutates the state it was given.
    - Controller raises only on structurally invalid input.
    - Same record + same state → same Decision.
"""
import logging
from typing import Dict, List, Optional, Set, Tuple

from fix_iterate.core.constants import (
    CONVERGED_MAX_DELTA,
    CONVERGED_MIN_AT_TARGET,
    COVERAGE_DROP_TOLERANCE,
    EXCELLENT_SCORE,
    NO_IMPROVEMENT_WINDOW,
    STUCK_LOW_MARGIN,
    STUCK_LOW_MIN_ITERATION,
    STUCK_RECURRING_MIN,
)
from fix_iterate.models.controller_config import ControllerConfig
from fix_iterate.models.decision import Decision, FixPlan, PlannedFix, StopReason
from fix_iterate.models.issue import Issue, Severity
from fix_iterate.models.iteration_record import IterationRecord
from fix_iterate.state.controller_state import ControllerState
from fix_iterate.utils.trend import is_diminishing, is_oscillating, no_improvement

logger = logging.getLogger(__name__)

_ESCALATABLE = {Severity.P0, Severity.P1}


def _partition(issues: List[Issue]) -> Dict[Severity, List[Issue]]:
    """Group issues by severity, preserving reviewer order within a group."""
    groups: Dict[Severity, List[Issue]] = {sev: [] for sev in Severity}
    for issue in issues:
        groups[issue.severity].append(issue)
    return groups


def plan_fixes(
    issues: List[Issue],
    recurring_keys: Set[str],
    iteration: int,
    cap: int,
    coverage_debt: bool = False,
) -> FixPlan:
    """
    Select the issues handed to the fixer this iteration.

    Parameters
    ----------
    issues : List[Issue]
        Issues reported by this iteration's review.
    recurring_keys : Set[str]
        Keys also reported by the previous review.
    iteration : int
        Current iteration number.
    cap : int
        Combined P0/P1/P2 batch size. P0 issues are always selected,
        even past the cap.
    coverage_debt : bool
        Propagated to the fixer: restore coverage before logic fixes.

    Returns
    -------
    FixPlan
        Selected fixes (recurring P0/P1 escalated) and deferred issues.
    """
    groups = _partition(issues)
    selected: List[Issue] = list(groups[Severity.P0])

    p1_taken = 0
    for issue in groups[Severity.P1]:
        if len(selected) >= cap:
            break
        selected.append(issue)
        p1_taken += 1

    # P2 only once every P0/P1 made it into the batch
    if p1_taken == len(groups[Severity.P1]):
        for issue in groups[Severity.P2]:
            if len(selected) >= cap:
                break
            selected.append(issue)

    chosen = {issue.key for issue in selected}
    fixes = [
        PlannedFix(
            issue=issue,
            escalate=issue.key in recurring_keys and issue.severity in _ESCALATABLE,
        )
        for issue in selected
    ]
    deferred = [issue for issue in issues if issue.key not in chosen]

    for fix in fixes:
        if fix.escalate:
            logger.info("Escalating recurring %s issue %s", fix.issue.severity.value, fix.issue.key)

    return FixPlan(
        iteration=iteration,
        fixes=fixes,
        deferred=deferred,
        coverage_debt=coverage_debt,
    )


def _update_coverage(
    history: List[float],
    debt: bool,
    coverage: Optional[float],
) -> Tuple[List[float], bool]:
    """Append an observed coverage sample and recompute the debt flag."""
    if coverage is None:
        return history, debt

    history = [*history, coverage]
    if len(history) >= 2 and history[-1] < history[-2] - COVERAGE_DROP_TOLERANCE:
        logger.warning("Coverage dropped from %.1f%% to %.1f%%", history[-2], history[-1])
        return history, True
    return history, False


def _early_exit(
    record: IterationRecord,
    history: List[float],
    recurring_keys: Set[str],
    config: ControllerConfig,
) -> Optional[StopReason]:
    """Return the first matching early-exit reason, in fixed order."""
    if record.score >= EXCELLENT_SCORE:
        return StopReason.EXCELLENT

    flat = no_improvement(history, NO_IMPROVEMENT_WINDOW)

    if (
        record.iteration >= STUCK_LOW_MIN_ITERATION
        and record.score < config.target_score - STUCK_LOW_MARGIN
        and flat
    ):
        return StopReason.STUCK_LOW

    if len(recurring_keys) >= STUCK_RECURRING_MIN and flat:
        return StopReason.STUCK_RECURRING

    if is_oscillating(history):
        return StopReason.OSCILLATING

    if is_diminishing(history):
        return StopReason.DIMINISHING

    return None


def evaluate(
    record: IterationRecord,
    state: ControllerState,
    config: Optional[ControllerConfig] = None,
) -> Decision:
    """
    Evaluate one iteration and decide whether the loop continues.

    Parameters
    ----------
    record : IterationRecord
        This iteration's review observation plus the previous verify outcome.
    state : ControllerState
        State after the previous evaluation. Not modified.
    config : ControllerConfig | None
        Target score, iteration budget and batch cap. Defaults from env.

    Returns
    -------
    Decision
        STOP with a reason, or CONTINUE with a FixPlan. Both carry the
        successor state.

    Raises
    ------
    ValueError
        If the record's iteration does not advance past the last one seen.
    """
    config = config or ControllerConfig()

    if record.iteration <= state.last_iteration:
        raise ValueError(
            f"iteration {record.iteration} does not advance past {state.last_iteration}"
        )

    # --- 1. Recurrence detection ---
    current_keys = record.issue_keys
    recurring = current_keys & state.prev_issue_keys
    seen = dict(state.seen_issue_first_iteration)
    for key in sorted(current_keys):
        seen.setdefault(key, record.iteration)

    history = [*state.history, record.score]

    # --- 2. Verify bookkeeping ---
    consecutive = state.consecutive_at_target
    previous = state.previous_score
    coverage_history = list(state.coverage_history)
    coverage_debt = state.pending_coverage_debt
    converged = False

    if record.verify_passed:
        consecutive = consecutive + 1 if record.score >= config.target_score else 0
        converged = (
            consecutive >= CONVERGED_MIN_AT_TARGET
            and abs(record.score - previous) < CONVERGED_MAX_DELTA
        )
        previous = record.score
        coverage_history, coverage_debt = _update_coverage(
            coverage_history, coverage_debt, record.coverage_percent
        )
    else:
        logger.info(
            "Iteration %d follows a failed verify; progress counters untouched",
            record.iteration,
        )

    next_state = ControllerState(
        history=history,
        previous_score=previous,
        consecutive_at_target=consecutive,
        seen_issue_first_iteration=seen,
        prev_issue_keys=set(current_keys),
        coverage_history=coverage_history,
        pending_coverage_debt=coverage_debt,
        last_iteration=record.iteration,
    )
    recurring_list = sorted(recurring)

    if recurring_list:
        logger.debug("Iteration %d recurring issues: %s", record.iteration, recurring_list)

    # --- 3/4. Stop checks ---
    reason = _early_exit(record, history, recurring, config)
    if reason is None and converged:
        reason = StopReason.CONVERGED

    if reason is not None:
        logger.info(
            "Iteration %d: STOP (%s) at score %.2f",
            record.iteration, reason.value, record.score,
        )
        return Decision.stop(reason, next_state, recurring_list)

    # --- 5. Fix planning ---
    plan = plan_fixes(
        record.issues,
        recurring,
        record.iteration,
        config.fix_batch_cap,
        coverage_debt=coverage_debt,
    )
    logger.info(
        "Iteration %d: CONTINUE at score %.2f, %d fix(es) planned, %d deferred",
        record.iteration, record.score, len(plan.fixes), len(plan.deferred),
    )
    return Decision.proceed(plan, next_state, recurring_list)


def iteration_budget_exhausted(iteration: int, config: ControllerConfig) -> bool:
    """Outer loop guard, checked after an iteration's phases complete."""
    return iteration >= config.max_iterations


class ConvergenceController:
    """
    Threads ControllerState through successive evaluate() calls for one run.

    The instance belongs to a single loop driver; it is not shared.
    """

    def __init__(self, config: Optional[ControllerConfig] = None) -> None:
        self.config = config or ControllerConfig()
        self.state = ControllerState()

    def step(self, record: IterationRecord) -> Decision:
        decision = evaluate(record, self.state, self.config)
        self.state = decision.state
        return decision

    def budget_exhausted(self, iteration: int) -> bool:
        return iteration_budget_exhausted(iteration, self.config)

    def first_seen(self, key: str) -> Optional[int]:
        return self.state.seen_issue_first_iteration.get(key)
