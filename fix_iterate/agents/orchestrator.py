"""
Iteration Loop
==============
Drives the Review → Decide → Fix → Verify loop around the convergence controller.

Per iteration:
    (a) Review     : fresh reviewer call, no memory of earlier iterations
    (b) Decide     : build an IterationRecord, hand it to the controller
    (c) Fix        : only on CONTINUE; plan carries escalations + coverage debt
    (d) Verify     : on failure revert modified files and re-verify once;
                      the next record then reports verify_passed=False
    (e) Budget     : MAX_ITERATIONS is checked only after (a) to (d) complete

Fault tolerance:
    Capability failures and malformed reviewer output end the run with
    status "error"; the report is still written.
"""
import logging
import time
from typing import List, Optional

from fix_iterate.agents.capabilities import Fixer, Reviewer, Verifier
from fix_iterate.agents.controller import ConvergenceController
from fix_iterate.core.config import RESULTS_PATH
from fix_iterate.core.report_formatter import describe_stop
from fix_iterate.models.controller_config import ControllerConfig
from fix_iterate.models.decision import StopReason
from fix_iterate.models.iteration_record import IterationRecord
from fix_iterate.models.iteration_snapshot import IterationSnapshot
from fix_iterate.services.results_writer import ResultsWriter
from fix_iterate.state.loop_state import LoopState

logger = logging.getLogger(__name__)


def _extend_unique(target: List[str], items: List[str]) -> None:
    for item in items:
        if item not in target:
            target.append(item)


class IterationLoop:
    """
    Runs one fix-iterate session with injected reviewer, fixer and verifier.

    In single-agent mode the same object is passed for all three roles;
    controller semantics do not change.
    """

    def __init__(
        self,
        reviewer: Reviewer,
        fixer: Fixer,
        verifier: Verifier,
        config: Optional[ControllerConfig] = None,
        single_agent: bool = False,
        results_path: Optional[str] = RESULTS_PATH,
    ) -> None:
        self.reviewer = reviewer
        self.fixer = fixer
        self.verifier = verifier
        self.config = config or ControllerConfig()
        self.single_agent = single_agent
        self.results_path = results_path

    async def run(self, focus: str = "") -> LoopState:
        """Execute the full loop and return the accumulated state."""
        controller = ConvergenceController(self.config)
        state: LoopState = {
            "focus": focus,
            "target_score": self.config.target_score,
            "max_iterations": self.config.max_iterations,
            "single_agent": self.single_agent,
            "iteration": 0,
            "snapshots": [],
            "score_history": [],
            "controller_state": controller.state,
            "first_dimensions": None,
            "last_dimensions": None,
            "fixes_applied": [],
            "fixes_skipped": [],
            "fixes_reverted": [],
            "files_touched": [],
            "tests_written": [],
            "rollback_count": 0,
            "non_progressing_count": 0,
            "start_time": time.time(),
            "status": "pending",
            "stop_reason": "",
            "final_score": 0.0,
            "execution_summary": "",
        }

        # First pass is review-only, nothing to verify yet
        verify_passed = True
        coverage: Optional[float] = None

        try:
            for i in range(1, self.config.max_iterations + 1):
                iter_start = time.time()
                state["iteration"] = i
                logger.info("--- Starting Iteration %d ---", i)

                # --- (a) Review ---
                review = await self.reviewer.review(focus)
                if review.coverage_percent is not None:
                    coverage = review.coverage_percent

                # --- (b) Decide ---
                record = IterationRecord(
                    iteration=i,
                    score=review.score,
                    issues=review.issues,
                    coverage_percent=coverage,
                    verify_passed=verify_passed,
                    dimensions=review.dimensions,
                )
                decision = controller.step(record)
                state["controller_state"] = decision.state
                state["score_history"].append(record.score)
                state["final_score"] = record.score
                if record.dimensions is not None:
                    if state["first_dimensions"] is None:
                        state["first_dimensions"] = record.dimensions
                    state["last_dimensions"] = record.dimensions

                snapshot = IterationSnapshot(
                    iteration=i,
                    score=record.score,
                    issue_count=len(record.issues),
                    recurring_keys=decision.recurring_keys,
                    decision=decision.action,
                    coverage_percent=coverage,
                    dimensions=record.dimensions,
                )

                if decision.is_stop:
                    self._stop(state, decision.reason)
                    snapshot.stop_reason = decision.reason.value
                    snapshot.iteration_time_seconds = time.time() - iter_start
                    state["snapshots"].append(snapshot)
                    break

                plan = decision.plan.model_copy(update={"focus": focus})
                snapshot.planned_fixes = [f.issue.key for f in plan.fixes]
                snapshot.escalated_fixes = [f.issue.key for f in plan.fixes if f.escalate]

                if plan.is_empty:
                    logger.info("Iteration %d: only deferred issues remain", i)
                    self._stop(state, StopReason.NOTHING_TO_FIX)
                    snapshot.stop_reason = StopReason.NOTHING_TO_FIX.value
                    snapshot.iteration_time_seconds = time.time() - iter_start
                    state["snapshots"].append(snapshot)
                    break

                # --- (c) Fix ---
                logger.info(
                    "Iteration %d: fixing %d issue(s)%s",
                    i, len(plan.fixes), " with coverage debt" if plan.coverage_debt else "",
                )
                outcome = await self.fixer.fix(plan)
                snapshot.fix_outcome = outcome
                _extend_unique(state["files_touched"], outcome.files_modified)

                # --- (d) Verify (+ one rollback retry) ---
                verify = await self.verifier.verify()
                verify_passed = verify.passed
                if verify.passed:
                    _extend_unique(state["fixes_applied"], outcome.applied_fixes)
                    _extend_unique(state["tests_written"], outcome.tests_written)
                    coverage = verify.coverage_percent
                else:
                    logger.warning(
                        "Iteration %d: verify failed (%s), reverting %d file(s)",
                        i, "; ".join(verify.failure_details[:3]) or "no details",
                        len(outcome.files_modified),
                    )
                    reverted = await self.fixer.revert(outcome.files_modified)
                    snapshot.rolled_back = reverted
                    state["rollback_count"] += 1 if reverted else 0
                    _extend_unique(state["fixes_reverted"], outcome.applied_fixes)

                    retry = await self.verifier.verify()
                    if not retry.passed:
                        logger.error(
                            "Iteration %d: verify still failing after rollback; manual attention needed", i
                        )
                    snapshot.non_progressing = True
                    state["non_progressing_count"] += 1
                    logger.warning("Iteration %d logged as non-progressing", i)

                _extend_unique(state["fixes_skipped"], outcome.skipped_fixes)
                snapshot.verify_passed = verify.passed
                snapshot.iteration_time_seconds = time.time() - iter_start
                state["snapshots"].append(snapshot)

                # --- (e) Iteration budget ---
                if controller.budget_exhausted(i):
                    self._stop(state, StopReason.MAX_ITERATIONS)
                    break

        except Exception as e:
            logger.error("Iteration loop encountered a fatal error: %s", e, exc_info=True)
            state["status"] = "error"
            state["execution_summary"] = f"Fatal error: {str(e)}"

        if self.results_path:
            try:
                ResultsWriter.write_results(state, self.results_path)
            except Exception as exc:
                logger.error("Results writer failed: %s", exc)

        logger.info(
            "Fix-iterate run complete. Status: %s, reason: %s, final score: %.2f",
            state["status"], state["stop_reason"] or "-", state["final_score"],
        )
        return state

    @staticmethod
    def _stop(state: LoopState, reason: StopReason) -> None:
        state["status"] = "stopped"
        state["stop_reason"] = reason.value
        state["execution_summary"] = describe_stop(reason, state["iteration"], state["final_score"])
