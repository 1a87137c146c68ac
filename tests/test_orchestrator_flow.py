"""
Iteration Loop Flow Tests
=========================
Drives the full Review → Decide → Fix → Verify loop with all three
capabilities mocked.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from fix_iterate.agents.orchestrator import IterationLoop
from fix_iterate.core.constants import DIMENSION_WEIGHTS
from fix_iterate.models.controller_config import ControllerConfig
from fix_iterate.models.dimension_scores import DimensionScores
from fix_iterate.models.fix_result import FixOutcome
from fix_iterate.models.issue import Issue
from fix_iterate.models.review_result import ReviewResult
from fix_iterate.models.verify_result import VerifyResult


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _issue(n, severity="P1"):
    return Issue(description="Unchecked return value", severity=severity, location=f"src/mod_{n}.py")


def _review(score, issues=None, coverage=None, dims=None):
    return ReviewResult(score=score, issues=issues or [], coverage_percent=coverage, dimensions=dims)


def _reviews(*scores):
    return [_review(s, [_issue(i)]) for i, s in enumerate(scores, start=1)]


def _outcome(n=1):
    return FixOutcome(
        applied_fixes=[f"src/mod_{n}.py:unchecked_return_value"],
        files_modified=[f"src/mod_{n}.py"],
    )


def _pass(coverage=None):
    return VerifyResult(passed=True, coverage_percent=coverage)


def _fail():
    return VerifyResult(passed=False, failure_details=["test_login FAILED"])


def _dims(value):
    return DimensionScores(**{name: value for name in DIMENSION_WEIGHTS})


@pytest.fixture
def reviewer():
    agent = MagicMock()
    agent.review = AsyncMock()
    return agent


@pytest.fixture
def fixer():
    agent = MagicMock()
    agent.fix = AsyncMock(side_effect=lambda plan: _outcome(plan.iteration))
    agent.revert = AsyncMock(return_value=True)
    return agent


@pytest.fixture
def verifier():
    agent = MagicMock()
    agent.verify = AsyncMock(return_value=_pass())
    return agent


def _loop(reviewer, fixer, verifier, max_iterations=10, target=85):
    config = ControllerConfig(target_score=target, max_iterations=max_iterations)
    return IterationLoop(reviewer, fixer, verifier, config, results_path=None)


# ===================================================================
# Test 1: Iteration budget → exactly max_iterations review phases
# ===================================================================
def test_max_iterations_completes_all_phases(reviewer, fixer, verifier):
    reviewer.review.side_effect = _reviews(40, 42, 43)
    loop = _loop(reviewer, fixer, verifier, max_iterations=3)

    state = asyncio.run(loop.run())

    assert reviewer.review.await_count == 3
    # The last iteration still fixes and verifies before the guard fires
    assert fixer.fix.await_count == 3
    assert verifier.verify.await_count == 3
    assert state["status"] == "stopped"
    assert state["stop_reason"] == "MAX_ITERATIONS"
    assert state["score_history"] == [40, 42, 43]
    assert len(state["controller_state"].history) == 3
    assert len(state["snapshots"]) == 3


# ===================================================================
# Test 2: Convergence stops at the second review
# ===================================================================
def test_converges_at_target(reviewer, fixer, verifier):
    reviewer.review.side_effect = _reviews(86, 87)
    state = asyncio.run(_loop(reviewer, fixer, verifier).run())

    assert state["stop_reason"] == "CONVERGED"
    assert state["iteration"] == 2
    assert fixer.fix.await_count == 1
    assert state["snapshots"][-1].stop_reason == "CONVERGED"
    assert state["snapshots"][-1].fix_outcome is None


# ===================================================================
# Test 3: Excellent first review → nothing to fix
# ===================================================================
def test_excellent_first_review_skips_fixing(reviewer, fixer, verifier):
    reviewer.review.side_effect = [_review(97, [_issue(1)])]
    state = asyncio.run(_loop(reviewer, fixer, verifier).run())

    assert state["stop_reason"] == "EXCELLENT"
    fixer.fix.assert_not_awaited()
    verifier.verify.assert_not_awaited()


# ===================================================================
# Test 4: Verify failure → rollback, re-verify once, non-progressing
# ===================================================================
def test_verify_failure_rolls_back_and_retries_once(reviewer, fixer, verifier):
    reviewer.review.side_effect = _reviews(60, 62)
    verifier.verify.side_effect = [_fail(), _pass(), _pass()]
    state = asyncio.run(_loop(reviewer, fixer, verifier, max_iterations=2).run())

    fixer.revert.assert_awaited_once_with(["src/mod_1.py"])
    assert verifier.verify.await_count == 3

    first = state["snapshots"][0]
    assert first.verify_passed is False
    assert first.rolled_back is True
    assert first.non_progressing is True
    assert state["non_progressing_count"] == 1
    assert state["rollback_count"] == 1
    assert "src/mod_1.py:unchecked_return_value" in state["fixes_reverted"]
    assert "src/mod_1.py:unchecked_return_value" not in state["fixes_applied"]

    # Iteration 2 was fed verify_passed=False: previous score stays at 60
    assert state["controller_state"].previous_score == 60
    assert state["stop_reason"] == "MAX_ITERATIONS"


def test_verify_still_failing_after_rollback(reviewer, fixer, verifier):
    reviewer.review.side_effect = _reviews(60)
    verifier.verify.side_effect = [_fail(), _fail()]
    state = asyncio.run(_loop(reviewer, fixer, verifier, max_iterations=1).run())

    assert verifier.verify.await_count == 2
    assert state["snapshots"][0].non_progressing is True
    assert state["status"] == "stopped"


# ===================================================================
# Test 5: Only P3 issues → NOTHING_TO_FIX
# ===================================================================
def test_only_low_severity_issues_stop(reviewer, fixer, verifier):
    reviewer.review.side_effect = [_review(70, [_issue(1, "P3"), _issue(2, "P3")])]
    state = asyncio.run(_loop(reviewer, fixer, verifier).run())

    assert state["stop_reason"] == "NOTHING_TO_FIX"
    fixer.fix.assert_not_awaited()


# ===================================================================
# Test 6: Coverage debt reaches the fixer
# ===================================================================
def test_coverage_debt_passed_to_fixer(reviewer, fixer, verifier):
    reviewer.review.side_effect = _reviews(60, 62, 64)
    verifier.verify.side_effect = [_pass(70), _pass(65), _pass(66)]
    asyncio.run(_loop(reviewer, fixer, verifier, max_iterations=3).run())

    plans = [c.args[0] for c in fixer.fix.await_args_list]
    assert [p.coverage_debt for p in plans] == [False, False, True]


# ===================================================================
# Test 7: Focus filter reaches reviewer and plan
# ===================================================================
def test_focus_passed_through(reviewer, fixer, verifier):
    reviewer.review.side_effect = _reviews(60)
    state = asyncio.run(_loop(reviewer, fixer, verifier, max_iterations=1).run("auth module"))

    reviewer.review.assert_awaited_once_with("auth module")
    assert fixer.fix.await_args.args[0].focus == "auth module"
    assert state["focus"] == "auth module"


# ===================================================================
# Test 8: Capability failure → error status, report still written
# ===================================================================
def test_reviewer_failure_sets_error_and_writes_results(reviewer, fixer, verifier):
    reviewer.review.side_effect = RuntimeError("reviewer crashed")
    config = ControllerConfig(max_iterations=3)
    loop = IterationLoop(reviewer, fixer, verifier, config, results_path="results.json")

    with patch("fix_iterate.agents.orchestrator.ResultsWriter.write_results") as mock_writer:
        state = asyncio.run(loop.run())

    assert state["status"] == "error"
    assert "reviewer crashed" in state["execution_summary"]
    mock_writer.assert_called_once_with(state, "results.json")


def test_malformed_review_is_rejected(reviewer, fixer, verifier):
    # Two issues collapse to the same key → invalid IterationRecord
    dup = [
        Issue(description="Missing error handling", severity="P1", location="a.py:1"),
        Issue(description="Missing error handling", severity="P1", location="a.py:9"),
    ]
    reviewer.review.side_effect = [_review(60, dup)]
    state = asyncio.run(_loop(reviewer, fixer, verifier).run())

    assert state["status"] == "error"
    assert "duplicate issue key" in state["execution_summary"]
    fixer.fix.assert_not_awaited()


# ===================================================================
# Test 9: Single-agent mode uses one actor for all roles
# ===================================================================
def test_single_agent_mode():
    agent = MagicMock()
    agent.review = AsyncMock(side_effect=_reviews(86, 87))
    agent.fix = AsyncMock(return_value=_outcome())
    agent.revert = AsyncMock(return_value=True)
    agent.verify = AsyncMock(return_value=_pass())

    loop = IterationLoop(agent, agent, agent, ControllerConfig(), single_agent=True, results_path=None)
    state = asyncio.run(loop.run())

    assert state["single_agent"] is True
    assert state["stop_reason"] == "CONVERGED"


# ===================================================================
# Test 10: Report bookkeeping
# ===================================================================
def test_dimensions_and_totals_tracked(reviewer, fixer, verifier):
    reviewer.review.side_effect = [
        _review(60, [_issue(1)], dims=_dims(60)),
        _review(70, [_issue(2)], dims=_dims(70)),
    ]
    state = asyncio.run(_loop(reviewer, fixer, verifier, max_iterations=2).run())

    assert state["first_dimensions"].correctness == 60
    assert state["last_dimensions"].correctness == 70
    assert state["files_touched"] == ["src/mod_1.py", "src/mod_2.py"]
    assert len(state["fixes_applied"]) == 2
