"""
Report Formatter
================
Deterministic, human-readable text for stop reasons and the final report.

DETERMINISM CONTRACT:
  - This module NEVER reads environment variables.
  - Given the same inputs, it ALWAYS returns the exact same string.

Stalled outcomes (STUCK_*, OSCILLATING, DIMINISHING) always carry a
recommendation for manual intervention; they are reported, never raised.
"""
from typing import Dict, List, Optional

from fix_iterate.models.decision import STALLED_REASONS, StopReason
from fix_iterate.models.dimension_scores import DimensionScores

ARROW = "→"

STOP_MESSAGES: Dict[StopReason, str] = {
    StopReason.EXCELLENT: "score reached excellence threshold",
    StopReason.STUCK_LOW: "score far below target with no improvement",
    StopReason.STUCK_RECURRING: "same issues keep recurring without improvement",
    StopReason.OSCILLATING: "score oscillating within a narrow band",
    StopReason.DIMINISHING: "score changes have become negligible",
    StopReason.CONVERGED: "target score held for consecutive verified iterations",
    StopReason.MAX_ITERATIONS: "iteration budget exhausted",
    StopReason.NOTHING_TO_FIX: "only low-severity issues remain",
}

MANUAL_INTERVENTION = "manual intervention recommended"


def describe_stop(reason: StopReason, iteration: int, score: float) -> str:
    """
    One-line summary of why the loop stopped.

        "Stopped at iteration 3 (score 70.00): STUCK_RECURRING → same issues
         keep recurring without improvement; manual intervention recommended"
    """
    text = f"Stopped at iteration {iteration} (score {score:.2f}): {reason.value} {ARROW} {STOP_MESSAGES[reason]}"
    if reason in STALLED_REASONS:
        text += f"; {MANUAL_INTERVENTION}"
    return text


def format_score_history(history: List[float]) -> str:
    """``"72.00 → 78.50 → 86.00"``; ``"-"`` when empty."""
    if not history:
        return "-"
    return f" {ARROW} ".join(f"{score:.2f}" for score in history)


def format_dimension_deltas(
    first: Optional[DimensionScores],
    last: Optional[DimensionScores],
) -> List[str]:
    """One line per dimension: ``"correctness: 70.00 → 85.00 (+15.00)"``."""
    if first is None or last is None:
        return []
    before, after = first.model_dump(), last.model_dump()
    deltas = last.delta(first)
    return [
        f"{name}: {before[name]:.2f} {ARROW} {after[name]:.2f} ({deltas[name]:+.2f})"
        for name in deltas
    ]


def _section(title: str, items: List[str]) -> List[str]:
    lines = [f"{title} ({len(items)}):"]
    if items:
        lines.extend(f"  - {item}" for item in items)
    else:
        lines.append("  (none)")
    return lines


def format_report(state: dict) -> str:
    """Render the final report for a finished LoopState."""
    lines = [
        "Fix-Iterate Report",
        "==================",
        f"Status: {state.get('status', 'pending')}",
        f"Summary: {state.get('execution_summary', '')}",
        f"Target score: {state.get('target_score', 0):.2f}",
        f"Iterations: {state.get('iteration', 0)} / {state.get('max_iterations', 0)}",
        f"Score history: {format_score_history(state.get('score_history', []))}",
    ]

    deltas = format_dimension_deltas(state.get("first_dimensions"), state.get("last_dimensions"))
    if deltas:
        lines.append("Dimension deltas:")
        lines.extend(f"  {line}" for line in deltas)

    lines.extend(_section("Fixes applied", state.get("fixes_applied", [])))
    lines.extend(_section("Fixes skipped", state.get("fixes_skipped", [])))
    if state.get("fixes_reverted"):
        lines.extend(_section("Fixes reverted", state["fixes_reverted"]))
    lines.extend(_section("Files touched", state.get("files_touched", [])))
    if state.get("tests_written"):
        lines.extend(_section("Tests written", state["tests_written"]))
    if state.get("non_progressing_count"):
        lines.append(f"Non-progressing iterations: {state['non_progressing_count']}")
    return "\n".join(lines)
