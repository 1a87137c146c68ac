"""
Results Writer
==============
Serializes the final LoopState into the results.json report.
"""
import json
import logging
import os

from fix_iterate.core.report_formatter import format_dimension_deltas, format_score_history
from fix_iterate.state.loop_state import LoopState

logger = logging.getLogger(__name__)


class ResultsWriter:
    """
    Service responsible for compiling the full history of a fix-iterate
    run into a structured JSON file.
    """

    @staticmethod
    def build_results(state: LoopState) -> dict:
        """Compile state into the report structure (no I/O)."""
        first, last = state.get("first_dimensions"), state.get("last_dimensions")
        return {
            "run": {
                "focus": state.get("focus", ""),
                "target_score": state.get("target_score", 0),
                "max_iterations": state.get("max_iterations", 0),
                "single_agent": state.get("single_agent", False),
            },
            "iterations": [s.model_dump(mode="json") for s in state.get("snapshots", [])],
            "final_results": {
                "status": state.get("status", "pending"),
                "stop_reason": state.get("stop_reason", ""),
                "final_score": state.get("final_score", 0.0),
                "score_history": state.get("score_history", []),
                "score_trend": format_score_history(state.get("score_history", [])),
                "dimension_deltas": last.delta(first) if first and last else {},
                "dimension_lines": format_dimension_deltas(first, last),
                "fixes_applied": state.get("fixes_applied", []),
                "fixes_skipped": state.get("fixes_skipped", []),
                "fixes_reverted": state.get("fixes_reverted", []),
                "files_touched": state.get("files_touched", []),
                "tests_written": state.get("tests_written", []),
                "non_progressing_iterations": state.get("non_progressing_count", 0),
                "coverage_debt": state["controller_state"].pending_coverage_debt
                if state.get("controller_state") else False,
                "summary": state.get("execution_summary", ""),
            },
        }

    @staticmethod
    def write_results(state: LoopState, output_path: str = "results.json") -> bool:
        """
        Compile state and write results.json.
        """
        try:
            data = ResultsWriter.build_results(state)

            abs_output = os.path.abspath(output_path)
            logger.info("Writing final results to %s", abs_output)

            with open(abs_output, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)

            return True

        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write results.json: %s", e, exc_info=True)
            return False
