"""CLI entry point for a fix-iterate run.

    fix-iterate [--score N] [--max-iterations N] [--single-agent] [focus ...]

Roles are reached through commands configured in the environment
(REVIEWER_COMMAND, FIXER_COMMAND, VERIFY_COMMAND, or AGENT_COMMAND for
--single-agent). See fix_iterate.agents.command_agent for the protocol.
"""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from fix_iterate.agents.command_agent import CommandAgent, CommandVerifier
from fix_iterate.agents.orchestrator import IterationLoop
from fix_iterate.core import config
from fix_iterate.core.report_formatter import format_report
from fix_iterate.models.controller_config import ControllerConfig
from fix_iterate.models.decision import STALLED_REASONS
from fix_iterate.services.git_workspace import GitWorkspace
from fix_iterate.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


class ExitCode:
    SUCCESS = 0
    ERROR = 1
    USAGE = 2
    STALLED = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fix-iterate",
        description="Iterative review → fix → verify loop with convergence control",
    )
    parser.add_argument("focus", nargs="*", help="Free-text focus filter for the reviewer")
    parser.add_argument("--score", type=float, default=config.TARGET_SCORE, help="Target score (0-100)")
    parser.add_argument("--max-iterations", type=int, default=config.MAX_ITERATIONS)
    parser.add_argument(
        "--single-agent",
        action="store_true",
        help="Serve reviewer, fixer and verifier with AGENT_COMMAND",
    )
    parser.add_argument("--workspace", default=".", help="Repository the loop works on")
    parser.add_argument("--output", default=config.RESULTS_PATH, help="Where to write results.json")
    parser.add_argument("--verbose", action="store_true")
    return parser


def build_loop(args: argparse.Namespace, run_config: ControllerConfig) -> IterationLoop:
    """Wire the role commands into an IterationLoop."""
    workspace = GitWorkspace(args.workspace)

    if args.single_agent:
        if not config.AGENT_COMMAND:
            raise ValueError("--single-agent requires AGENT_COMMAND")
        agent = CommandAgent(config.AGENT_COMMAND, workspace)
        return IterationLoop(agent, agent, agent, run_config, single_agent=True, results_path=args.output)

    missing = [
        name for name, value in (
            ("REVIEWER_COMMAND", config.REVIEWER_COMMAND),
            ("FIXER_COMMAND", config.FIXER_COMMAND),
            ("VERIFY_COMMAND", config.VERIFY_COMMAND),
        ) if not value
    ]
    if missing:
        raise ValueError(f"missing role command(s): {', '.join(missing)}")

    reviewer = CommandAgent(config.REVIEWER_COMMAND, workspace)
    fixer = CommandAgent(config.FIXER_COMMAND, workspace)
    verifier = CommandVerifier(config.VERIFY_COMMAND, workspace.workspace_path)
    return IterationLoop(reviewer, fixer, verifier, run_config, results_path=args.output)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        run_config = ControllerConfig(
            target_score=args.score,
            max_iterations=args.max_iterations,
            fix_batch_cap=config.FIX_BATCH_CAP,
        )
        loop = build_loop(args, run_config)
    except ValueError as e:
        print(f"fix-iterate: {e}", file=sys.stderr)
        return ExitCode.USAGE

    state = asyncio.run(loop.run(" ".join(args.focus)))
    print(format_report(state))

    if state["status"] == "error":
        return ExitCode.ERROR
    if state["stop_reason"] in {reason.value for reason in STALLED_REASONS}:
        return ExitCode.STALLED
    return ExitCode.SUCCESS


if __name__ == "__main__":
    sys.exit(main())
