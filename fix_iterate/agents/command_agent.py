"""
Command Agent
=============
Reaches the external reviewer / fixer / verifier through plain commands.

Structured-text protocol:
    - The request is written to the command's stdin as one JSON object:
          {"role": "review" | "fix" | "verify", "payload": {...}}
    - The command answers with one JSON object on stdout (pretty-printed
      or not; log lines around it are ignored).
    - A non-zero exit code or unparseable answer raises AgentCommandError.

CommandVerifier is the exception: it runs the check suite directly and
reads the exit code (0 = passed) plus any coverage line in the output.

In --single-agent mode one CommandAgent serves all three roles.
"""
import asyncio
import json
import logging
import re
import shlex
import subprocess
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from fix_iterate.core.config import COMMAND_TIMEOUT
from fix_iterate.models.decision import FixPlan
from fix_iterate.models.fix_result import FixOutcome
from fix_iterate.models.review_result import ReviewResult
from fix_iterate.models.verify_result import VerifyResult
from fix_iterate.services.git_workspace import GitWorkspace

logger = logging.getLogger(__name__)

# "TOTAL   1234   56   87%" (coverage.py) or "coverage: 87.5%" / "Coverage 87.5 %"
_COVERAGE_RES = [
    re.compile(r"^TOTAL\s+.*?(\d+(?:\.\d+)?)%\s*$", re.MULTILINE),
    re.compile(r"coverage[:\s]+(\d+(?:\.\d+)?)\s*%", re.IGNORECASE),
]

_FAILURE_TAIL_LINES = 20

# A "{" opening a line, possibly indented
_OBJECT_START_RE = re.compile(r"^[ \t]*\{", re.MULTILINE)


class AgentCommandError(RuntimeError):
    """An external role command failed or answered with malformed output."""


def parse_coverage(output: str) -> Optional[float]:
    """Extract a coverage percentage from check-suite output, if any."""
    for pattern in _COVERAGE_RES:
        matches = pattern.findall(output)
        if matches:
            value = float(matches[-1])
            if 0.0 <= value <= 100.0:
                return value
    return None


def parse_agent_output(stdout: str) -> Dict[str, Any]:
    """
    Extract the JSON answer from a role command's stdout.

    The answer is the last top-level object that starts on its own line;
    it may be pretty-printed over several lines and may be preceded or
    followed by log output. Objects nested inside it are not candidates.

    Raises
    ------
    AgentCommandError
        If no JSON object can be found.
    """
    decoder = json.JSONDecoder()
    answer: Optional[Dict[str, Any]] = None
    covered = -1
    for match in _OBJECT_START_RE.finditer(stdout):
        start = match.end() - 1
        if start < covered:
            continue
        try:
            data, end = decoder.raw_decode(stdout, start)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            answer, covered = data, end
    if answer is None:
        raise AgentCommandError("agent produced no JSON object on stdout")
    return answer


def _run(argv: List[str], stdin: str, cwd: str, timeout: int) -> subprocess.CompletedProcess:
    return subprocess.run(
        argv,
        input=stdin,
        cwd=cwd,
        capture_output=True,
        text=True,
        timeout=timeout,
    )


class CommandAgent:
    """
    Serves any of the three roles by invoking an external command.

    Parameters
    ----------
    command : str
        Shell-style command line, split with shlex.
    workspace : GitWorkspace
        Used to revert files after a failed verification.
    timeout : int
        Seconds allowed per invocation.
    """

    def __init__(self, command: str, workspace: GitWorkspace, timeout: int = COMMAND_TIMEOUT) -> None:
        if not command.strip():
            raise ValueError("agent command must not be empty")
        self.argv = shlex.split(command)
        self.workspace = workspace
        self.timeout = timeout

    async def _call(self, role: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        request = json.dumps({"role": role, "payload": payload})
        logger.debug("Invoking %s for role %s", self.argv[0], role)
        try:
            proc = await asyncio.to_thread(
                _run, self.argv, request, self.workspace.workspace_path, self.timeout
            )
        except subprocess.TimeoutExpired as e:
            raise AgentCommandError(f"{role} command timed out after {self.timeout}s") from e
        except OSError as e:
            raise AgentCommandError(f"{role} command could not start: {e}") from e

        if proc.returncode != 0:
            raise AgentCommandError(
                f"{role} command exited with {proc.returncode}: {proc.stderr.strip()[:500]}"
            )
        return parse_agent_output(proc.stdout)

    async def review(self, focus: str) -> ReviewResult:
        data = await self._call("review", {"focus": focus})
        try:
            return ReviewResult.model_validate(data)
        except ValidationError as e:
            raise AgentCommandError(f"malformed review result: {e}") from e

    async def fix(self, plan: FixPlan) -> FixOutcome:
        data = await self._call("fix", plan.model_dump(mode="json"))
        try:
            return FixOutcome.model_validate(data)
        except ValidationError as e:
            raise AgentCommandError(f"malformed fix outcome: {e}") from e

    async def revert(self, files: List[str]) -> bool:
        return await asyncio.to_thread(self.workspace.restore, files)

    async def verify(self) -> VerifyResult:
        data = await self._call("verify", {})
        try:
            return VerifyResult.model_validate(data)
        except ValidationError as e:
            raise AgentCommandError(f"malformed verify result: {e}") from e


class CommandVerifier:
    """Runs the check suite command; exit code 0 means verification passed."""

    def __init__(self, command: str, workspace_path: str = ".", timeout: int = COMMAND_TIMEOUT) -> None:
        if not command.strip():
            raise ValueError("verify command must not be empty")
        self.argv = shlex.split(command)
        self.workspace_path = workspace_path
        self.timeout = timeout

    async def verify(self) -> VerifyResult:
        try:
            proc = await asyncio.to_thread(_run, self.argv, "", self.workspace_path, self.timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Check suite timed out after %ds", self.timeout)
            return VerifyResult(
                passed=False,
                check_results={"exit_code": None, "timed_out": True},
                failure_details=[f"check suite timed out after {self.timeout}s"],
            )
        except OSError as e:
            raise AgentCommandError(f"check suite could not start: {e}") from e

        output = f"{proc.stdout}\n{proc.stderr}"
        passed = proc.returncode == 0
        details: List[str] = []
        if not passed:
            details = output.strip().splitlines()[-_FAILURE_TAIL_LINES:]

        return VerifyResult(
            passed=passed,
            check_results={"exit_code": proc.returncode, "command": " ".join(self.argv)},
            coverage_percent=parse_coverage(output),
            failure_details=details,
        )
