"""
Capabilities
============
The three external roles the loop driver talks to.

    Reviewer: scores the code and lists issues; fresh per call, no memory
    Fixer   : applies a FixPlan and can revert the files it touched
    Verifier: runs the check suite; knows nothing about iterations

The controller never calls these. Only the loop driver does.
"""
from typing import List, Protocol, runtime_checkable

from fix_iterate.models.decision import FixPlan
from fix_iterate.models.fix_result import FixOutcome
from fix_iterate.models.review_result import ReviewResult
from fix_iterate.models.verify_result import VerifyResult


@runtime_checkable
class Reviewer(Protocol):
    async def review(self, focus: str) -> ReviewResult: ...


@runtime_checkable
class Fixer(Protocol):
    async def fix(self, plan: FixPlan) -> FixOutcome: ...

    async def revert(self, files: List[str]) -> bool: ...


@runtime_checkable
class Verifier(Protocol):
    async def verify(self) -> VerifyResult: ...
