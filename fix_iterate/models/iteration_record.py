"""
Iteration Record Model
======================
One observation per loop cycle, handed to the convergence controller.

Fields:
    iteration       : loop counter (1-based, strictly increasing)
    score           : weighted quality score in [0, 100]; never clamped
    issues          : List[Issue] reported by this iteration's review
    coverage_percent: test coverage, None when no coverage tool is configured
    verify_passed   : outcome of the previous fix's verification
                       (True for the first, review-only pass)
    dimensions      : optional per-dimension breakdown

Validation:
    Out-of-range values, unknown severities, missing required fields and
    duplicate issue keys raise pydantic.ValidationError.
"""
from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .dimension_scores import DimensionScores
from .issue import Issue


class IterationRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    iteration: int = Field(ge=1)
    score: float = Field(ge=0.0, le=100.0)
    issues: List[Issue] = []
    coverage_percent: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    verify_passed: bool = True
    dimensions: Optional[DimensionScores] = None

    @model_validator(mode="after")
    def _unique_issue_keys(self) -> "IterationRecord":
        seen: Set[str] = set()
        for issue in self.issues:
            if issue.key in seen:
                raise ValueError(f"duplicate issue key in iteration {self.iteration}: {issue.key}")
            seen.add(issue.key)
        return self

    @property
    def issue_keys(self) -> Set[str]:
        return {issue.key for issue in self.issues}
