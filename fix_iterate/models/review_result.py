"""
Review Result Model
Structured output of the reviewer capability for one review phase.
The reviewer is stateless: it has no memory of earlier iterations.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .dimension_scores import DimensionScores
from .issue import Issue


class ReviewResult(BaseModel):
    score: float = Field(ge=0.0, le=100.0)
    issues: List[Issue] = []
    dimensions: Optional[DimensionScores] = None
    automated_checks: Dict[str, Any] = {}
    coverage_percent: Optional[float] = Field(default=None, ge=0.0, le=100.0)
