"""
Dimension Scores Model
======================
The twelve quality dimensions scored by the reviewer, each in [0, 100].
The overall score is their weighted sum (see DIMENSION_WEIGHTS).
"""
from typing import Annotated, Dict

from pydantic import BaseModel, Field

from fix_iterate.core.constants import DIMENSION_WEIGHTS

SubScore = Annotated[float, Field(ge=0.0, le=100.0)]


class DimensionScores(BaseModel):
    correctness: SubScore
    completeness: SubScore
    robustness: SubScore
    readability: SubScore
    maintainability: SubScore
    complexity: SubScore
    duplication: SubScore
    test_coverage: SubScore
    test_quality: SubScore
    security: SubScore
    documentation: SubScore
    style: SubScore

    def weighted_score(self) -> float:
        """Overall score in [0, 100], rounded to two decimals."""
        values = self.model_dump()
        total = sum(values[name] * weight for name, weight in DIMENSION_WEIGHTS.items())
        return round(total, 2)

    def delta(self, other: "DimensionScores") -> Dict[str, float]:
        """Per-dimension change from ``other`` to ``self``."""
        mine, theirs = self.model_dump(), other.model_dump()
        return {name: round(mine[name] - theirs[name], 2) for name in DIMENSION_WEIGHTS}
