"""
Verify Result Model
Outcome of running the check suite after a fix. Carries no iteration context.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class VerifyResult(BaseModel):
    passed: bool
    check_results: Dict[str, Any] = {}
    coverage_percent: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    failure_details: List[str] = []
