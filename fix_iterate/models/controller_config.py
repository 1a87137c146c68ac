"""
Controller Config Model
Per-run knobs of the convergence controller. Defaults come from the environment.
"""
from pydantic import BaseModel, ConfigDict, Field

from fix_iterate.core.config import FIX_BATCH_CAP, MAX_ITERATIONS, TARGET_SCORE
from fix_iterate.core.constants import MAX_FIX_BATCH_CAP, MIN_FIX_BATCH_CAP


class ControllerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_score: float = Field(default=TARGET_SCORE, ge=0.0, le=100.0)
    max_iterations: int = Field(default=MAX_ITERATIONS, ge=1)
    fix_batch_cap: int = Field(default=FIX_BATCH_CAP, ge=MIN_FIX_BATCH_CAP, le=MAX_FIX_BATCH_CAP)
