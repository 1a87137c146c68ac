"""
POST /evaluate
Stateless access to the convergence controller for external loop drivers.
The caller sends the record, the state returned by its previous call, and
the run config; it receives the decision together with the successor state.

POST /issue-key
Computes the stable issue key for a location + description pair.
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from fix_iterate.agents.controller import evaluate
from fix_iterate.core.config import ENABLE_EVALUATE_ENDPOINT
from fix_iterate.models.controller_config import ControllerConfig
from fix_iterate.models.decision import Decision
from fix_iterate.models.iteration_record import IterationRecord
from fix_iterate.state.controller_state import ControllerState
from fix_iterate.utils.issue_key import generate_issue_key

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Controller"])

_ENABLED = ENABLE_EVALUATE_ENDPOINT


class EvaluateRequest(BaseModel):
    record: IterationRecord
    state: ControllerState = Field(default_factory=ControllerState)
    config: Optional[ControllerConfig] = None


class IssueKeyRequest(BaseModel):
    location: str = ""
    description: str


class IssueKeyResponse(BaseModel):
    key: str


@router.post("/evaluate", response_model=Decision)
async def evaluate_record(request: EvaluateRequest) -> Decision:
    """Evaluate one iteration record against the supplied state."""
    if not _ENABLED:
        raise HTTPException(status_code=404, detail="Not found")

    try:
        decision = evaluate(request.record, request.state, request.config)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    logger.info(
        "Evaluated iteration %d: %s%s",
        request.record.iteration,
        decision.action,
        f" ({decision.reason.value})" if decision.reason else "",
    )
    return decision


@router.post("/issue-key", response_model=IssueKeyResponse)
async def issue_key(request: IssueKeyRequest) -> IssueKeyResponse:
    return IssueKeyResponse(key=generate_issue_key(request.location, request.description))
