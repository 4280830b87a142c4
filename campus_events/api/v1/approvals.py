"""
Approval API endpoints for Campus Events Service.
"""

from typing import List
import logging

from fastapi import APIRouter, Depends, Path

from campus_events.api.dependencies import get_current_identity
from campus_events.core.identity import Identity
from campus_events.schemas.event import (
    RecordDecisionRequest,
    RecordDecisionResponse,
    ApprovalDecisionResponse,
)
from campus_events.services.approval_service import approval_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/approvals", tags=["approvals"])


@router.post("/recordDecision", response_model=RecordDecisionResponse)
async def record_decision(
    request: RecordDecisionRequest,
    identity: Identity = Depends(get_current_identity)
):
    """
    Record a General Secretary or Dean decision on an event.

    Args:
        request: Event, approval stage, decision and optional comments
        identity: Authenticated approver

    Returns:
        The new event status and the stored decision
    """
    event, approval = await approval_service.record_decision(
        event_id=request.event_id,
        identity=identity,
        approval_type=request.approval_type,
        decision=request.decision,
        comments=request.comments,
    )
    return RecordDecisionResponse(
        event_id=event.id,
        event_status=event.status,
        decision=ApprovalDecisionResponse.model_validate(approval),
    )


@router.get("/{event_id}", response_model=List[ApprovalDecisionResponse])
async def list_decisions(
    event_id: str = Path(..., description="Event ID"),
    identity: Identity = Depends(get_current_identity)
):
    """Approval history of an event, oldest first."""
    decisions = await approval_service.list_decisions(event_id, identity)
    return [ApprovalDecisionResponse.model_validate(decision) for decision in decisions]
