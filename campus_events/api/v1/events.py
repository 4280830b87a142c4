"""
Event API endpoints for Campus Events Service.
Committee event management, the approver review queue and the public calendar.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, Path, status

from campus_events.api.dependencies import get_current_identity, require_roles
from campus_events.core.identity import Identity, Role
from campus_events.models.lifecycle import EventStatus
from campus_events.schemas.event import (
    EventCreate,
    EventUpdate,
    EventResponse,
    EventListResponse,
    EventActionRequest,
    MessageResponse,
)
from campus_events.services.event_service import event_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def _event_list(events) -> EventListResponse:
    return EventListResponse(
        events=[EventResponse.model_validate(event) for event in events],
        total=len(events),
    )


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    identity: Identity = Depends(get_current_identity)
):
    """
    Create a new event in draft status.

    Args:
        event_data: Event creation data
        identity: Authenticated committee

    Returns:
        Created event
    """
    event = await event_service.create_event(event_data, identity)
    return EventResponse.model_validate(event)


@router.get("/mine", response_model=EventListResponse)
async def list_my_events(identity: Identity = Depends(get_current_identity)):
    """List events created by the caller, ordered by start date."""
    events = await event_service.list_owner_events(identity)
    return _event_list(events)


@router.get("/calendar", response_model=EventListResponse)
async def public_calendar():
    """Final approved, public events. No authentication required."""
    events = await event_service.list_public_events()
    return _event_list(events)


@router.get("/review", response_model=EventListResponse)
async def review_queue(
    status_filter: Optional[EventStatus] = Query(None, alias="status", description="Filter by event status"),
    identity: Identity = Depends(require_roles(Role.GENERAL_SECRETARY, Role.DEAN))
):
    """
    Events awaiting or past review, newest first.

    Args:
        status_filter: Optional status, limited to what the caller's role may see
        identity: General Secretary or Dean
    """
    events = await event_service.list_review_queue(identity, status_filter)
    return _event_list(events)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str = Path(..., description="Event ID"),
    identity: Identity = Depends(get_current_identity)
):
    """Get event details by ID."""
    event = await event_service.get_event(event_id)
    return EventResponse.model_validate(event)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_data: EventUpdate,
    event_id: str = Path(..., description="Event ID"),
    identity: Identity = Depends(get_current_identity)
):
    """
    Edit a draft event. Only the owning committee may edit, and only while in draft.
    """
    event = await event_service.update_event(event_id, event_data, identity)
    return EventResponse.model_validate(event)


@router.post("/submitEvent", response_model=EventResponse)
async def submit_event(
    request: EventActionRequest,
    identity: Identity = Depends(get_current_identity)
):
    """Submit a draft event for General Secretary review."""
    event = await event_service.submit_event(request.event_id, identity)
    return EventResponse.model_validate(event)


@router.post("/cancelEvent", response_model=EventResponse)
async def cancel_event(
    request: EventActionRequest,
    identity: Identity = Depends(get_current_identity)
):
    """Cancel a submitted or approved event."""
    event = await event_service.cancel_event(request.event_id, identity)
    return EventResponse.model_validate(event)


@router.post("/deleteEvent", response_model=MessageResponse)
async def delete_event(
    request: EventActionRequest,
    identity: Identity = Depends(get_current_identity)
):
    """Delete a draft event."""
    await event_service.delete_event(request.event_id, identity)
    return MessageResponse(message="Event deleted successfully")
