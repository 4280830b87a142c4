"""
Event Service: the event store.
Creates events and applies owner-driven lifecycle transitions (submit, cancel, delete).
"""

from contextlib import asynccontextmanager
from typing import Optional, List, Dict, Any
import logging

from sqlalchemy.orm import Session

from campus_events.core.config import config
from campus_events.core.exceptions import (
    ValidationError, PermissionDeniedError, InvalidStateError, NotFoundError, InternalError
)
from campus_events.core.identity import Identity, Role
from campus_events.db.database import db_manager, storage_errors
from campus_events.db.redis_client import get_distributed_lock
from campus_events.models.event import Event, as_utc, utc_now
from campus_events.models.lifecycle import EventStatus, EventAction, next_status
from campus_events.schemas.event import EventCreate, EventUpdate

logger = logging.getLogger(__name__)

# Statuses each approver role may browse
REVIEW_VISIBILITY = {
    Role.GENERAL_SECRETARY: [
        EventStatus.SUBMITTED,
        EventStatus.GS_APPROVED,
        EventStatus.FINAL_APPROVED,
        EventStatus.REJECTED,
        EventStatus.CANCELLED,
    ],
    Role.DEAN: [
        EventStatus.GS_APPROVED,
        EventStatus.FINAL_APPROVED,
        EventStatus.REJECTED,
    ],
}


@asynccontextmanager
async def event_status_lock(event_id: str, consistency_config: Dict[str, Any]):
    """
    Serialize status writes for one event across processes when distributed locks are enabled.
    The event store and the approval engine share the same lock key.
    """
    if not consistency_config.get("enable_distributed_locks"):
        yield
        return

    lock = get_distributed_lock(
        f"event:status:{event_id}",
        timeout=consistency_config["lock_timeout_seconds"],
        blocking_timeout=consistency_config.get("lock_blocking_timeout_seconds", 10),
    )
    try:
        await lock.__aenter__()
    except Exception as e:
        logger.warning(f"Could not lock event {event_id}: {e}")
        raise InternalError("Event is busy, please retry") from e
    try:
        yield
    finally:
        await lock.__aexit__(None, None, None)


def load_event(session: Session, event_id: str) -> Event:
    """Fetch an event or raise NotFoundError."""
    event = session.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise NotFoundError("Event not found")
    return event


def apply_transition(session: Session, event: Event, action: EventAction) -> Optional[EventStatus]:
    """
    Apply a lifecycle action as a compare-and-swap on the current status.

    The write only lands if the row still holds the status ``event`` was read with,
    so two writers racing on a stale status cannot both succeed.

    Returns:
        The new status, or None if the event was deleted

    Raises:
        InvalidStateError: If the action is illegal or the status changed underneath us
    """
    expected = event.status
    target = next_status(expected, action)

    query = session.query(Event).filter(Event.id == event.id, Event.status == expected)
    if target is None:
        affected = query.delete(synchronize_session="evaluate")
    else:
        affected = query.update(
            {Event.status: target, Event.updated_at: utc_now()},
            synchronize_session="evaluate",
        )

    if affected != 1:
        logger.warning(f"Status of event {event.id} changed concurrently, {action.value} aborted")
        raise InvalidStateError("Event status changed, reload the event and try again")

    return target


class EventService:
    """
    Event store operations.
    Ownership is checked before state, and every status write is conditional on the status read.
    """

    def __init__(self):
        self.consistency_config = None

    async def _get_configs(self):
        """Get configuration settings."""
        if not self.consistency_config:
            self.consistency_config = await config.get_consistency_config()

    @staticmethod
    def _ensure_owner(event: Event, identity: Identity):
        if event.created_by != identity.user_id:
            raise PermissionDeniedError("Only the committee that created this event can modify it")

    async def create_event(self, event_data: EventCreate, identity: Identity) -> Event:
        """
        Create a new event in draft status.

        Raises:
            PermissionDeniedError: If the caller is not a committee
            ValidationError: If the dates are not ordered
        """
        if identity.role != Role.COMMITTEE:
            raise PermissionDeniedError("Only committees can create events")
        if as_utc(event_data.end_date) <= as_utc(event_data.start_date):
            raise ValidationError("End date must be after start date")

        with storage_errors("create_event"):
            with db_manager.get_transaction_session() as session:
                event = Event(
                    **event_data.model_dump(),
                    status=EventStatus.DRAFT,
                    created_by=identity.user_id,
                )
                session.add(event)
                session.commit()

        logger.info(f"Event {event.id} created in draft by {identity.user_id}")
        return event

    async def update_event(self, event_id: str, event_data: EventUpdate, identity: Identity) -> Event:
        """
        Edit a draft event.

        Raises:
            NotFoundError, PermissionDeniedError, InvalidStateError, ValidationError
        """
        await self._get_configs()
        changes = event_data.model_dump(exclude_unset=True)
        for field in ("title", "venue", "start_date", "end_date", "is_private", "registration_enabled"):
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be cleared")

        async with event_status_lock(event_id, self.consistency_config):
            with storage_errors("update_event"):
                with db_manager.get_transaction_session() as session:
                    event = load_event(session, event_id)
                    self._ensure_owner(event, identity)
                    if event.status != EventStatus.DRAFT:
                        raise InvalidStateError("Only draft events can be edited")

                    start = as_utc(changes.get("start_date", event.start_date))
                    end = as_utc(changes.get("end_date", event.end_date))
                    if end <= start:
                        raise ValidationError("End date must be after start date")

                    affected = session.query(Event).filter(
                        Event.id == event_id,
                        Event.status == EventStatus.DRAFT,
                    ).update({**changes, "updated_at": utc_now()}, synchronize_session="evaluate")
                    if affected != 1:
                        raise InvalidStateError("Event status changed, reload the event and try again")

                    session.commit()

        logger.info(f"Event {event_id} updated: {sorted(changes)}")
        return event

    async def _transition(self, event_id: str, identity: Identity, action: EventAction) -> Optional[Event]:
        """Run an owner action under the per-event lock in one transaction."""
        await self._get_configs()

        async with event_status_lock(event_id, self.consistency_config):
            with storage_errors(action.value):
                with db_manager.get_transaction_session() as session:
                    event = load_event(session, event_id)
                    self._ensure_owner(event, identity)
                    previous = event.status
                    target = apply_transition(session, event, action)
                    session.commit()

        logger.info(
            f"Event {event_id} {action.value}: {previous.value} -> "
            f"{target.value if target else 'removed'}"
        )
        return event if target else None

    async def submit_event(self, event_id: str, identity: Identity) -> Event:
        """Submit a draft for General Secretary review."""
        return await self._transition(event_id, identity, EventAction.SUBMIT)

    async def cancel_event(self, event_id: str, identity: Identity) -> Event:
        """Cancel a submitted, GS approved or final approved event."""
        return await self._transition(event_id, identity, EventAction.CANCEL)

    async def delete_event(self, event_id: str, identity: Identity) -> None:
        """Physically delete a draft."""
        await self._transition(event_id, identity, EventAction.DELETE)

    async def get_event(self, event_id: str) -> Event:
        """Get an event by ID."""
        with storage_errors("get_event"):
            with db_manager.get_session() as session:
                return load_event(session, event_id)

    async def list_owner_events(self, identity: Identity) -> List[Event]:
        """Events created by the caller, by start date."""
        with storage_errors("list_owner_events"):
            with db_manager.get_session() as session:
                return session.query(Event).filter(
                    Event.created_by == identity.user_id
                ).order_by(Event.start_date.asc()).all()

    async def list_review_queue(self, identity: Identity, status: Optional[EventStatus] = None) -> List[Event]:
        """
        Events visible to an approver, newest first.

        Args:
            identity: General Secretary or Dean
            status: Optional filter, must be one of the statuses the role may see

        Raises:
            PermissionDeniedError: If the caller is not an approver or asks for a hidden status
        """
        visible = REVIEW_VISIBILITY.get(identity.role)
        if visible is None:
            raise PermissionDeniedError("Only approvers can browse the review queue")
        if status is not None:
            if status not in visible:
                raise PermissionDeniedError(f"{status.value} events are not visible to this role")
            visible = [status]

        with storage_errors("list_review_queue"):
            with db_manager.get_session() as session:
                return session.query(Event).filter(
                    Event.status.in_(visible)
                ).order_by(Event.created_at.desc()).all()

    async def list_public_events(self) -> List[Event]:
        """Final approved, non-private events for the public calendar."""
        with storage_errors("list_public_events"):
            with db_manager.get_session() as session:
                return session.query(Event).filter(
                    Event.status == EventStatus.FINAL_APPROVED,
                    Event.is_private.is_(False),
                ).order_by(Event.start_date.asc()).all()


# Global service instance
event_service = EventService()
