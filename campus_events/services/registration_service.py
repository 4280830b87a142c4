"""
Registration Service: the registration ledger.
Issues tickets and enforces one registration per student per event.
"""

import secrets
from typing import List
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from campus_events.core.exceptions import AlreadyRegisteredError, PermissionDeniedError, InternalError
from campus_events.core.identity import Identity
from campus_events.db.database import db_manager, storage_errors
from campus_events.models.event import utc_now
from campus_events.models.registration import EventRegistration, RegistrationStatus
from campus_events.services.event_service import load_event

logger = logging.getLogger(__name__)

TICKET_PREFIX = "TKT"
TICKET_RANDOM_BYTES = 5


def generate_ticket_number() -> str:
    """
    Generate a ticket number of the form TKT-YYYYMMDD-XXXXXXXXXX.
    The suffix is 10 upper-case hex characters from a CSPRNG.
    """
    date_part = utc_now().strftime("%Y%m%d")
    random_part = secrets.token_hex(TICKET_RANDOM_BYTES).upper()
    return f"{TICKET_PREFIX}-{date_part}-{random_part}"


class RegistrationService:
    """Registration ledger operations."""

    def register(self, session: Session, event_id: str, student_id: str, phone_number: str) -> EventRegistration:
        """
        Insert a registration inside the caller's transaction.

        The caller owns the transaction: on AlreadyRegisteredError the session has
        already been rolled back, undoing anything else the caller wrote in it.

        Raises:
            AlreadyRegisteredError: If (event_id, student_id) is already registered
            InternalError: On any other integrity failure
        """
        registration = EventRegistration(
            event_id=event_id,
            student_id=student_id,
            phone_number=phone_number,
            ticket_number=generate_ticket_number(),
            status=RegistrationStatus.REGISTERED,
        )
        session.add(registration)

        try:
            session.flush()
        except IntegrityError as e:
            session.rollback()
            existing = session.query(EventRegistration.id).filter(
                EventRegistration.event_id == event_id,
                EventRegistration.student_id == student_id,
            ).first()
            if existing:
                logger.warning(f"Student {student_id} already registered for event {event_id}")
                raise AlreadyRegisteredError() from e
            logger.error(f"Registration insert failed for event {event_id}: {e}")
            raise InternalError() from e

        return registration

    async def list_student_registrations(self, identity: Identity) -> List[EventRegistration]:
        """Registrations held by the caller, newest first, with their events loaded."""
        with storage_errors("list_student_registrations"):
            with db_manager.get_session() as session:
                return session.query(EventRegistration).options(
                    joinedload(EventRegistration.event)
                ).filter(
                    EventRegistration.student_id == identity.user_id
                ).order_by(EventRegistration.registered_at.desc()).all()

    async def list_event_registrations(self, event_id: str, identity: Identity) -> List[EventRegistration]:
        """
        Registrations for one event, for the committee that owns it.

        Raises:
            NotFoundError: If the event does not exist
            PermissionDeniedError: If the caller does not own the event
        """
        with storage_errors("list_event_registrations"):
            with db_manager.get_session() as session:
                event = load_event(session, event_id)
                if event.created_by != identity.user_id:
                    raise PermissionDeniedError("Only the event owner can view its registrations")

                return session.query(EventRegistration).filter(
                    EventRegistration.event_id == event_id
                ).order_by(EventRegistration.registered_at.asc()).all()


# Global service instance
registration_service = RegistrationService()
