"""
Verification Service: OTP gate in front of event registration.
Issues phone-number challenges and turns a verified challenge into a registration.
"""

import secrets
from datetime import datetime, timedelta
from typing import Any, Dict
import logging

from sqlalchemy.orm import Session

from campus_events.core.config import config
from campus_events.core.exceptions import (
    ValidationError, PermissionDeniedError, InvalidStateError,
    InvalidOrExpiredCodeError, DeliveryFailedError
)
from campus_events.core.identity import Identity, Role
from campus_events.db.database import db_manager, storage_errors
from campus_events.models.event import Event, utc_now
from campus_events.models.registration import OtpChallenge
from campus_events.services.event_service import load_event
from campus_events.services.registration_service import registration_service
from campus_events.services.sms_service import sms_service, build_otp_message

logger = logging.getLogger(__name__)


def _is_digits(value: str, length: int) -> bool:
    return len(value) == length and value.isascii() and value.isdigit()


class VerificationService:
    """
    OTP challenge issue and verification.
    Codes come from the secrets module and are never logged.
    """

    def __init__(self):
        self.otp_config = None

    async def _get_configs(self):
        """Get configuration settings."""
        if not self.otp_config:
            self.otp_config = await config.get_otp_config()

    def _generate_otp(self) -> str:
        """Generate a zero-padded numeric OTP."""
        length = self.otp_config["otp_length"]
        return str(secrets.randbelow(10 ** length)).zfill(length)

    def _validate_phone(self, phone_number: str):
        length = self.otp_config["phone_number_length"]
        if not _is_digits(phone_number or "", length):
            raise ValidationError(f"Please enter a valid {length}-digit phone number")

    @staticmethod
    def _validate_event_id(event_id: str):
        if not event_id:
            raise ValidationError("Event ID is required")

    @staticmethod
    def _ensure_student(identity: Identity):
        if identity.role != Role.STUDENT:
            raise PermissionDeniedError("Only students can register for events")

    @staticmethod
    def _load_open_event(session: Session, event_id: str) -> Event:
        event = load_event(session, event_id)
        if not event.is_open_for_registration:
            raise InvalidStateError("Registration is not open for this event")
        return event

    async def request_code(self, phone_number: str, event_id: str, identity: Identity) -> Dict[str, Any]:
        """
        Issue an OTP challenge and send it by SMS.

        The challenge is committed before dispatch, so a failed send leaves a valid
        challenge behind. Earlier challenges stay valid until they expire.

        Returns:
            Dict with ``expires_at``

        Raises:
            ValidationError: If the phone number is malformed
            PermissionDeniedError: If the caller is not a student
            NotFoundError: If the event does not exist
            InvalidStateError: If the event is not open for registration
            DeliveryFailedError: If the SMS provider did not accept the message
        """
        await self._get_configs()
        self._validate_phone(phone_number)
        self._validate_event_id(event_id)
        self._ensure_student(identity)

        expiry_minutes = self.otp_config["otp_expiry_minutes"]
        otp_code = self._generate_otp()

        with storage_errors("request_code"):
            with db_manager.get_transaction_session() as session:
                self._load_open_event(session, event_id)

                now = utc_now()
                challenge = OtpChallenge(
                    phone_number=phone_number,
                    otp_code=otp_code,
                    event_id=event_id,
                    student_id=identity.user_id,
                    created_at=now,
                    expires_at=now + timedelta(minutes=expiry_minutes),
                )
                session.add(challenge)
                session.commit()

        expires_at: datetime = challenge.expires_at
        logger.info(f"OTP challenge {challenge.id} issued for event {event_id} to ***{phone_number[-4:]}")

        sent = await sms_service.send_sms(phone_number, build_otp_message(otp_code, expiry_minutes))
        if not sent:
            logger.error(f"OTP delivery failed for challenge {challenge.id}")
            raise DeliveryFailedError()

        return {"expires_at": expires_at}

    async def verify_code(self, phone_number: str, otp_code: str, event_id: str, identity: Identity) -> Dict[str, Any]:
        """
        Consume a matching challenge and register the student in one transaction.

        If registration fails the challenge is left unverified.

        Returns:
            Dict with ``ticket_number`` and ``registration_id``

        Raises:
            ValidationError: If the phone number or code is malformed
            PermissionDeniedError: If the caller is not a student
            NotFoundError: If the event does not exist
            InvalidStateError: If the event is not open for registration
            InvalidOrExpiredCodeError: If no unused, unexpired challenge matches
            AlreadyRegisteredError: If the student already holds a registration
        """
        await self._get_configs()
        self._validate_phone(phone_number)
        self._validate_event_id(event_id)
        length = self.otp_config["otp_length"]
        if not _is_digits(otp_code or "", length):
            raise ValidationError(f"Please enter a valid {length}-digit OTP")
        self._ensure_student(identity)

        with storage_errors("verify_code"):
            with db_manager.get_transaction_session() as session:
                self._load_open_event(session, event_id)

                now = utc_now()
                challenge = session.query(OtpChallenge).filter(
                    OtpChallenge.phone_number == phone_number,
                    OtpChallenge.otp_code == otp_code,
                    OtpChallenge.event_id == event_id,
                    OtpChallenge.student_id == identity.user_id,
                    OtpChallenge.verified.is_(False),
                    OtpChallenge.expires_at > now,
                ).order_by(OtpChallenge.created_at.desc()).first()

                if not challenge:
                    logger.warning(f"OTP verification failed for event {event_id} by {identity.user_id}")
                    raise InvalidOrExpiredCodeError()

                # Consume once; a concurrent verify of the same challenge matches zero rows
                consumed = session.query(OtpChallenge).filter(
                    OtpChallenge.id == challenge.id,
                    OtpChallenge.verified.is_(False),
                ).update({OtpChallenge.verified: True}, synchronize_session=False)
                if consumed != 1:
                    raise InvalidOrExpiredCodeError()

                registration = registration_service.register(
                    session, event_id, identity.user_id, phone_number
                )
                session.commit()

        logger.info(f"Student {identity.user_id} registered for event {event_id} with ticket {registration.ticket_number}")
        return {
            "ticket_number": registration.ticket_number,
            "registration_id": registration.id,
        }


# Global service instance
verification_service = VerificationService()
