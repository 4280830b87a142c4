"""
OTP challenge and registration models for Campus Events Service.
"""

from enum import Enum as PyEnum

from sqlalchemy import (
    Column, String, DateTime, Boolean, Enum, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship

from campus_events.models.event import Base, new_id, utc_now, enum_values


class RegistrationStatus(str, PyEnum):
    """Registration status enumeration."""
    REGISTERED = "registered"
    CANCELLED = "cancelled"


class OtpChallenge(Base):
    """
    One-time code bound to (phone number, event, student).
    ``verified`` only ever moves from False to True.
    """

    __tablename__ = "otp_verifications"

    id = Column(String(36), primary_key=True, default=new_id)
    phone_number = Column(String(20), nullable=False)
    otp_code = Column(String(6), nullable=False)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    verified = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_otp_lookup", "phone_number", "event_id", "student_id", "verified"),
        Index("idx_otp_expires", "expires_at"),
    )

    def __repr__(self):
        return f"<OtpChallenge(id={self.id}, event_id={self.event_id}, verified={self.verified})>"


class EventRegistration(Base):
    """
    Registration of a student for an event.
    At most one per (event_id, student_id), enforced by the database.
    """

    __tablename__ = "event_registrations"

    id = Column(String(36), primary_key=True, default=new_id)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(64), nullable=False, index=True)
    phone_number = Column(String(20), nullable=False)
    ticket_number = Column(String(32), nullable=False, unique=True, index=True)
    registered_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    status = Column(
        Enum(RegistrationStatus, name="registration_status", values_callable=enum_values, native_enum=False),
        nullable=False,
        default=RegistrationStatus.REGISTERED,
    )

    event = relationship("Event")

    __table_args__ = (
        UniqueConstraint("event_id", "student_id", name="unique_event_student_registration"),
        Index("idx_registration_student_date", "student_id", "registered_at"),
    )

    def __repr__(self):
        return f"<EventRegistration(id={self.id}, ticket='{self.ticket_number}', status='{self.status.value}')>"
