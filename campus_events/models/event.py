"""
Event and approval decision models for Campus Events Service.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Column, String, Text, DateTime, Boolean, Integer, Numeric, Enum,
    ForeignKey, Index, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship

from campus_events.models.lifecycle import (
    EventStatus, ApprovalType, DecisionStatus, allowed_actions
)

Base = declarative_base()


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Event(Base):
    """
    Event proposed by a committee.
    ``status`` is the single authoritative lifecycle field.
    """

    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    venue = Column(String(255), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        Enum(EventStatus, name="event_status", values_callable=enum_values, native_enum=False),
        nullable=False,
        default=EventStatus.DRAFT,
        index=True,
    )

    # Descriptive metadata, no business rules attached
    department = Column(String(255), nullable=True)
    expected_attendees = Column(Integer, nullable=True)
    budget = Column(Numeric(12, 2), nullable=True)
    resources_needed = Column(Text, nullable=True)

    is_private = Column(Boolean, nullable=False, default=False)
    registration_enabled = Column(Boolean, nullable=False, default=False)

    created_by = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    approvals = relationship("ApprovalDecision", back_populates="event", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="check_event_dates_ordered"),
        CheckConstraint("expected_attendees IS NULL OR expected_attendees >= 0", name="check_attendees_positive"),
        CheckConstraint("budget IS NULL OR budget >= 0", name="check_budget_positive"),
        Index("idx_event_owner_start", "created_by", "start_date"),
        Index("idx_event_status_created", "status", "created_at"),
    )

    def __repr__(self):
        return f"<Event(id={self.id}, title='{self.title}', status='{self.status.value}')>"

    @property
    def allowed_actions(self) -> list:
        """Lifecycle actions currently legal for this event."""
        return [action.value for action in allowed_actions(self.status)]

    @property
    def is_open_for_registration(self) -> bool:
        """Registration is open only on final approved events with registration enabled."""
        return self.status == EventStatus.FINAL_APPROVED and bool(self.registration_enabled)


class ApprovalDecision(Base):
    """
    Immutable approval or rejection recorded by an approver.
    Appended by the approval engine only.
    """

    __tablename__ = "event_approvals"

    id = Column(String(36), primary_key=True, default=new_id)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    approver_id = Column(String(64), nullable=False)
    approval_type = Column(
        Enum(ApprovalType, name="approval_type", values_callable=enum_values, native_enum=False),
        nullable=False,
    )
    status = Column(
        Enum(DecisionStatus, name="decision_status", values_callable=enum_values, native_enum=False),
        nullable=False,
    )
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    event = relationship("Event", back_populates="approvals")

    __table_args__ = (
        Index("idx_approval_event_created", "event_id", "created_at"),
    )

    def __repr__(self):
        return (
            f"<ApprovalDecision(id={self.id}, event_id={self.event_id}, "
            f"type='{self.approval_type.value}', status='{self.status.value}')>"
        )
