"""
Pydantic schemas for event and approval operations.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator, model_validator

from campus_events.models.event import as_utc
from campus_events.models.lifecycle import EventStatus, ApprovalType, DecisionStatus


class EventBase(BaseModel):
    """Base event schema."""
    title: str = Field(..., min_length=1, max_length=255, description="Event title")
    description: Optional[str] = Field(None, description="Event description")
    venue: str = Field(..., min_length=1, max_length=255, description="Event venue")
    start_date: datetime = Field(..., description="Event start date and time")
    end_date: datetime = Field(..., description="Event end date and time")
    department: Optional[str] = Field(None, max_length=255)
    expected_attendees: Optional[int] = Field(None, ge=0)
    budget: Optional[Decimal] = Field(None, ge=0)
    resources_needed: Optional[str] = None
    is_private: bool = Field(False, description="Visibility hint, keeps the event off the public calendar")
    registration_enabled: bool = Field(False, description="Allow student registration once approved")

    @field_validator("title", "venue")
    @classmethod
    def validate_required_text(cls, v):
        """Reject blank titles and venues."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class EventCreate(EventBase):
    """Schema for creating a new event. Status is always draft on creation."""

    @model_validator(mode="after")
    def validate_dates(self):
        if as_utc(self.end_date) <= as_utc(self.start_date):
            raise ValueError("end_date must be after start_date")
        return self


class EventUpdate(BaseModel):
    """Schema for editing a draft event."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    venue: Optional[str] = Field(None, min_length=1, max_length=255)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    department: Optional[str] = Field(None, max_length=255)
    expected_attendees: Optional[int] = Field(None, ge=0)
    budget: Optional[Decimal] = Field(None, ge=0)
    resources_needed: Optional[str] = None
    is_private: Optional[bool] = None
    registration_enabled: Optional[bool] = None

    @field_validator("title", "venue")
    @classmethod
    def validate_required_text(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @model_validator(mode="after")
    def validate_dates(self):
        if self.start_date and self.end_date and as_utc(self.end_date) <= as_utc(self.start_date):
            raise ValueError("end_date must be after start_date")
        return self


class EventResponse(BaseModel):
    """Schema for event response."""
    id: str
    title: str
    description: Optional[str] = None
    venue: str
    start_date: datetime
    end_date: datetime
    status: EventStatus
    department: Optional[str] = None
    expected_attendees: Optional[int] = None
    budget: Optional[Decimal] = None
    resources_needed: Optional[str] = None
    is_private: bool
    registration_enabled: bool
    created_by: str
    created_at: datetime
    updated_at: datetime
    allowed_actions: List[str] = Field(default_factory=list, description="Lifecycle actions legal right now")

    class Config:
        from_attributes = True


class EventListResponse(BaseModel):
    """Schema for event list response."""
    events: List[EventResponse]
    total: int


class EventActionRequest(BaseModel):
    """Body of submitEvent, cancelEvent and deleteEvent."""
    event_id: str = Field(..., alias="eventId", min_length=1)

    class Config:
        populate_by_name = True


class MessageResponse(BaseModel):
    """Generic message response schema."""
    message: str
    success: bool = True


class RecordDecisionRequest(BaseModel):
    """Body of recordDecision."""
    event_id: str = Field(..., alias="eventId", min_length=1)
    approval_type: ApprovalType = Field(..., alias="approvalType")
    decision: DecisionStatus
    comments: Optional[str] = Field(None, max_length=2000)

    class Config:
        populate_by_name = True


class ApprovalDecisionResponse(BaseModel):
    """Schema for a recorded approval decision."""
    id: str
    event_id: str
    approver_id: str
    approval_type: ApprovalType
    status: DecisionStatus
    comments: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RecordDecisionResponse(BaseModel):
    """Result of recordDecision: the updated event status and the stored decision."""
    success: bool = True
    event_id: str = Field(..., alias="eventId")
    event_status: EventStatus = Field(..., alias="eventStatus")
    decision: ApprovalDecisionResponse

    class Config:
        populate_by_name = True


class HealthCheckResponse(BaseModel):
    """Schema for health check response."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(default_factory=datetime.now, description="Health check timestamp")
    version: str = Field(..., description="Service version")
    database: str = Field(..., description="Database connection status")
    redis: str = Field(..., description="Redis connection status")
