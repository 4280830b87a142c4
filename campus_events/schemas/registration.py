"""
Pydantic schemas for OTP verification and registration.
Presence and format checks on phone numbers, codes and event IDs happen in the
verification service.
"""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field

from campus_events.models.registration import RegistrationStatus


class RequestCodeRequest(BaseModel):
    """Body of requestCode."""
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    event_id: Optional[str] = Field(None, alias="eventId")

    class Config:
        populate_by_name = True


class RequestCodeResponse(BaseModel):
    """Successful requestCode result."""
    success: bool = True
    message: str = "OTP sent successfully"
    expires_at: datetime = Field(..., alias="expiresAt")

    class Config:
        populate_by_name = True


class VerifyCodeRequest(BaseModel):
    """Body of verifyCode."""
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    otp_code: Optional[str] = Field(None, alias="otpCode")
    event_id: Optional[str] = Field(None, alias="eventId")

    class Config:
        populate_by_name = True


class VerifyCodeResponse(BaseModel):
    """Successful verifyCode result."""
    success: bool = True
    message: str = "Registration completed successfully!"
    ticket_number: str = Field(..., alias="ticketNumber")

    class Config:
        populate_by_name = True


class RegistrationResponse(BaseModel):
    """Schema for a registration."""
    id: str
    event_id: str
    student_id: str
    phone_number: str
    ticket_number: str
    registered_at: datetime
    status: RegistrationStatus

    class Config:
        from_attributes = True


class StudentRegistrationResponse(RegistrationResponse):
    """Registration joined with the event it belongs to."""
    event_title: Optional[str] = None
    event_venue: Optional[str] = None
    event_start_date: Optional[datetime] = None


class RegistrationListResponse(BaseModel):
    """Schema for registration list response."""
    registrations: List[StudentRegistrationResponse]
    total: int
