"""
Registration API endpoints for Campus Events Service.
OTP request and verification, and registration listings.

requestCode and verifyCode render their own failure bodies,
``{success: false, error}`` and ``{success: false, message}`` respectively.
"""

from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Path
from fastapi.responses import JSONResponse

from campus_events.api.dependencies import get_current_identity, get_client_ip, require_roles
from campus_events.core.exceptions import DomainError
from campus_events.core.identity import Identity, Role
from campus_events.schemas.registration import (
    RequestCodeRequest,
    RequestCodeResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
    RegistrationResponse,
    StudentRegistrationResponse,
    RegistrationListResponse,
)
from campus_events.services.registration_service import registration_service
from campus_events.services.verification_service import verification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/registrations", tags=["registrations"])

FAILURE_MESSAGE_KEYS = {
    f"{router.prefix}/requestCode": "error",
    f"{router.prefix}/verifyCode": "message",
}


def failure_message_key(path: str) -> Optional[str]:
    """Key that carries the failure message on requestCode and verifyCode, None elsewhere."""
    for route_path, message_key in FAILURE_MESSAGE_KEYS.items():
        if path.endswith(route_path):
            return message_key
    return None


def failure_response(message_key: str, error: DomainError) -> JSONResponse:
    """Render a domain error in the requestCode / verifyCode failure shape."""
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, message_key: error.message, "error_code": error.code.value},
    )


@router.post("/requestCode", response_model=RequestCodeResponse)
async def request_code(
    request: RequestCodeRequest,
    identity: Identity = Depends(get_current_identity),
    client_ip: str = Depends(get_client_ip)
):
    """
    Send a registration OTP to the student's phone.

    Returns:
        ``{success, expiresAt}`` or ``{success: false, error}``
    """
    try:
        result = await verification_service.request_code(
            phone_number=request.phone_number,
            event_id=request.event_id,
            identity=identity,
        )
        return RequestCodeResponse(expires_at=result["expires_at"])

    except DomainError as e:
        logger.warning(f"requestCode from {client_ip} failed: {e}")
        return failure_response("error", e)


@router.post("/verifyCode", response_model=VerifyCodeResponse)
async def verify_code(
    request: VerifyCodeRequest,
    identity: Identity = Depends(get_current_identity),
    client_ip: str = Depends(get_client_ip)
):
    """
    Verify an OTP and register the student for the event.

    Returns:
        ``{success, ticketNumber}`` or ``{success: false, message}``
    """
    try:
        result = await verification_service.verify_code(
            phone_number=request.phone_number,
            otp_code=request.otp_code,
            event_id=request.event_id,
            identity=identity,
        )
        return VerifyCodeResponse(ticket_number=result["ticket_number"])

    except DomainError as e:
        logger.warning(f"verifyCode from {client_ip} failed: {e}")
        return failure_response("message", e)


@router.get("/mine", response_model=RegistrationListResponse)
async def my_registrations(identity: Identity = Depends(require_roles(Role.STUDENT))):
    """Registrations held by the calling student, newest first."""
    registrations = await registration_service.list_student_registrations(identity)
    items = [
        StudentRegistrationResponse(
            **RegistrationResponse.model_validate(registration).model_dump(),
            event_title=registration.event.title if registration.event else None,
            event_venue=registration.event.venue if registration.event else None,
            event_start_date=registration.event.start_date if registration.event else None,
        )
        for registration in registrations
    ]
    return RegistrationListResponse(registrations=items, total=len(items))


@router.get("/event/{event_id}", response_model=List[RegistrationResponse])
async def event_registrations(
    event_id: str = Path(..., description="Event ID"),
    identity: Identity = Depends(get_current_identity)
):
    """Registrations for an event, visible to the committee that owns it."""
    registrations = await registration_service.list_event_registrations(event_id, identity)
    return [RegistrationResponse.model_validate(registration) for registration in registrations]
