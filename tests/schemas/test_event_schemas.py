"""
Tests for event, approval and registration schemas.
"""

import pytest
from datetime import datetime, timezone, timedelta
from pydantic import ValidationError

from campus_events.models.lifecycle import ApprovalType, DecisionStatus, EventStatus
from campus_events.schemas.event import (
    EventCreate,
    EventUpdate,
    EventActionRequest,
    RecordDecisionRequest,
    RecordDecisionResponse,
    ApprovalDecisionResponse,
)
from campus_events.schemas.registration import RequestCodeRequest, VerifyCodeRequest, VerifyCodeResponse

START = datetime(2030, 3, 1, 10, 0, tzinfo=timezone.utc)


class TestEventCreate:
    """Test EventCreate validation."""

    def test_valid_event(self):
        event = EventCreate(title="  Hackathon ", venue="Lab 3", start_date=START, end_date=START + timedelta(hours=8))

        assert event.title == "Hackathon"
        assert event.is_private is False
        assert event.registration_enabled is False

    def test_end_must_follow_start(self):
        with pytest.raises(ValidationError):
            EventCreate(title="Hackathon", venue="Lab 3", start_date=START, end_date=START)

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError):
            EventCreate(title="   ", venue="Lab 3", start_date=START, end_date=START + timedelta(hours=1))

    def test_negative_budget_rejected(self):
        with pytest.raises(ValidationError):
            EventCreate(
                title="Hackathon", venue="Lab 3", start_date=START,
                end_date=START + timedelta(hours=1), budget=-1,
            )

    def test_naive_and_aware_dates_compare(self):
        event = EventCreate(
            title="Hackathon", venue="Lab 3",
            start_date=datetime(2030, 3, 1, 10, 0),
            end_date=START + timedelta(hours=1),
        )
        assert event.end_date > event.start_date.replace(tzinfo=timezone.utc)


class TestEventUpdate:
    """Test EventUpdate validation."""

    def test_partial_update(self):
        update = EventUpdate(venue="Open Air Theatre")
        assert update.model_dump(exclude_unset=True) == {"venue": "Open Air Theatre"}

    def test_dates_checked_when_both_given(self):
        with pytest.raises(ValidationError):
            EventUpdate(start_date=START, end_date=START - timedelta(hours=1))


class TestCamelCaseBodies:
    """Test the camelCase request and response bodies."""

    def test_event_action_request(self):
        assert EventActionRequest(**{"eventId": "abc"}).event_id == "abc"

    def test_record_decision_request(self):
        request = RecordDecisionRequest(**{
            "eventId": "abc",
            "approvalType": "gs_approval",
            "decision": "approved",
        })
        assert request.approval_type == ApprovalType.GS_APPROVAL
        assert request.decision == DecisionStatus.APPROVED
        assert request.comments is None

    def test_record_decision_rejects_unknown_type(self):
        with pytest.raises(ValidationError):
            RecordDecisionRequest(**{"eventId": "abc", "approvalType": "vc_approval", "decision": "approved"})

    def test_record_decision_response_aliases(self):
        response = RecordDecisionResponse(
            event_id="abc",
            event_status=EventStatus.GS_APPROVED,
            decision=ApprovalDecisionResponse(
                id="d1", event_id="abc", approver_id="gs-1",
                approval_type=ApprovalType.GS_APPROVAL, status=DecisionStatus.APPROVED,
                created_at=START,
            ),
        )
        body = response.model_dump(by_alias=True, mode="json")

        assert body["success"] is True
        assert body["eventId"] == "abc"
        assert body["eventStatus"] == "gs_approved"
        assert body["decision"]["status"] == "approved"

    def test_registration_requests(self):
        request = RequestCodeRequest(**{"phoneNumber": "9876543210", "eventId": "abc"})
        assert request.phone_number == "9876543210"

        verify = VerifyCodeRequest(**{"phoneNumber": "9876543210", "otpCode": "012345", "eventId": "abc"})
        assert verify.otp_code == "012345"

    def test_verify_code_response(self):
        body = VerifyCodeResponse(ticket_number="TKT-20300301-ABCDEF0123").model_dump(by_alias=True)
        assert body == {
            "success": True,
            "message": "Registration completed successfully!",
            "ticketNumber": "TKT-20300301-ABCDEF0123",
        }
