"""
Tests for event and approval API endpoints.
"""

from datetime import datetime, timedelta, timezone

from campus_events.models.lifecycle import EventStatus

START = datetime.now(timezone.utc) + timedelta(days=10)


def event_body(**overrides):
    body = {
        "title": "Robotics Expo",
        "venue": "Exhibition Hall",
        "start_date": START.isoformat(),
        "end_date": (START + timedelta(hours=6)).isoformat(),
        "registration_enabled": True,
    }
    body.update(overrides)
    return body


class TestEventsAPI:
    """Test event endpoints."""

    def test_unauthenticated_request_rejected(self, client):
        response = client.post("/api/v1/events/", json=event_body())
        assert response.status_code in (401, 403)

    def test_create_event(self, client, auth_headers, committee):
        response = client.post("/api/v1/events/", json=event_body(), headers=auth_headers(committee))

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "draft"
        assert data["created_by"] == committee.user_id
        assert data["allowed_actions"] == ["submit", "delete"]

    def test_student_cannot_create(self, client, auth_headers, student):
        response = client.post("/api/v1/events/", json=event_body(), headers=auth_headers(student))

        assert response.status_code == 403
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "PERMISSION_DENIED"
        assert "timestamp" in data

    def test_invalid_dates_rejected(self, client, auth_headers, committee):
        body = event_body(end_date=(START - timedelta(hours=1)).isoformat())

        response = client.post("/api/v1/events/", json=body, headers=auth_headers(committee))

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_update_and_get_event(self, client, auth_headers, committee, make_event):
        event = make_event()

        response = client.put(
            f"/api/v1/events/{event.id}", json={"venue": "Block C"}, headers=auth_headers(committee)
        )
        assert response.status_code == 200
        assert response.json()["venue"] == "Block C"

        response = client.get(f"/api/v1/events/{event.id}", headers=auth_headers(committee))
        assert response.json()["venue"] == "Block C"

    def test_get_missing_event(self, client, auth_headers, committee):
        response = client.get("/api/v1/events/missing", headers=auth_headers(committee))

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_submit_cancel_delete(self, client, auth_headers, committee, make_event):
        draft = make_event()
        headers = auth_headers(committee)

        response = client.post("/api/v1/events/submitEvent", json={"eventId": draft.id}, headers=headers)
        assert response.status_code == 200
        assert response.json()["status"] == "submitted"

        response = client.post("/api/v1/events/deleteEvent", json={"eventId": draft.id}, headers=headers)
        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATE"

        response = client.post("/api/v1/events/cancelEvent", json={"eventId": draft.id}, headers=headers)
        assert response.json()["status"] == "cancelled"

        other = make_event()
        response = client.post("/api/v1/events/deleteEvent", json={"eventId": other.id}, headers=headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Event deleted successfully", "success": True}

    def test_my_events(self, client, auth_headers, committee, other_committee, make_event):
        mine = make_event()
        make_event(created_by=other_committee.user_id)

        response = client.get("/api/v1/events/mine", headers=auth_headers(committee))

        data = response.json()
        assert data["total"] == 1
        assert data["events"][0]["id"] == mine.id

    def test_public_calendar_needs_no_auth(self, client, make_event):
        approved = make_event(status=EventStatus.FINAL_APPROVED)
        make_event(status=EventStatus.SUBMITTED)

        response = client.get("/api/v1/events/calendar")

        assert response.status_code == 200
        assert [e["id"] for e in response.json()["events"]] == [approved.id]

    def test_review_queue(self, client, auth_headers, general_secretary, committee, make_event):
        submitted = make_event(status=EventStatus.SUBMITTED)

        response = client.get("/api/v1/events/review?status=submitted", headers=auth_headers(general_secretary))
        assert [e["id"] for e in response.json()["events"]] == [submitted.id]

        response = client.get("/api/v1/events/review", headers=auth_headers(committee))
        assert response.status_code == 403


class TestApprovalsAPI:
    """Test approval endpoints."""

    def test_record_decision(self, client, auth_headers, general_secretary, make_event):
        event = make_event(status=EventStatus.SUBMITTED)

        response = client.post(
            "/api/v1/approvals/recordDecision",
            json={"eventId": event.id, "approvalType": "gs_approval", "decision": "approved", "comments": "OK"},
            headers=auth_headers(general_secretary),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["eventId"] == event.id
        assert data["eventStatus"] == "gs_approved"
        assert data["decision"]["approver_id"] == general_secretary.user_id
        assert data["decision"]["comments"] == "OK"

    def test_dean_on_submitted_event(self, client, auth_headers, dean, committee, make_event):
        event = make_event(status=EventStatus.SUBMITTED)

        response = client.post(
            "/api/v1/approvals/recordDecision",
            json={"eventId": event.id, "approvalType": "dean_approval", "decision": "approved"},
            headers=auth_headers(dean),
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATE"

        history = client.get(f"/api/v1/approvals/{event.id}", headers=auth_headers(committee))
        assert history.json() == []

    def test_unknown_decision_value(self, client, auth_headers, dean, make_event):
        event = make_event(status=EventStatus.GS_APPROVED)

        response = client.post(
            "/api/v1/approvals/recordDecision",
            json={"eventId": event.id, "approvalType": "dean_approval", "decision": "maybe"},
            headers=auth_headers(dean),
        )

        assert response.status_code == 422
