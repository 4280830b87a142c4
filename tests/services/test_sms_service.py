"""
Tests for SMS delivery through the provider API.
"""

import json
import pytest
import httpx
from unittest.mock import patch

from campus_events.services.sms_service import SMSService, build_otp_message, build_sms_payload

PROVIDER_ENV = {
    "FAST2SMS_API_KEY": "test-key",
    "SMS_API_URL": "https://sms.example.com/dev/bulkV2",
}


async def provider_service(handler):
    """SMS service whose HTTP client is served by ``handler``."""
    service = SMSService()
    await service.initialize(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    return service


class TestMessages:
    """Test SMS texts and payloads."""

    def test_otp_message(self):
        assert build_otp_message("012345", 10) == (
            "Your OTP for event registration is: 012345. Valid for 10 minutes."
        )

    def test_payload(self):
        assert build_sms_payload("9876543210", "Your OTP", "q") == {
            "route": "q",
            "message": "Your OTP",
            "language": "english",
            "flash": 0,
            "numbers": "9876543210",
        }


class TestSendSMS:
    """Test delivery and the provider's answer."""

    @pytest.mark.asyncio
    async def test_provider_accepts(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, json={"return": True, "request_id": "abc"})

        service = await provider_service(handler)
        with patch.dict("os.environ", PROVIDER_ENV):
            assert await service.send_sms("9876543210", "Your OTP") is True
        await service.close()

        request = seen["request"]
        assert str(request.url) == PROVIDER_ENV["SMS_API_URL"]
        assert request.headers["authorization"] == "test-key"
        body = json.loads(request.content)
        assert body["numbers"] == "9876543210"
        assert body["route"] == "q"
        assert body["message"] == "Your OTP"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 401, 500, 503])
    async def test_provider_rejects(self, status_code):
        service = await provider_service(lambda request: httpx.Response(status_code, json={"return": False}))

        with patch.dict("os.environ", PROVIDER_ENV):
            assert await service.send_sms("9876543210", "Your OTP") is False
        await service.close()

    @pytest.mark.asyncio
    async def test_provider_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = await provider_service(handler)
        with patch.dict("os.environ", PROVIDER_ENV):
            assert await service.send_sms("9876543210", "Your OTP") is False
        await service.close()

    @pytest.mark.asyncio
    async def test_missing_api_key_skips_provider(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        service = await provider_service(handler)
        with patch.dict("os.environ", {"FAST2SMS_API_KEY": ""}):
            assert await service.send_sms("9876543210", "Your OTP") is False
        await service.close()

        assert calls == []


class TestLifecycle:
    """Test client setup and teardown."""

    @pytest.mark.asyncio
    async def test_initialize_and_close(self):
        service = SMSService()
        assert not service.is_initialized()

        await service.initialize()
        assert service.is_initialized()

        await service.close()
        assert not service.is_initialized()
