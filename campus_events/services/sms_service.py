"""
SMS delivery for Campus Events Service.
OTP messages are posted to the Fast2SMS bulk API and the caller waits for its answer.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from campus_events.core.config import config

logger = logging.getLogger(__name__)


def build_otp_message(otp_code: str, expiry_minutes: int) -> str:
    """Text of the OTP SMS."""
    return f"Your OTP for event registration is: {otp_code}. Valid for {expiry_minutes} minutes."


def build_sms_payload(phone_number: str, message: str, route: str) -> Dict[str, Any]:
    """Request body for the Fast2SMS bulk API."""
    return {
        "route": route,
        "message": message,
        "language": "english",
        "flash": 0,
        "numbers": phone_number,
    }


class SMSService:
    """
    SMS delivery through the provider's HTTP API.
    ``send_sms`` returns False when the provider did not accept the message.
    """

    def __init__(self):
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self, client: Optional[httpx.AsyncClient] = None):
        """Open the HTTP client used for provider calls."""
        if self._client is not None:
            return

        self._client = client or httpx.AsyncClient()
        logger.info("HTTP client initialized for SMS delivery")

    async def send_sms(self, phone_number: str, message: str) -> bool:
        """
        Deliver an SMS and wait for the provider's answer.

        Args:
            phone_number: Destination number
            message: Message body

        Returns:
            True if the provider accepted the message, False otherwise
        """
        sms_config = await config.get_sms_config()
        if not sms_config.get("api_key"):
            logger.error("SMS not sent: SMS API key not configured")
            return False

        if self._client is None:
            await self.initialize()

        try:
            response = await self._client.post(
                sms_config["api_url"],
                headers={"authorization": sms_config["api_key"]},
                json=build_sms_payload(phone_number, message, sms_config["route"]),
                timeout=sms_config["timeout_seconds"],
            )
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            logger.error(f"SMS provider rejected message to ***{phone_number[-4:]}: {e.response.status_code}")
            return False
        except httpx.HTTPError as e:
            logger.error(f"SMS provider unreachable for ***{phone_number[-4:]}: {e}")
            return False

        logger.info(f"SMS delivered to ***{phone_number[-4:]}")
        return True

    def is_initialized(self) -> bool:
        """Check if the SMS service is ready to deliver."""
        return self._client is not None

    async def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("SMS delivery client closed")


# Global SMS service instance
sms_service = SMSService()
