"""
Twilio SMS Transport
Sends a rendered text to one phone number through the Twilio REST API
"""

import logging
from typing import Optional

import httpx

from ..config import (
    TWILIO_ACCOUNT_SID,
    TWILIO_API_BASE_URL,
    TWILIO_AUTH_TOKEN,
    TWILIO_FROM_NUMBER,
    TWILIO_MESSAGING_SERVICE_SID,
)

logger = logging.getLogger(__name__)


class SmsTransportError(Exception):
    """The provider did not accept the message"""


class TwilioTransport:
    """send(phone, text) -> provider message id, raising SmsTransportError on failure"""

    def __init__(
        self,
        account_sid: Optional[str] = TWILIO_ACCOUNT_SID,
        auth_token: Optional[str] = TWILIO_AUTH_TOKEN,
        from_number: Optional[str] = TWILIO_FROM_NUMBER,
        messaging_service_sid: Optional[str] = TWILIO_MESSAGING_SERVICE_SID,
        base_url: str = TWILIO_API_BASE_URL,
        timeout: float = 10.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.messaging_service_sid = messaging_service_sid
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

    def send(self, to_phone: str, body: str) -> str:
        """
        Send SMS via Twilio

        Args:
            to_phone: Recipient phone number in E.164 format
            body: Message text

        Returns:
            Twilio message SID
        """
        if not to_phone or not to_phone.startswith("+"):
            raise SmsTransportError(f"Phone number must be in E.164 format: {to_phone}")

        if not self.account_sid or not self.auth_token:
            raise SmsTransportError("Twilio credentials are not configured")

        data = {"To": to_phone, "Body": body}
        if self.messaging_service_sid:
            data["MessagingServiceSid"] = self.messaging_service_sid
        elif self.from_number:
            data["From"] = self.from_number
        else:
            raise SmsTransportError(
                "Configure TWILIO_FROM_NUMBER or TWILIO_MESSAGING_SERVICE_SID"
            )

        url = f"{self.base_url}/Accounts/{self.account_sid}/Messages.json"
        logger.info(f"🚀 Sending SMS to Twilio API for {to_phone}")

        try:
            if self._http_client is not None:
                response = self._http_client.post(
                    url, auth=(self.account_sid, self.auth_token), data=data, timeout=self.timeout
                )
            else:
                with httpx.Client() as client:
                    response = client.post(
                        url,
                        auth=(self.account_sid, self.auth_token),
                        data=data,
                        timeout=self.timeout,
                    )
        except httpx.HTTPError as e:
            logger.error(f"Twilio API error: {str(e)}")
            raise SmsTransportError(str(e)) from e

        logger.info(f"📡 Twilio API response status: {response.status_code}")

        if response.status_code in [200, 201]:
            message_sid = response.json().get("sid")
            if not message_sid:
                raise SmsTransportError("Twilio response did not include a message SID")
            return message_sid

        try:
            error_data = response.json()
        except ValueError:
            error_data = {}
        error_message = error_data.get("message", f"HTTP {response.status_code}")
        error_code = error_data.get("code")

        logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
        raise SmsTransportError(f"[{error_code}] {error_message}" if error_code else error_message)
