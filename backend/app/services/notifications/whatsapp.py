import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.core.http_client import HTTPClientConfig, ServiceHTTPClient

logger = logging.getLogger(__name__)


class WhatsAppDeliveryError(Exception):
    pass


def whatsapp_address(number: str) -> str:
    return number if number.startswith("whatsapp:") else f"whatsapp:{number}"


class WhatsAppSender(ServiceHTTPClient):
    """Sends WhatsApp messages through the Twilio Messages REST resource"""

    def __init__(
        self,
        account_sid: str = None,
        auth_token: str = None,
        from_number: str = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid if account_sid is not None else settings.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token if auth_token is not None else settings.TWILIO_AUTH_TOKEN
        self.from_number = from_number if from_number is not None else settings.TWILIO_WHATSAPP_NUMBER
        super().__init__(
            HTTPClientConfig(
                base_url=f"{settings.TWILIO_API_URL}/Accounts/{self.account_sid}",
                timeout=settings.TWILIO_REQUEST_TIMEOUT,
                auth=httpx.BasicAuth(self.account_sid, self.auth_token),
            ),
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    async def send(self, to: str, body: str) -> str:
        """Send a message and return the provider's message sid"""
        if not self.is_configured:
            raise WhatsAppDeliveryError("Twilio credentials are not set")
        if not to:
            raise WhatsAppDeliveryError("No WhatsApp number given")

        try:
            response = await self.post(
                "/Messages.json",
                data={
                    "From": whatsapp_address(self.from_number),
                    "To": whatsapp_address(to),
                    "Body": body,
                },
            )
        except httpx.HTTPError as e:
            raise WhatsAppDeliveryError(str(e)) from e

        sid = response.json().get("sid")
        logger.info(f"WhatsApp message {sid} sent to {to}")
        return sid
