"""
Flutterwave transaction verification client
"""

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import UpstreamServiceError
from app.core.http_client import HTTPClientConfig, ServiceHTTPClient

logger = logging.getLogger(__name__)

NOT_FOUND = "not_found"
BAD_CREDENTIALS = "bad_credentials"
NETWORK = "network"
GENERIC = "generic"


class PaymentGatewayError(UpstreamServiceError):
    """Gateway call failed; ``kind`` tells callers which of the known failure modes it was"""

    def __init__(self, message: str, kind: str = GENERIC, status_code: int = 500, **kwargs):
        super().__init__(message, status_code=status_code, **kwargs)
        self.kind = kind


def classify_gateway_error(exc: httpx.HTTPError) -> PaymentGatewayError:
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        code = response.status_code
        if code == 404:
            return PaymentGatewayError("Transaction not found", NOT_FOUND, 404)
        if code == 401:
            return PaymentGatewayError("Invalid API credentials", BAD_CREDENTIALS, 400)
        try:
            message = response.json().get("message")
        except ValueError:
            message = None
        message = message or f"Payment gateway error: {code} {response.reason_phrase}"
        return PaymentGatewayError(message, GENERIC, 500 if code >= 500 else 400)
    if isinstance(exc, httpx.TransportError):
        return PaymentGatewayError("Network error: Unable to reach payment gateway", NETWORK, 502)
    return PaymentGatewayError(str(exc) or "Unknown error occurred", GENERIC, 500)


class FlutterwaveClient(ServiceHTTPClient):

    def __init__(self, secret_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.secret_key = secret_key if secret_key is not None else settings.FLUTTERWAVE_SECRET_KEY
        super().__init__(
            HTTPClientConfig(
                base_url=settings.FLUTTERWAVE_API_URL,
                timeout=settings.PAYMENT_REQUEST_TIMEOUT,
                headers={
                    "Authorization": f"Bearer {self.secret_key}",
                    "Content-Type": "application/json",
                },
            ),
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    async def verify_transaction(self, transaction_id: Any) -> Dict[str, Any]:
        """
        Look up a transaction by its gateway id.

        Returns the decoded body ({"status", "message", "data": {...}}).
        Raises PaymentGatewayError for HTTP and network failures.
        """
        try:
            response = await self.get(f"/transactions/{transaction_id}/verify")
        except httpx.HTTPError as e:
            error = classify_gateway_error(e)
            logger.warning(f"Transaction {transaction_id} verification failed ({error.kind}): {error.message}")
            raise error from e
        return response.json()


async def get_payment_gateway():
    client = FlutterwaveClient()
    try:
        yield client
    finally:
        await client.aclose()
