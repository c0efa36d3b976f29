import httpx
import pytest

from app.core.exceptions import UpstreamServiceError, ValidationError
from app.services.payment_gateway import (
    BAD_CREDENTIALS, GENERIC, NETWORK, NOT_FOUND, FlutterwaveClient, PaymentGatewayError, classify_gateway_error,
)
from app.services.storage import CloudinaryUploader, check_upload, public_id_from_url, sign_params

VERIFY_URL = "https://api.flutterwave.com/v3/transactions/1/verify"


def status_error(code: int, **kwargs) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", VERIFY_URL)
    response = httpx.Response(code, request=request, **kwargs)
    return httpx.HTTPStatusError("error", request=request, response=response)


@pytest.mark.unit
class TestClassifyGatewayError:
    """Gateway failures map onto a small set of client-facing errors."""

    @pytest.mark.parametrize("code, kind, status_code, message", [
        (404, NOT_FOUND, 404, "Transaction not found"),
        (401, BAD_CREDENTIALS, 400, "Invalid API credentials"),
    ])
    def test_known_statuses(self, code, kind, status_code, message):
        error = classify_gateway_error(status_error(code))

        assert isinstance(error, PaymentGatewayError)
        assert error.kind == kind
        assert error.status_code == status_code
        assert error.message == message

    def test_gateway_message_is_passed_through(self):
        error = classify_gateway_error(status_error(422, json={"message": "Invalid transaction id"}))

        assert error.kind == GENERIC
        assert error.status_code == 400
        assert error.message == "Invalid transaction id"

    def test_server_error_without_body(self):
        error = classify_gateway_error(status_error(503, content=b"<html>down</html>"))

        assert error.status_code == 500
        assert error.message == "Payment gateway error: 503 Service Unavailable"

    def test_network_error(self):
        error = classify_gateway_error(httpx.ConnectTimeout("timed out"))

        assert error.kind == NETWORK
        assert error.status_code == 502
        assert isinstance(error, UpstreamServiceError)


@pytest.mark.unit
class TestFlutterwaveClient:

    @pytest.mark.asyncio
    async def test_verify_transaction(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "success", "data": {"id": 1, "status": "successful"}})

        async with FlutterwaveClient(secret_key="FLWSECK-abc", transport=httpx.MockTransport(handler)) as client:
            result = await client.verify_transaction(1)

        assert result["data"]["status"] == "successful"
        assert seen[0].url == httpx.URL(VERIFY_URL)
        assert seen[0].headers["Authorization"] == "Bearer FLWSECK-abc"

    @pytest.mark.asyncio
    async def test_verify_transaction_not_found(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404, json={"status": "error"}))

        async with FlutterwaveClient(secret_key="FLWSECK-abc", transport=transport) as client:
            with pytest.raises(PaymentGatewayError) as exc_info:
                await client.verify_transaction(1)

        assert exc_info.value.kind == NOT_FOUND

    def test_unconfigured(self):
        assert FlutterwaveClient(secret_key="").is_configured is False


@pytest.mark.unit
class TestStorage:

    def test_public_id_from_url(self):
        url = "https://res.cloudinary.com/demo/image/upload/v1712345678/influencer-proofs/instagram/abc123.png"

        assert public_id_from_url(url) == "influencer-proofs/instagram/abc123"
        assert public_id_from_url("https://example.com/file.png") is None
        assert public_id_from_url(None) is None

    def test_sign_params_sorts_keys(self):
        assert sign_params({"timestamp": "2", "folder": "a"}, "secret") == sign_params(
            {"folder": "a", "timestamp": "2"}, "secret"
        )

    @pytest.mark.parametrize("content_type", ["image/png", "image/jpeg", "application/pdf"])
    def test_accepted_types(self, content_type):
        check_upload("proof", content_type, 1024)

    @pytest.mark.parametrize("content_type, size", [
        ("text/plain", 10),
        (None, 10),
        ("image/png", 50 * 1024 * 1024),
    ])
    def test_rejected_uploads(self, content_type, size):
        with pytest.raises(ValidationError):
            check_upload("proof", content_type, size)

    @pytest.mark.asyncio
    async def test_upload_returns_secure_url(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"secure_url": "https://res.cloudinary.com/demo/image/upload/v1/x.png"})

        async with CloudinaryUploader(
            cloud_name="demo", api_key="key", api_secret="secret", transport=httpx.MockTransport(handler)
        ) as uploader:
            url = await uploader.upload(b"\x89PNG", "proof.png", "image/png", "influencer-proofs/instagram")

        assert url == "https://res.cloudinary.com/demo/image/upload/v1/x.png"
        assert seen[0].url.path == "/v1_1/demo/auto/upload"
        assert b"influencer-proofs/instagram" in seen[0].content

    @pytest.mark.asyncio
    async def test_upload_failure(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "boom"}))

        async with CloudinaryUploader(
            cloud_name="demo", api_key="key", api_secret="secret", transport=transport
        ) as uploader:
            with pytest.raises(UpstreamServiceError) as exc_info:
                await uploader.upload(b"\x89PNG", "proof.png", "image/png", "influencer-proofs")

        assert exc_info.value.message == "Failed to upload files"
