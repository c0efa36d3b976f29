import httpx
import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from app.models.campaign import Campaign


@pytest.mark.unit
class TestVerifyPayment:
    """Campaign payment verification against the gateway."""

    @pytest.mark.asyncio
    async def test_successful_verification(
        self, async_client: AsyncClient, db_session: Session, sample_campaign, brand_headers, flutterwave
    ):
        flutterwave.add_transaction("4455", amount=150000)

        response = await async_client.post(
            "/api/payment/verify-payment",
            json={"transactionId": "4455", "campaignId": sample_campaign.id},
            headers=brand_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["reference"] == "CS-4455"
        assert data["amount"] == 150000
        assert data["status"] == "successful"
        assert data["campaignId"] == sample_campaign.id

        db_session.expire_all()
        campaign = db_session.query(Campaign).one()
        assert campaign.has_paid is True
        assert campaign.payment_reference == "CS-4455"
        assert campaign.payment_details["flutterwaveTransactionId"] == 4455
        assert campaign.payment_details["customerEmail"] == "brand@example.com"
        assert campaign.payment_date is not None
        assert flutterwave.requests[0].headers["Authorization"] == "Bearer FLWSECK_TEST-secret"

    @pytest.mark.asyncio
    async def test_second_verification_is_rejected(
        self, async_client: AsyncClient, db_session: Session, sample_campaign, brand_headers, flutterwave
    ):
        flutterwave.add_transaction("1001")
        flutterwave.add_transaction("1002", amount=99)
        await async_client.post(
            "/api/payment/verify-payment",
            json={"transactionId": "1001", "campaignId": sample_campaign.id},
            headers=brand_headers,
        )

        response = await async_client.post(
            "/api/payment/verify-payment",
            json={"transactionId": "1002", "campaignId": sample_campaign.id},
            headers=brand_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Payment has already been verified for this campaign"
        assert body["error"] == "This campaign payment has already been processed"
        db_session.expire_all()
        campaign = db_session.query(Campaign).one()
        assert campaign.payment_reference == "CS-1001"
        assert campaign.payment_details["amount"] == 50000
        assert len(flutterwave.requests) == 1

    @pytest.mark.asyncio
    async def test_missing_fields(self, async_client: AsyncClient, brand_headers):
        response = await async_client.post(
            "/api/payment/verify-payment", json={"transactionId": "1"}, headers=brand_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Transaction ID and Campaign ID are required"

    @pytest.mark.asyncio
    async def test_unknown_campaign(self, async_client: AsyncClient, brand_headers, flutterwave):
        flutterwave.add_transaction("1")

        response = await async_client.post(
            "/api/payment/verify-payment",
            json={"transactionId": "1", "campaignId": "4c7d5e0a-1b2f-4a3e-8d9c-0e1f2a3b4c5d"},
            headers=brand_headers,
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Campaign not found"

    @pytest.mark.asyncio
    async def test_unsuccessful_transaction(
        self, async_client: AsyncClient, db_session: Session, sample_campaign, brand_headers, flutterwave
    ):
        flutterwave.add_transaction("77", status="failed")

        response = await async_client.post(
            "/api/payment/verify-payment",
            json={"transactionId": "77", "campaignId": sample_campaign.id},
            headers=brand_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Payment verification failed"
        assert response.json()["data"]["status"] == "failed"
        db_session.expire_all()
        assert db_session.query(Campaign).one().has_paid is False

    @pytest.mark.asyncio
    async def test_transaction_not_found(self, async_client: AsyncClient, sample_campaign, brand_headers):
        response = await async_client.post(
            "/api/payment/verify-payment",
            json={"transactionId": "999", "campaignId": sample_campaign.id},
            headers=brand_headers,
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Transaction not found"
        assert response.json()["error"] == "Payment verification failed"

    @pytest.mark.asyncio
    async def test_bad_credentials(self, async_client: AsyncClient, sample_campaign, brand_headers, flutterwave):
        flutterwave.errors["5"] = 401

        response = await async_client.post(
            "/api/payment/verify-payment",
            json={"transactionId": "5", "campaignId": sample_campaign.id},
            headers=brand_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid API credentials"

    @pytest.mark.asyncio
    async def test_network_failure(self, async_client: AsyncClient, sample_campaign, brand_headers, flutterwave):
        flutterwave.errors["6"] = httpx.ConnectError("connection refused")

        response = await async_client.post(
            "/api/payment/verify-payment",
            json={"transactionId": "6", "campaignId": sample_campaign.id},
            headers=brand_headers,
        )

        assert response.status_code == 502
        assert response.json()["message"] == "Network error: Unable to reach payment gateway"

    @pytest.mark.asyncio
    async def test_requires_authentication(self, async_client: AsyncClient, sample_campaign):
        response = await async_client.post(
            "/api/payment/verify-payment", json={"transactionId": "1", "campaignId": sample_campaign.id}
        )

        assert response.status_code == 401


@pytest.mark.unit
class TestPaymentStatus:

    @pytest.mark.asyncio
    async def test_get_status(self, async_client: AsyncClient, brand_headers, flutterwave):
        flutterwave.add_transaction("31", status="pending", amount=2000)

        response = await async_client.get(
            "/api/payment/get-status", params={"transactionId": "31"}, headers=brand_headers
        )

        assert response.status_code == 200
        assert response.json()["data"] == {
            "status": "pending", "amount": 2000, "currency": "NGN", "reference": "CS-31",
        }

    @pytest.mark.asyncio
    async def test_get_status_requires_id(self, async_client: AsyncClient, brand_headers):
        response = await async_client.get("/api/payment/get-status", headers=brand_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Transaction ID is required"

    @pytest.mark.asyncio
    async def test_campaign_details_owner_only(
        self, async_client: AsyncClient, sample_campaign, brand_headers, other_influencer_headers, admin_headers
    ):
        owner = await async_client.get(f"/api/payment/campaigns/{sample_campaign.id}", headers=brand_headers)
        admin = await async_client.get(f"/api/payment/campaigns/{sample_campaign.id}", headers=admin_headers)
        stranger = await async_client.get(
            f"/api/payment/campaigns/{sample_campaign.id}", headers=other_influencer_headers
        )

        assert owner.status_code == 200
        assert owner.json()["data"]["hasPaid"] is False
        assert owner.json()["data"]["totalCost"] == 150000
        assert admin.status_code == 200
        assert stranger.status_code == 403
