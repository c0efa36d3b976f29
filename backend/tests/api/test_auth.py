import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from app.core.security import create_refresh_token, verify_password
from app.models.brand import Brand
from tests.factories import TEST_PASSWORD, InfluencerFactory


def refresh_cookie(response) -> str:
    """Pull the refresh token out of the Set-Cookie header"""
    header = response.headers["set-cookie"]
    assert "HttpOnly" in header
    assert "SameSite=strict" in header
    return header.split(";", 1)[0].split("=", 1)[1]


@pytest.mark.unit
class TestLogin:
    """Test login for each role."""

    @pytest.mark.asyncio
    async def test_brand_login(self, async_client: AsyncClient, sample_brand):
        response = await async_client.post(
            "/api/auth/login",
            json={"email": sample_brand.email.upper(), "password": TEST_PASSWORD, "role": "brand"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token"]
        assert data["user"]["id"] == sample_brand.id
        assert data["user"]["name"] == sample_brand.brand_name
        assert refresh_cookie(response)

    @pytest.mark.asyncio
    async def test_wrong_password(self, async_client: AsyncClient, sample_admin):
        response = await async_client.post(
            "/api/auth/login",
            json={"email": sample_admin.email, "password": "wrong-password", "role": "admin"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_role_mismatch(self, async_client: AsyncClient, sample_brand):
        response = await async_client.post(
            "/api/auth/login",
            json={"email": sample_brand.email, "password": TEST_PASSWORD, "role": "influencer"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid credentials or role mismatch"

    @pytest.mark.asyncio
    async def test_invalid_role(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/auth/login",
            json={"email": "someone@example.com", "password": TEST_PASSWORD, "role": "superuser"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, message", [
        ("pending", "Account is pending approval. Please wait for admin verification."),
        ("rejected", "Account has been rejected. Please contact support."),
    ])
    async def test_unapproved_influencer(self, async_client: AsyncClient, db_session: Session, status, message):
        influencer = InfluencerFactory.build(status=status)
        db_session.add(influencer)
        db_session.commit()

        response = await async_client.post(
            "/api/auth/login",
            json={"email": influencer.email, "password": TEST_PASSWORD, "role": "influencer"},
        )

        assert response.status_code == 403
        assert response.json()["message"] == message


@pytest.mark.unit
class TestTokens:

    @pytest.mark.asyncio
    async def test_me(self, async_client: AsyncClient, sample_influencer, influencer_headers):
        response = await async_client.get("/api/auth/me", headers=influencer_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == sample_influencer.id
        assert data["role"] == "influencer"
        assert "hashedPassword" not in data

    @pytest.mark.asyncio
    async def test_missing_token(self, async_client: AsyncClient):
        response = await async_client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["message"] == "Access token is required"

    @pytest.mark.asyncio
    async def test_refresh_token_is_not_an_access_token(self, async_client: AsyncClient, sample_brand):
        token = create_refresh_token(sample_brand.id, "brand")

        response = await async_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json()["message"] == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_refresh(self, async_client: AsyncClient, sample_brand):
        login = await async_client.post(
            "/api/auth/login",
            json={"email": sample_brand.email, "password": TEST_PASSWORD, "role": "brand"},
        )
        cookie = refresh_cookie(login)

        response = await async_client.post("/api/auth/refresh", headers={"Cookie": f"refreshToken={cookie}"})

        assert response.status_code == 200
        token = response.json()["data"]["token"]
        me = await async_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["data"]["id"] == sample_brand.id

    @pytest.mark.asyncio
    async def test_refresh_without_cookie(self, async_client: AsyncClient):
        response = await async_client.post("/api/auth/refresh")

        assert response.status_code == 401
        assert response.json()["message"] == "Refresh token not provided"

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, async_client: AsyncClient):
        response = await async_client.post("/api/auth/logout")

        assert response.status_code == 200
        assert 'refreshToken=""' in response.headers["set-cookie"]


@pytest.mark.unit
class TestPasswordReset:
    """Forgot/reset password flow."""

    @pytest.mark.asyncio
    async def test_unknown_email_gets_generic_message(self, async_client: AsyncClient, notifier):
        response = await async_client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

        assert response.status_code == 200
        assert response.json()["message"] == (
            "If an account with that email exists, a password reset link has been sent."
        )
        assert notifier.emails == []

    @pytest.mark.asyncio
    async def test_full_reset_flow(self, async_client: AsyncClient, db_session: Session, sample_brand, notifier):
        forgot = await async_client.post("/api/auth/forgot-password", json={"email": sample_brand.email})
        assert forgot.status_code == 200

        db_session.expire_all()
        brand = db_session.query(Brand).one()
        token = brand.password_reset_token
        assert token
        assert token in notifier.emails_to(brand.email)[0]["text"]

        reset = await async_client.post(
            "/api/auth/reset-password",
            json={"token": token, "newPassword": "brand-new-secret", "role": "brand"},
        )
        assert reset.status_code == 200

        db_session.expire_all()
        brand = db_session.query(Brand).one()
        assert brand.password_reset_token is None
        assert verify_password("brand-new-secret", brand.hashed_password)

        reused = await async_client.post(
            "/api/auth/reset-password",
            json={"token": token, "newPassword": "another-secret", "role": "brand"},
        )
        assert reused.status_code == 400
        assert reused.json()["message"] == "Invalid or expired reset token"

    @pytest.mark.asyncio
    async def test_failed_email_clears_token(
        self, async_client: AsyncClient, db_session: Session, sample_brand, notifier
    ):
        notifier.fail_direct_email = True

        response = await async_client.post("/api/auth/forgot-password", json={"email": sample_brand.email})

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to send password reset email. Please try again."
        db_session.expire_all()
        assert db_session.query(Brand).one().password_reset_token is None

    @pytest.mark.asyncio
    async def test_change_password(self, async_client: AsyncClient, db_session: Session, sample_admin, admin_headers):
        wrong = await async_client.post(
            "/api/auth/change-password",
            json={"currentPassword": "nope", "newPassword": "new-secret"},
            headers=admin_headers,
        )
        same = await async_client.post(
            "/api/auth/change-password",
            json={"currentPassword": TEST_PASSWORD, "newPassword": TEST_PASSWORD},
            headers=admin_headers,
        )
        changed = await async_client.post(
            "/api/auth/change-password",
            json={"currentPassword": TEST_PASSWORD, "newPassword": "new-secret"},
            headers=admin_headers,
        )

        assert wrong.status_code == 400
        assert same.json()["message"] == "New password must be different from current password"
        assert changed.status_code == 200
        db_session.refresh(sample_admin)
        assert verify_password("new-secret", sample_admin.hashed_password)
