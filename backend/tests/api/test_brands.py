import pytest
from httpx import AsyncClient
from sqlalchemy.orm import Session

from app.core.security import verify_password
from app.models.brand import Brand
from app.models.campaign import Campaign
from tests.factories import BrandFactory, auth_headers_for


def registration(**overrides):
    data = {
        "role": "Business",
        "platforms": ["Instagram", "X"],
        "brandName": "Sunrise Foods",
        "email": "Hello@SunriseFoods.com",
        "brandPhone": "+2348099990000",
        "influencersMin": 2,
        "influencersMax": 5,
        "followersRange": "10k-20k",
        "location": "Port Harcourt",
        "additionalLocations": ["Lagos", " ", "Abuja "],
        "postFrequency": "2 posts in total",
        "postDuration": "1 week",
        "postCount": 2,
        "costPerInfluencerPerPost": 10000,
        "totalBaseCost": 70000,
        "platformFee": 7000,
        "totalCost": 77000,
    }
    data.update(overrides)
    return data


@pytest.mark.unit
class TestBrandRegistration:
    """Test public brand sign-up."""

    @pytest.mark.asyncio
    async def test_register_creates_brand_and_campaign(
        self, async_client: AsyncClient, db_session: Session, notifier
    ):
        response = await async_client.post("/api/brands/register", json=registration())

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["email"] == "hello@sunrisefoods.com"
        assert data["additionalLocations"] == ["Lagos", "Abuja"]
        assert "hashedPassword" not in data

        brand = db_session.query(Brand).one()
        campaign = db_session.query(Campaign).one()
        assert campaign.user_id == brand.id
        assert campaign.brand_name == "Sunrise Foods"
        assert campaign.total_cost == 77000
        assert campaign.has_paid is False
        assert campaign.status == "pending"

        welcome = notifier.emails_to("hello@sunrisefoods.com")
        assert len(welcome) == 1
        assert notifier.emails_to(notifier.admin_email)

    @pytest.mark.asyncio
    async def test_emailed_password_works(self, async_client: AsyncClient, db_session: Session, notifier):
        await async_client.post("/api/brands/register", json=registration())

        text = notifier.emails_to("hello@sunrisefoods.com")[0]["text"]
        brand = db_session.query(Brand).one()
        line = next(line for line in text.splitlines() if line.startswith("Temporary password: "))
        password = line[len("Temporary password: "):]
        assert verify_password(password, brand.hashed_password)

    @pytest.mark.asyncio
    async def test_duplicate_email(self, async_client: AsyncClient, sample_brand):
        response = await async_client.post(
            "/api/brands/register", json=registration(email=sample_brand.email.upper())
        )

        assert response.status_code == 409
        assert response.json()["message"] == "This brand has already been registered"

    @pytest.mark.asyncio
    async def test_duplicate_name_is_case_insensitive(self, async_client: AsyncClient, sample_brand):
        response = await async_client.post(
            "/api/brands/register", json=registration(brandName=sample_brand.brand_name.lower())
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"platforms": []},
        {"platforms": ["MySpace"]},
        {"role": "Alien"},
        {"followersRange": "1m+"},
        {"influencersMin": 6, "influencersMax": 2},
        {"email": "not-an-email"},
    ])
    async def test_invalid_registration(self, async_client: AsyncClient, db_session: Session, overrides):
        response = await async_client.post("/api/brands/register", json=registration(**overrides))

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert db_session.query(Brand).count() == 0


@pytest.mark.unit
class TestBrandManagement:

    @pytest.mark.asyncio
    async def test_list_requires_admin(self, async_client: AsyncClient, sample_brand, brand_headers, admin_headers):
        denied = await async_client.get("/api/brands/all-brands", headers=brand_headers)
        allowed = await async_client.get("/api/brands/all-brands", headers=admin_headers)

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert allowed.json()["data"]["pagination"]["totalCount"] == 1

    @pytest.mark.asyncio
    async def test_list_filters(self, async_client: AsyncClient, db_session: Session, admin_headers):
        db_session.add_all([
            BrandFactory.build(has_paid=True, location="Lagos"),
            BrandFactory.build(has_paid=False, location="Kano"),
        ])
        db_session.commit()

        paid = await async_client.get("/api/brands/all-brands", params={"hasPaid": "true"}, headers=admin_headers)
        kano = await async_client.get("/api/brands/all-brands", params={"location": "kan"}, headers=admin_headers)

        assert [b["location"] for b in paid.json()["data"]["brands"]] == ["Lagos"]
        assert [b["location"] for b in kano.json()["data"]["brands"]] == ["Kano"]

    @pytest.mark.asyncio
    async def test_platform_filter_treats_wildcards_literally(
        self, async_client: AsyncClient, db_session: Session, admin_headers
    ):
        db_session.add_all([
            BrandFactory.build(platforms=["Instagram"]),
            BrandFactory.build(platforms=["TikTok", "X"]),
        ])
        db_session.commit()

        tiktok = await async_client.get("/api/brands/all-brands", params={"platforms": "TikTok"}, headers=admin_headers)
        percent = await async_client.get("/api/brands/all-brands", params={"platforms": "%"}, headers=admin_headers)
        underscore = await async_client.get("/api/brands/all-brands", params={"platforms": "_"}, headers=admin_headers)

        assert [b["platforms"] for b in tiktok.json()["data"]["brands"]] == [["TikTok", "X"]]
        assert percent.json()["data"]["brands"] == []
        assert underscore.json()["data"]["brands"] == []

    @pytest.mark.asyncio
    async def test_owner_reads_and_updates(self, async_client: AsyncClient, sample_brand, brand_headers):
        read = await async_client.get(f"/api/brands/{sample_brand.id}", headers=brand_headers)
        updated = await async_client.put(
            f"/api/brands/update/{sample_brand.id}",
            json={"location": "Enugu", "brandPhone": ""},
            headers=brand_headers,
        )

        assert read.status_code == 200
        assert updated.status_code == 200
        assert updated.json()["data"]["location"] == "Enugu"
        assert updated.json()["data"]["brandPhone"] == sample_brand.brand_phone

    @pytest.mark.asyncio
    async def test_other_brand_is_denied(self, async_client: AsyncClient, db_session: Session, sample_brand):
        stranger = BrandFactory.build()
        db_session.add(stranger)
        db_session.commit()

        response = await async_client.get(
            f"/api/brands/{sample_brand.id}", headers=auth_headers_for(stranger, "brand")
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_empty_update(self, async_client: AsyncClient, sample_brand, brand_headers):
        response = await async_client.put(f"/api/brands/update/{sample_brand.id}", json={}, headers=brand_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "No valid fields to update"

    @pytest.mark.asyncio
    async def test_validation_status(self, async_client: AsyncClient, sample_brand, admin_headers):
        response = await async_client.put(
            f"/api/brands/{sample_brand.id}/validation-status", json={"isValidated": False}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Brand unvalidated successfully"
        assert response.json()["data"]["isValidated"] is False

    @pytest.mark.asyncio
    async def test_delete(self, async_client: AsyncClient, db_session: Session, sample_brand, admin_headers):
        brand_id = sample_brand.id

        response = await async_client.delete(f"/api/brands/delete/{brand_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == brand_id
        db_session.expire_all()
        assert db_session.query(Brand).count() == 0

    @pytest.mark.asyncio
    async def test_invalid_id(self, async_client: AsyncClient, admin_headers):
        response = await async_client.get("/api/brands/123", headers=admin_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_stats(self, async_client: AsyncClient, db_session: Session, admin_headers):
        db_session.add_all([
            BrandFactory.build(has_paid=True, platforms=["Instagram"], location="Lagos"),
            BrandFactory.build(platforms=["Instagram", "X"], location="Lagos"),
        ])
        db_session.commit()

        response = await async_client.get("/api/brands/brand-stats", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["overview"]["totalBrands"] == 2
        assert data["overview"]["paidBrands"] == 1
        assert data["platformDistribution"][0] == {"id": "Instagram", "count": 2}
        assert data["topLocations"] == [{"id": "Lagos", "count": 2}]
