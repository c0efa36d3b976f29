import os

# Settings are read at import time
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("FLUTTERWAVE_SECRET_KEY", "FLWSECK_TEST-secret")
os.environ.setdefault("ENVIRONMENT", "test")

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.deps import get_notifier
from app.core.rate_limiting import limiter
from app.db.session import get_db
from app.models import Base
from app.services.notifications.email_sender import EmailDeliveryError
from app.services.notifications.notifier import Notifier
from app.services.payment_gateway import FlutterwaveClient, get_payment_gateway
from app.services.storage import CloudinaryUploader, get_uploader
from tests.factories import AdminFactory, BrandFactory, CampaignFactory, InfluencerFactory, auth_headers_for

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Create test engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

limiter.enabled = False


class RecordingNotifier(Notifier):
    """Notifier that records messages instead of queueing them"""

    def __init__(self):
        super().__init__(admin_email="admin@caringsparks.test")
        self.emails = []
        self.whatsapps = []
        self.fail_direct_email = False

    def _dispatch_email(self, to, subject, text):
        if not to:
            return False
        self.emails.append({"to": to, "subject": subject, "text": text})
        return True

    def _dispatch_whatsapp(self, to, body):
        if not to:
            return False
        self.whatsapps.append({"to": to, "body": body})
        return True

    async def send_email_now(self, to, subject, text):
        if self.fail_direct_email:
            raise EmailDeliveryError("SMTP unavailable")
        self.emails.append({"to": to, "subject": subject, "text": text})
        return "<test-message-id>"

    def emails_to(self, address):
        return [e for e in self.emails if e["to"] == address]


class FakeFlutterwave:
    """Programmable stand-in for the gateway's verify endpoint"""

    def __init__(self):
        self.transactions = {}
        self.errors = {}
        self.requests = []

    def add_transaction(self, transaction_id, status="successful", amount=50000, **extra):
        self.transactions[str(transaction_id)] = {
            "id": int(transaction_id) if str(transaction_id).isdigit() else transaction_id,
            "tx_ref": f"CS-{transaction_id}",
            "amount": amount,
            "currency": "NGN",
            "charged_amount": amount,
            "payment_type": "card",
            "processor_response": "Approved",
            "status": status,
            "created_at": "2024-05-01T10:00:00.000Z",
            "customer": {"email": "brand@example.com"},
            **extra,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        transaction_id = request.url.path.split("/")[-2]
        if transaction_id in self.errors:
            error = self.errors[transaction_id]
            if isinstance(error, Exception):
                raise error
            return httpx.Response(error, json={"status": "error", "message": "gateway error"})
        data = self.transactions.get(transaction_id)
        if data is None:
            return httpx.Response(404, json={"status": "error", "message": "No transaction was found for this id"})
        return httpx.Response(200, json={"status": "success", "message": "Transaction fetched successfully", "data": data})


class FakeCloudinary:
    def __init__(self):
        self.uploads = []
        self.destroyed = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/image/destroy"):
            self.destroyed.append(request)
            return httpx.Response(200, json={"result": "ok"})
        self.uploads.append(request)
        n = len(self.uploads)
        return httpx.Response(
            200, json={"secure_url": f"https://res.cloudinary.com/test/image/upload/v1/influencer-proofs/file{n}.png"}
        )


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def flutterwave():
    return FakeFlutterwave()


@pytest.fixture
def cloudinary():
    return FakeCloudinary()


@pytest.fixture(scope="function")
def override_dependencies(db_session, notifier, flutterwave, cloudinary):
    """Point the app at the test database and the fake collaborators."""
    def _override_get_db():
        yield db_session

    async def _override_gateway():
        client = FlutterwaveClient(secret_key="FLWSECK_TEST-secret", transport=httpx.MockTransport(flutterwave.handler))
        try:
            yield client
        finally:
            await client.aclose()

    async def _override_uploader():
        uploader = CloudinaryUploader(
            cloud_name="test", api_key="key", api_secret="secret",
            transport=httpx.MockTransport(cloudinary.handler),
        )
        try:
            yield uploader
        finally:
            await uploader.aclose()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_payment_gateway] = _override_gateway
    app.dependency_overrides[get_uploader] = _override_uploader
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(override_dependencies):
    """Create an async HTTP client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def _persist(db_session, obj):
    db_session.add(obj)
    db_session.commit()
    db_session.refresh(obj)
    return obj


@pytest.fixture
def sample_brand(db_session):
    """Create a sample brand for testing."""
    return _persist(db_session, BrandFactory.build())


@pytest.fixture
def sample_admin(db_session):
    return _persist(db_session, AdminFactory.build())


@pytest.fixture
def sample_influencer(db_session):
    """An approved influencer"""
    return _persist(db_session, InfluencerFactory.build())


@pytest.fixture
def other_influencer(db_session):
    return _persist(db_session, InfluencerFactory.build())


@pytest.fixture
def sample_campaign(db_session, sample_brand):
    """Campaign owned by sample_brand: at most 2 influencers, 3 posts each"""
    return _persist(db_session, CampaignFactory.build(
        user_id=sample_brand.id,
        email=sample_brand.email,
        brand_name=sample_brand.brand_name,
        brand_phone=sample_brand.brand_phone,
    ))


@pytest.fixture
def brand_headers(sample_brand):
    return auth_headers_for(sample_brand, "brand")


@pytest.fixture
def admin_headers(sample_admin):
    return auth_headers_for(sample_admin, "admin")


@pytest.fixture
def influencer_headers(sample_influencer):
    return auth_headers_for(sample_influencer, "influencer")


@pytest.fixture
def other_influencer_headers(other_influencer):
    return auth_headers_for(other_influencer, "influencer")
