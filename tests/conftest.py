"""Pytest configuration and fixtures."""

import os

# Settings are read at import time, so configure before importing the app
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-jwt-refresh-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.environ["DATABASE_URL"].replace(
        "/personapilot", "/personapilot_test"
    )
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
    os.environ["DATABASE_URL"] = SQLALCHEMY_DATABASE_URL

from src.api.dependencies import get_email_service, get_oauth_clients  # noqa: E402
from src.database import Base, get_db  # noqa: E402
from src.errors import EmailDeliveryError  # noqa: E402
from src.main import app  # noqa: E402
from src.models.enums import OAuthProvider  # noqa: E402
from src.rate_limit import limiter  # noqa: E402
from src.services.oauth import GoogleOAuthClient, LinkedInOAuthClient  # noqa: E402

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_PASSWORD = "testpass123"


class AuthHeaders(dict):
    """Dict subclass that also stores the signed-up user's details."""

    def __init__(
        self,
        *args,
        user_id: int | None = None,
        email: str | None = None,
        refresh_token: str | None = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email
        self.refresh_token = refresh_token


class FakeEmailService:
    """Records outgoing emails instead of calling the provider."""

    def __init__(self):
        self.sent: list[tuple[str, str, str | None]] = []
        self.fail = False

    def _record(self, kind: str, to_email: str, token: str | None = None) -> None:
        if self.fail:
            raise EmailDeliveryError("Email provider rejected the message")
        self.sent.append((kind, to_email, token))

    async def send_verification_email(self, to_email: str, name: str, token: str) -> None:
        self._record("verification", to_email, token)

    async def send_password_reset_email(self, to_email: str, name: str, token: str) -> None:
        self._record("password_reset", to_email, token)

    async def send_welcome_email(self, to_email: str, name: str) -> None:
        self._record("welcome", to_email)

    def tokens(self, kind: str) -> list[str]:
        return [token for sent_kind, _, token in self.sent if sent_kind == kind]


class FakeIdentityProvider:
    """Token and userinfo endpoints for both OAuth providers, served by httpx.MockTransport."""

    def __init__(self):
        self.profiles = {
            OAuthProvider.GOOGLE: {
                "id": "google-123",
                "email": "oauth.user@example.com",
                "name": "OAuth User",
                "picture": "https://example.com/avatar.png",
            },
            OAuthProvider.LINKEDIN: {
                "sub": "linkedin-456",
                "email": "oauth.user@example.com",
                "name": "OAuth User",
                "picture": "https://example.com/linkedin.png",
            },
        }
        self.token_status = 200
        self.requests: list[httpx.Request] = []

    def handler(self, provider: OAuthProvider):
        def handle(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if request.method == "POST":
                if self.token_status != 200:
                    return httpx.Response(self.token_status, json={"error": "invalid_grant"})
                return httpx.Response(200, json={"access_token": f"{provider.value}-access"})
            return httpx.Response(200, json=self.profiles[provider])

        return handle

    def clients(self):
        return {
            OAuthProvider.GOOGLE: GoogleOAuthClient(
                client_id="google-client",
                client_secret="google-secret",
                callback_url="http://api.test/api/auth/google/callback",
                transport=httpx.MockTransport(self.handler(OAuthProvider.GOOGLE)),
            ),
            OAuthProvider.LINKEDIN: LinkedInOAuthClient(
                client_id="linkedin-client",
                client_secret="linkedin-secret",
                callback_url="http://api.test/api/auth/linkedin/callback",
                transport=httpx.MockTransport(self.handler(OAuthProvider.LINKEDIN)),
            ),
        }


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def rate_limiting():
    """Turn the request limiter on for one test, with empty counters."""
    limiter.reset()
    limiter.enabled = True
    yield limiter
    limiter.enabled = False
    limiter.reset()


@pytest.fixture
def email_outbox():
    """Fake email service shared by the app for one test."""
    return FakeEmailService()


@pytest.fixture
def identity_provider():
    """Fake Google and LinkedIn endpoints."""
    return FakeIdentityProvider()


@pytest.fixture(scope="function")
def client(db, email_outbox, identity_provider):
    """Create a test client with database, email and OAuth overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    oauth_clients = identity_provider.clients()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: email_outbox
    app.dependency_overrides[get_oauth_clients] = lambda: oauth_clients
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def signup_user(client):
    """Sign up through the API and return the response body."""

    def _signup(email="test@example.com", password=TEST_PASSWORD, name="Test User"):
        response = client.post(
            "/api/auth/signup", json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _signup


@pytest.fixture
def auth_headers(signup_user):
    """Create a user and return auth headers with user info."""
    data = signup_user()
    return AuthHeaders(
        {"Authorization": f"Bearer {data['token']}"},
        user_id=data["user"]["id"],
        email=data["user"]["email"],
        refresh_token=data["refreshToken"],
    )
