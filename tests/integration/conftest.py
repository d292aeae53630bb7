"""
HTTP-level fixtures.

The app is built by create_app() but the lifespan never runs: TestClient is
used without a context manager, app.state is filled in by hand and the
repository providers are overridden with the in-memory fakes from
tests/conftest.py. No MongoDB or email service is contacted.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import AppSettings, DatabaseSettings, JWTSettings
from dependencies import get_cart_repo, get_otp_repo, get_product_repo, get_user_repo

ACCESS_SECRET = "integration-access-secret-0123456789abcdef"
REFRESH_SECRET = "integration-refresh-secret-0123456789abcdef"


@pytest.fixture
def app(clock, email_provider, otp_repo, user_repo, cart_repo, product_repo):
    settings = AppSettings(
        db=DatabaseSettings(mongodb_uri="mongodb://localhost:27017/"),
        jwt=JWTSettings(jwt_secret=ACCESS_SECRET, jwt_refresh_secret=REFRESH_SECRET),
    )
    application = create_app(settings)
    application.state.clock = clock
    application.state.email_provider = email_provider

    application.dependency_overrides[get_otp_repo] = lambda: otp_repo
    application.dependency_overrides[get_user_repo] = lambda: user_repo
    application.dependency_overrides[get_cart_repo] = lambda: cart_repo
    application.dependency_overrides[get_product_repo] = lambda: product_repo
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def signup(client, email_provider):
    """Run the signup flow for *email* and return the verify-otp response body."""

    def _signup(email: str = "shopper@example.com", **user_data) -> dict:
        resp = client.post("/api/auth/signup/send-otp", json={"email": email})
        assert resp.status_code == 200, resp.text
        code = email_provider.last_code(email, "signup")
        resp = client.post(
            "/api/auth/signup/verify-otp",
            json={"email": email, "otp": code, "userData": user_data},
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _signup


@pytest.fixture
def auth_headers(signup):
    body = signup()
    return {"Authorization": f"Bearer {body['data']['tokens']['access_token']}"}
