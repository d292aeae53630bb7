"""
Unit test configuration.

pydantic-settings must never see the developer's .env file or exported shop
variables during unit tests; config is driven only through monkeypatch.
"""

import pytest

# Variables read by config.py whose defaults the unit tests assert on
_SETTINGS_ENV = (
    "ENV",
    "DB_NAME",
    "EMAIL_BACKEND",
    "SENDGRID_API_KEY",
    "OTP_LENGTH",
    "OTP_TTL_SECONDS",
    "OTP_MAX_ATTEMPTS",
    "MAX_LOGIN_ATTEMPTS",
    "LOCKOUT_SECONDS",
    "CORS_ORIGINS",
    "RATE_LIMIT_ENABLED",
    "RATE_LIMIT_DEFAULT",
)


@pytest.fixture(autouse=True)
def isolated_settings_env(monkeypatch):
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
    for var in _SETTINGS_ENV:
        monkeypatch.delenv(var, raising=False)
