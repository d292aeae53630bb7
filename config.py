"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

JWT_REFRESH_SECRET falls back to JWT_SECRET when unset so single-secret
deployments keep working; separate secrets are strongly preferred.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "shop"


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_secret: str = ""
    jwt_refresh_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = 900  # 15 minutes
    refresh_token_ttl_seconds: int = 604800  # 7 days

    @property
    def access_secret(self) -> str:
        return self.jwt_secret

    @property
    def refresh_secret(self) -> str:
        return self.jwt_refresh_secret or self.jwt_secret


class OtpSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    otp_length: int = 6
    otp_ttl_seconds: int = 600  # 10 minutes
    otp_max_attempts: int = 3
    otp_resend_cooldown_seconds: int = 120  # 2 minutes
    otp_sweep_interval_seconds: int = 3600  # hourly


class LockoutSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    max_login_attempts: int = 5
    lockout_seconds: int = 7200  # 2 hours


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    email_backend: Literal["sendgrid", "console"] = "console"
    sendgrid_api_key: str = ""
    from_email: str = "noreply@shop.local"
    from_name: str = "Shop"
    email_timeout_seconds: float = 10.0


class RateLimitSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    rate_limit_enabled: bool = True
    # limits notation; several limits may be joined with ";"
    rate_limit_default: str = "1000 per 15 minutes"
    # limits storage URI, e.g. "memory://" or "redis://host:6379"
    rate_limit_storage_uri: str = "memory://"


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "shop-api"
    client_url: str = "http://localhost:5173"

    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:8081",
    ]

    # OpenAPI docs URL (None disables the docs UI)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    jwt: Optional[JWTSettings] = None
    otp: Optional[OtpSettings] = None
    lockout: Optional[LockoutSettings] = None
    rate_limit: Optional[RateLimitSettings] = None
    email: Optional[EmailSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.db is None:
            self.db = DatabaseSettings()
        if self.jwt is None:
            self.jwt = JWTSettings()
        if self.otp is None:
            self.otp = OtpSettings()
        if self.lockout is None:
            self.lockout = LockoutSettings()
        if self.rate_limit is None:
            self.rate_limit = RateLimitSettings()
        if self.email is None:
            self.email = EmailSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
