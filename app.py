"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from middleware.rate_limit import install_rate_limiter
from infrastructure.email.console import ConsoleEmailProvider
from infrastructure.email.protocol import EmailProvider
from infrastructure.email.sendgrid import SendGridProvider
from repositories.indexes import OTPS, ensure_indexes
from repositories.otp_repository import OtpRepository
from routes.auth_routes import router as auth_router
from routes.cart_routes import router as cart_router
from routes.health_routes import router as health_router
from routes.product_routes import router as product_router
from services.otp_service import OtpService
from services.otp_sweeper import OtpSweeper
from shared.datetime_utils import utcnow
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def build_email_provider(settings: AppSettings) -> EmailProvider:
    """Pick the EmailProvider named by EMAIL_BACKEND."""
    if settings.email.email_backend == "sendgrid":
        return SendGridProvider(
            settings.email, expiry_minutes=settings.otp.otp_ttl_seconds // 60
        )
    return ConsoleEmailProvider()


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging.log_level, settings.logging.log_format)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            environment=settings.env,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        app.state.mongo_client = mongo_client
        app.state.db = mongo_client[settings.db.db_name]
        app.state.settings = settings
        app.state.clock = utcnow
        app.state.email_provider = build_email_provider(settings)

        await ensure_indexes(app.state.db)

        sweeper = OtpSweeper(
            OtpService(
                OtpRepository(app.state.db[OTPS]),
                app.state.email_provider,
                settings.otp,
            ),
            interval_seconds=settings.otp.otp_sweep_interval_seconds,
        )
        sweeper.start()
        app.state.otp_sweeper = sweeper
        log.info("app_started", env=settings.env, db=settings.db.db_name)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await sweeper.stop()
        await app.state.email_provider.aclose()
        await mongo_client.close()
        log.info("app_stopped")

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Added before CORS so that 429 responses still carry CORS headers
    install_rate_limiter(app, settings.rate_limit)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router, prefix="/api")
    app.include_router(product_router, prefix="/api")
    app.include_router(cart_router, prefix="/api")

    return app
