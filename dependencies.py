"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Shared resources (settings, database, email
provider, clock) live on app.state and are created by the app lifespan;
repositories and services are cheap wrappers built per request.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo.asynchronous.database import AsyncDatabase

from config import AppSettings
from infrastructure.email.protocol import EmailProvider
from repositories.cart_repository import CartRepository
from repositories.indexes import CARTS, OTPS, PRODUCTS, USERS
from repositories.otp_repository import OtpRepository
from repositories.product_repository import ProductRepository
from repositories.user_repository import UserRepository
from schemas.models.user import UserDoc
from services.auth_service import AuthService
from services.cart_service import CartService
from services.otp_service import OtpService
from services.product_service import ProductService
from services.token_service import TokenService
from shared.datetime_utils import Clock, utcnow

_bearer = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_db(request: Request) -> AsyncDatabase:
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


def get_clock(request: Request) -> Clock:
    return getattr(request.app.state, "clock", None) or utcnow


def get_email_provider(request: Request) -> EmailProvider:
    return request.app.state.email_provider


# ── Repositories ─────────────────────────────────────────────────────────────


def get_user_repo(db: AsyncDatabase = Depends(get_db)) -> UserRepository:
    return UserRepository(db[USERS])


def get_otp_repo(db: AsyncDatabase = Depends(get_db)) -> OtpRepository:
    return OtpRepository(db[OTPS])


def get_product_repo(db: AsyncDatabase = Depends(get_db)) -> ProductRepository:
    return ProductRepository(db[PRODUCTS])


def get_cart_repo(db: AsyncDatabase = Depends(get_db)) -> CartRepository:
    return CartRepository(db[CARTS])


# ── Services ─────────────────────────────────────────────────────────────────


def get_otp_service(
    repo: OtpRepository = Depends(get_otp_repo),
    email_provider: EmailProvider = Depends(get_email_provider),
    settings: AppSettings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> OtpService:
    return OtpService(repo, email_provider, settings.otp, clock=clock)


def get_token_service(
    users: UserRepository = Depends(get_user_repo),
    settings: AppSettings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> TokenService:
    return TokenService(users, settings.jwt, clock=clock)


def get_auth_service(
    users: UserRepository = Depends(get_user_repo),
    settings: AppSettings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> AuthService:
    return AuthService(users, settings.lockout, clock=clock)


def get_product_service(
    products: ProductRepository = Depends(get_product_repo),
    clock: Clock = Depends(get_clock),
) -> ProductService:
    return ProductService(products, clock=clock)


def get_cart_service(
    carts: CartRepository = Depends(get_cart_repo),
    products: ProductRepository = Depends(get_product_repo),
    clock: Clock = Depends(get_clock),
) -> CartService:
    return CartService(carts, products, clock=clock)


# ── Auth ─────────────────────────────────────────────────────────────────────


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    tokens: TokenService = Depends(get_token_service),
) -> UserDoc:
    """Resolve the Bearer access token to an active user.

    Raises InvalidTokenError (401) when the header is missing or the token
    does not verify.
    """
    token = credentials.credentials if credentials is not None else None
    return await tokens.verify_access(token)
