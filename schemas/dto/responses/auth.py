"""
Response DTOs for authentication endpoints.

UserResponse         - public user view (AuthService.sanitize)
OtpSentResponse      - send-otp / resend-otp (200)
AuthResponse         - signup/verify-otp (201), login/verify-otp (200)
RefreshResponse      - POST /auth/refresh-token (200)
ProfileResponse      - GET/PUT /auth/profile (200)
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.user import UserProfile


class UserResponse(BaseModel):
    """User fields safe to return to the client. No lock bookkeeping."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    name: Optional[str] = None
    full_name: str
    role: str
    profile: UserProfile
    is_email_verified: bool
    is_active: bool
    is_locked: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OtpSentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    expires_at: Optional[datetime] = None


class TokensResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user: UserResponse
    tokens: TokensResponse


class AuthResponse(BaseModel):
    """Response body for both verify-otp endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    data: AuthData


class AccessTokenData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str
    token_type: str = "bearer"


class RefreshResponse(BaseModel):
    """Response body for POST /auth/refresh-token. The refresh token is not rotated."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Token refreshed successfully"
    data: AccessTokenData


class ProfileResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: Optional[str] = None
    data: UserResponse
