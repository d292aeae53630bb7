"""
Request DTOs for authentication endpoints.

SendOtpRequest          - POST /auth/signup/send-otp, POST /auth/login/send-otp
SignupVerifyRequest     - POST /auth/signup/verify-otp
LoginVerifyRequest      - POST /auth/login/verify-otp
ResendOtpRequest        - POST /auth/resend-otp
RefreshTokenRequest     - POST /auth/refresh-token
ProfileUpdateRequest    - PUT  /auth/profile
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.models.otp import OtpPurpose
from schemas.models.user import UserProfile
from shared.validators import (
    normalize_email,
    validate_email,
    validate_otp_format,
    validate_phone_number,
)


class SendOtpRequest(BaseModel):
    """Request body for the send-otp endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    email: str

    @field_validator("email")
    @classmethod
    def email_must_be_valid(cls, v: str) -> str:
        v = normalize_email(v)
        if not validate_email(v):
            raise ValueError("Please provide a valid email address")
        return v


class SignupUserData(BaseModel):
    """Optional details captured at signup."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, max_length=50)
    profile: Optional[UserProfile] = None


class LoginVerifyRequest(SendOtpRequest):
    """Request body for POST /auth/login/verify-otp.

    ``otp`` is the numeric code sent to ``email``; its configured length
    (OTP_LENGTH) is enforced by OtpService.check_format.
    """

    otp: str

    @field_validator("otp")
    @classmethod
    def otp_must_be_numeric(cls, v: str) -> str:
        v = (v or "").strip()
        if not validate_otp_format(v, length=None):
            raise ValueError("OTP must be a number")
        return v


class SignupVerifyRequest(LoginVerifyRequest):
    """Request body for POST /auth/signup/verify-otp."""

    user_data: SignupUserData = Field(default_factory=SignupUserData, alias="userData")


class ResendOtpRequest(SendOtpRequest):
    """Request body for POST /auth/resend-otp."""

    type: OtpPurpose = OtpPurpose.LOGIN


class RefreshTokenRequest(BaseModel):
    """Request body for POST /auth/refresh-token."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(min_length=1, alias="refreshToken")


class ProfileUpdateRequest(BaseModel):
    """Request body for PUT /auth/profile. Only name and profile are writable."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    profile: Optional[UserProfile] = None

    @field_validator("profile")
    @classmethod
    def phone_must_be_valid(cls, v: Optional[UserProfile]) -> Optional[UserProfile]:
        if v is not None and v.phone_number and not validate_phone_number(v.phone_number):
            raise ValueError("Please provide a valid phone number")
        return v
