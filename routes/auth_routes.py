"""
Authentication endpoints (OTP signup/login, tokens, profile).

POST   /auth/signup/send-otp
POST   /auth/signup/verify-otp   - 201, creates the user
POST   /auth/login/send-otp      - 404 unknown, 423 locked, 403 inactive
POST   /auth/login/verify-otp    - a failed code counts as a failed login
POST   /auth/resend-otp          - 429 during the resend cooldown
POST   /auth/refresh-token
GET    /auth/profile
PUT    /auth/profile
POST   /auth/logout
DELETE /auth/deactivate
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import (
    get_auth_service,
    get_current_user,
    get_otp_service,
    get_token_service,
)
from errors import ConflictError, RateLimitError, ValidationError
from schemas.dto.requests.auth import (
    LoginVerifyRequest,
    ProfileUpdateRequest,
    RefreshTokenRequest,
    ResendOtpRequest,
    SendOtpRequest,
    SignupVerifyRequest,
)
from schemas.dto.responses.auth import (
    AccessTokenData,
    AuthData,
    AuthResponse,
    OtpSentResponse,
    ProfileResponse,
    RefreshResponse,
    TokensResponse,
    UserResponse,
)
from schemas.dto.responses.common import MessageResponse
from schemas.models.otp import OtpPurpose
from schemas.models.user import UserDoc
from services.auth_service import AuthService
from services.otp_service import OtpService, OtpVerification
from services.token_service import TokenService
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _raise_for_failed_verification(result: OtpVerification) -> None:
    details = {"reason": result.reason.value if result.reason else None}
    if result.attempts_remaining is not None:
        details["attempts_remaining"] = result.attempts_remaining
    raise ValidationError(result.message, field="otp", details=details)


def _auth_data(user: UserDoc, auth: AuthService, tokens: TokenService) -> AuthData:
    pair = tokens.issue_tokens(user.id)
    return AuthData(
        user=UserResponse.model_validate(auth.sanitize(user)),
        tokens=TokensResponse(
            access_token=pair.access_token, refresh_token=pair.refresh_token
        ),
    )


@router.post("/signup/send-otp", response_model=OtpSentResponse)
async def signup_send_otp(
    body: SendOtpRequest,
    auth: AuthService = Depends(get_auth_service),
    otp: OtpService = Depends(get_otp_service),
) -> OtpSentResponse:
    existing = await auth.get_by_email(body.email)
    if existing is not None and existing.is_email_verified:
        raise ConflictError("User already exists with this email", field="email")

    expires_at = await otp.issue(body.email, OtpPurpose.SIGNUP)
    return OtpSentResponse(message="OTP sent to your email", expires_at=expires_at)


@router.post("/signup/verify-otp", response_model=AuthResponse, status_code=201)
async def signup_verify_otp(
    body: SignupVerifyRequest,
    auth: AuthService = Depends(get_auth_service),
    otp: OtpService = Depends(get_otp_service),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    otp.check_format(body.otp)
    result = await otp.verify(body.email, body.otp, OtpPurpose.SIGNUP)
    if not result.success:
        _raise_for_failed_verification(result)

    user = await auth.find_or_create(
        body.email, body.user_data.model_dump(exclude_none=True)
    )
    return AuthResponse(
        message="Account created successfully", data=_auth_data(user, auth, tokens)
    )


@router.post("/login/send-otp", response_model=OtpSentResponse)
async def login_send_otp(
    body: SendOtpRequest,
    auth: AuthService = Depends(get_auth_service),
    otp: OtpService = Depends(get_otp_service),
) -> OtpSentResponse:
    await auth.ensure_can_login(body.email)
    expires_at = await otp.issue(body.email, OtpPurpose.LOGIN)
    return OtpSentResponse(message="OTP sent to your email", expires_at=expires_at)


@router.post("/login/verify-otp", response_model=AuthResponse)
async def login_verify_otp(
    body: LoginVerifyRequest,
    auth: AuthService = Depends(get_auth_service),
    otp: OtpService = Depends(get_otp_service),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    otp.check_format(body.otp)
    # Locked accounts are rejected before the code is even looked at
    await auth.ensure_can_login(body.email)

    result = await otp.verify(body.email, body.otp, OtpPurpose.LOGIN)
    if not result.success:
        await auth.failed_login(body.email)
        _raise_for_failed_verification(result)

    user = await auth.complete_login(body.email)
    return AuthResponse(message="Login successful", data=_auth_data(user, auth, tokens))


@router.post("/resend-otp", response_model=OtpSentResponse)
async def resend_otp(
    body: ResendOtpRequest,
    otp: OtpService = Depends(get_otp_service),
) -> OtpSentResponse:
    result = await otp.resend(body.email, body.type)
    if not result.success:
        raise RateLimitError(result.message, details={"retry_after": result.retry_after})
    return OtpSentResponse(message=result.message, expires_at=result.expires_at)


@router.post("/refresh-token", response_model=RefreshResponse)
async def refresh_token(
    body: RefreshTokenRequest,
    tokens: TokenService = Depends(get_token_service),
) -> RefreshResponse:
    access_token = await tokens.refresh_access(body.refresh_token)
    return RefreshResponse(data=AccessTokenData(access_token=access_token))


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    user: UserDoc = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
) -> ProfileResponse:
    return ProfileResponse(data=UserResponse.model_validate(auth.sanitize(user)))


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    user: UserDoc = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
) -> ProfileResponse:
    updated = await auth.update_profile(user.id, body.model_dump(exclude_none=True))
    return ProfileResponse(
        message="Profile updated successfully",
        data=UserResponse.model_validate(auth.sanitize(updated)),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(user: UserDoc = Depends(get_current_user)) -> MessageResponse:
    # Tokens are stateless; the client discards them
    log.info("logout", user_id=str(user.id))
    return MessageResponse(message="Logged out successfully")


@router.delete("/deactivate", response_model=MessageResponse)
async def deactivate(
    user: UserDoc = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth.deactivate(user.id)
    return MessageResponse(message="Account deactivated successfully")
