"""
Session credentials: issue, verify and refresh JWT access/refresh pairs.

Access and refresh tokens are signed with different secrets, carry different
lifetimes and a ``type`` claim, so neither can stand in for the other.
Every verification failure collapses to one InvalidTokenError message; the
concrete reason is only logged. Refresh tokens are not rotated.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

import jwt

from config import JWTSettings
from errors import InvalidTokenError
from repositories.user_repository import UserRepository
from schemas.models.user import UserDoc
from shared.datetime_utils import Clock, utcnow
from shared.logging import get_logger

log = get_logger(__name__)

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"

ACCESS_ERROR_MESSAGE = "Invalid or expired token"
REFRESH_ERROR_MESSAGE = "Invalid or expired refresh token"


class _Rejected(Exception):
    """Internal: carries the loggable reason a token was rejected."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    def __init__(
        self,
        users: UserRepository,
        settings: JWTSettings,
        clock: Clock = utcnow,
    ) -> None:
        if not settings.access_secret:
            raise RuntimeError("JWT_SECRET must be configured")
        self._users = users
        self._settings = settings
        self._clock = clock

    def _sign(self, user_id: Any, token_type: str, secret: str, ttl: int) -> str:
        now = self._clock()
        claims = {
            "sub": str(user_id),
            "type": token_type,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=ttl)).timestamp()),
        }
        return jwt.encode(claims, secret, algorithm=self._settings.jwt_algorithm)

    def issue_access_token(self, user_id: Any) -> str:
        return self._sign(
            user_id,
            TOKEN_TYPE_ACCESS,
            self._settings.access_secret,
            self._settings.access_token_ttl_seconds,
        )

    def issue_tokens(self, user_id: Any) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(user_id),
            refresh_token=self._sign(
                user_id,
                TOKEN_TYPE_REFRESH,
                self._settings.refresh_secret,
                self._settings.refresh_token_ttl_seconds,
            ),
        )

    def _decode(self, token: str, secret: str, expected_type: str) -> dict:
        # exp/iat are checked against the service clock, not the wall clock
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self._settings.jwt_algorithm],
                options={
                    "require": ["exp", "sub"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidSignatureError:
            raise _Rejected("bad_signature")
        except jwt.DecodeError:
            raise _Rejected("malformed")
        except jwt.InvalidTokenError:
            raise _Rejected("invalid_claims")

        exp = claims["exp"]
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise _Rejected("invalid_claims")
        if exp <= self._clock().timestamp():
            raise _Rejected("expired")
        if claims.get("type") != expected_type:
            raise _Rejected("wrong_type")
        return claims

    async def _verify(
        self, token: Optional[str], secret: str, expected_type: str, message: str
    ) -> UserDoc:
        try:
            if not token:
                raise _Rejected("missing")
            claims = self._decode(token, secret, expected_type)
            user = await self._users.find_by_id(claims["sub"])
            if user is None:
                raise _Rejected("user_not_found")
            if not user.is_active:
                raise _Rejected("user_inactive")
            return user
        except _Rejected as rejected:
            log.warning(
                "token_verification_failed",
                kind=expected_type,
                reason=rejected.reason,
            )
            raise InvalidTokenError(message) from None

    async def verify_access(self, token: Optional[str]) -> UserDoc:
        return await self._verify(
            token, self._settings.access_secret, TOKEN_TYPE_ACCESS, ACCESS_ERROR_MESSAGE
        )

    async def verify_refresh(self, token: Optional[str]) -> UserDoc:
        return await self._verify(
            token,
            self._settings.refresh_secret,
            TOKEN_TYPE_REFRESH,
            REFRESH_ERROR_MESSAGE,
        )

    async def refresh_access(self, refresh_token: Optional[str]) -> str:
        """Exchange a valid refresh token for a new access token."""
        user = await self.verify_refresh(refresh_token)
        log.info("token_refreshed", user_id=str(user.id))
        return self.issue_access_token(user.id)
