"""
One-time code document model.

Maps to the `otps` MongoDB collection.

A record is scoped by (email, purpose). code_hash stores SHA-256(code);
the plain code is never stored. `used` only ever flips false → true and
`attempts` never passes the configured maximum (MAX_OTP_ATTEMPTS by default).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field

from schemas.models.base import MongoBaseModel
from shared.datetime_utils import ensure_utc

MAX_OTP_ATTEMPTS = 3


class OtpPurpose(str, Enum):
    SIGNUP = "signup"
    LOGIN = "login"


class OtpDoc(MongoBaseModel):
    """Document model for the `otps` collection."""

    model_config = ConfigDict(use_enum_values=True)

    email: str
    code_hash: str
    purpose: OtpPurpose
    attempts: int = Field(default=0, ge=0)
    used: bool = False
    expires_at: datetime
    created_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return ensure_utc(self.expires_at) <= now

    def attempts_exhausted(self, max_attempts: int = MAX_OTP_ATTEMPTS) -> bool:
        return self.attempts >= max_attempts

    def can_attempt(self, now: datetime, max_attempts: int = MAX_OTP_ATTEMPTS) -> bool:
        return (
            not self.used
            and not self.attempts_exhausted(max_attempts)
            and not self.is_expired(now)
        )
