"""
One-time code lifecycle: issue, verify, resend and sweep.

Per (email, purpose) a record moves through

    created -> {verified | attempts-exhausted | expired} -> deleted

Successful verification deletes every record for the pair; expired records
are removed by sweep(). Attempts-exhausted records stay until they are
swept or replaced by a new issue().

Verification failures are returned as OtpVerification values. Delivery
failures raise DeliveryFailedError after rolling the new record back.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from config import OtpSettings
from errors import DeliveryFailedError, ValidationError
from infrastructure.email.protocol import EmailProvider
from repositories.otp_repository import OtpRepository
from schemas.models.otp import OtpDoc, OtpPurpose
from shared.crypto import hash_token, token_matches
from shared.datetime_utils import Clock, ensure_utc, utcnow
from shared.generators import generate_otp_code
from shared.logging import get_logger, mask_email
from shared.validators import validate_otp_format

log = get_logger(__name__)


class OtpFailureReason(str, Enum):
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    ALREADY_USED = "already_used"
    MISMATCH = "mismatch"


@dataclass
class OtpVerification:
    success: bool
    message: str
    reason: Optional[OtpFailureReason] = None
    attempts_remaining: Optional[int] = None


@dataclass
class ResendResult:
    success: bool
    message: str
    expires_at: Optional[datetime] = None
    retry_after: Optional[int] = None


class OtpService:
    def __init__(
        self,
        repository: OtpRepository,
        email_provider: EmailProvider,
        settings: Optional[OtpSettings] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._repo = repository
        self._email = email_provider
        self._settings = settings or OtpSettings()
        self._clock = clock

    @property
    def max_attempts(self) -> int:
        return self._settings.otp_max_attempts

    def generate(self, length: Optional[int] = None) -> str:
        return generate_otp_code(length or self._settings.otp_length)

    def check_format(self, code: str) -> None:
        """Raise ValidationError unless *code* has the configured number of digits."""
        length = self._settings.otp_length
        if not validate_otp_format(code, length):
            raise ValidationError(f"OTP must be a {length}-digit number", field="otp")

    async def issue(self, email: str, purpose: OtpPurpose | str) -> datetime:
        """Replace any codes for (email, purpose) with a fresh one and send it.

        Returns:
            The new code's expiry time.

        Raises:
            DeliveryFailedError: the email could not be sent; the new record
                has been deleted again.
        """
        purpose = OtpPurpose(purpose).value
        now = self._clock()

        await self._repo.delete_for(email, purpose)

        code = self.generate()
        expires_at = now + timedelta(seconds=self._settings.otp_ttl_seconds)
        otp_id = await self._repo.insert(
            OtpDoc(
                email=email,
                code_hash=hash_token(code),
                purpose=purpose,
                attempts=0,
                used=False,
                expires_at=expires_at,
                created_at=now,
            )
        )

        try:
            delivered = await self._email.send_otp(email, code, purpose)
        except Exception as e:
            log.error(
                "otp_delivery_error",
                email=mask_email(email),
                purpose=purpose,
                error=str(e),
                error_type=type(e).__name__,
            )
            delivered = False

        if not delivered:
            await self._repo.delete_by_id(otp_id)
            log.warning("otp_delivery_failed", email=mask_email(email), purpose=purpose)
            raise DeliveryFailedError("Failed to send OTP")

        log.info(
            "otp_issued",
            email=mask_email(email),
            purpose=purpose,
            otp_id=str(otp_id),
            expires_at=expires_at.isoformat(),
        )
        return expires_at

    async def verify(
        self, email: str, code: str, purpose: OtpPurpose | str
    ) -> OtpVerification:
        purpose = OtpPurpose(purpose).value
        now = self._clock()
        record = await self._repo.find_latest_unused(email, purpose)

        if record is None:
            log.warning(
                "otp_verification_failed",
                email=mask_email(email),
                purpose=purpose,
                reason="not_found",
            )
            return OtpVerification(
                success=False,
                message="OTP not found or has been used",
                reason=OtpFailureReason.NOT_FOUND,
            )

        if not record.can_attempt(now, self.max_attempts):
            if record.is_expired(now):
                reason, message = OtpFailureReason.EXPIRED, "OTP has expired"
            elif record.attempts_exhausted(self.max_attempts):
                reason, message = (
                    OtpFailureReason.ATTEMPTS_EXHAUSTED,
                    "Maximum attempts exceeded",
                )
            else:
                reason, message = OtpFailureReason.ALREADY_USED, "OTP has already been used"
            log.warning(
                "otp_verification_failed",
                email=mask_email(email),
                purpose=purpose,
                reason=reason.value,
            )
            return OtpVerification(success=False, message=message, reason=reason)

        if not token_matches(code, record.code_hash):
            await self._repo.increment_attempts(record.id, self.max_attempts)
            remaining = max(0, self.max_attempts - record.attempts - 1)
            log.warning(
                "otp_verification_failed",
                email=mask_email(email),
                purpose=purpose,
                reason="mismatch",
                attempts_remaining=remaining,
            )
            return OtpVerification(
                success=False,
                message=f"Invalid OTP. {remaining} attempts remaining",
                reason=OtpFailureReason.MISMATCH,
                attempts_remaining=remaining,
            )

        if not await self._repo.mark_used(record.id):
            # Another request consumed this record first
            return OtpVerification(
                success=False,
                message="OTP has already been used",
                reason=OtpFailureReason.ALREADY_USED,
            )
        await self._repo.delete_for(email, purpose)

        log.info("otp_verified", email=mask_email(email), purpose=purpose)
        return OtpVerification(success=True, message="OTP verified successfully")

    async def resend(self, email: str, purpose: OtpPurpose | str) -> ResendResult:
        purpose = OtpPurpose(purpose).value
        now = self._clock()
        cooldown = self._settings.otp_resend_cooldown_seconds

        recent = await self._repo.find_issued_since(
            email, purpose, now - timedelta(seconds=cooldown)
        )
        if recent is not None:
            elapsed = (now - ensure_utc(recent.created_at)).total_seconds()
            retry_after = max(1, int(cooldown - elapsed))
            log.warning(
                "otp_resend_rate_limited",
                email=mask_email(email),
                purpose=purpose,
                retry_after=retry_after,
            )
            return ResendResult(
                success=False,
                message=f"Please wait {cooldown // 60} minutes before requesting a new OTP",
                retry_after=retry_after,
            )

        expires_at = await self.issue(email, purpose)
        return ResendResult(
            success=True, message="OTP resent successfully", expires_at=expires_at
        )

    async def sweep(self) -> int:
        """Delete every record whose expiry has passed. Returns the count."""
        deleted = await self._repo.delete_expired(self._clock())
        if deleted > 0:
            log.info("otp_sweep_completed", deleted=deleted)
        return deleted
