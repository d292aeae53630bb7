"""
Identity lifecycle around OTP authentication.

Creates users on first verified signup, tracks failed logins and locks the
account after too many, and handles profile updates and deactivation.
Users are never hard-deleted.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Optional

from pymongo.errors import DuplicateKeyError

from config import LockoutSettings
from errors import IdentityInactiveError, LockedError, NotFoundError
from repositories.user_repository import UserRepository
from schemas.models.user import UserDoc, UserProfile
from shared.datetime_utils import Clock, ensure_utc, utcnow
from shared.logging import get_logger, mask_email

log = get_logger(__name__)

# Only these top-level user fields can be changed through update_profile
ALLOWED_PROFILE_UPDATES = ("name", "profile")


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        settings: Optional[LockoutSettings] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._users = users
        self._settings = settings or LockoutSettings()
        self._clock = clock

    async def get_by_email(self, email: str) -> Optional[UserDoc]:
        return await self._users.find_by_email(email)

    async def find_or_create(self, email: str, user_data: Optional[dict] = None) -> UserDoc:
        """Return the user for *email*, creating a verified one if missing.

        Existing users get last_login refreshed and their failed-login
        counter cleared.
        """
        now = self._clock()
        user = await self._users.find_by_email(email)

        if user is None:
            data = dict(user_data or {})
            data.pop("email", None)
            new_user = UserDoc(
                email=email,
                is_email_verified=True,
                created_at=now,
                updated_at=now,
                **data,
            )
            try:
                new_user.id = await self._users.insert(new_user)
                log.info("user_created", user_id=str(new_user.id), email=mask_email(email))
                return new_user
            except DuplicateKeyError:
                # Created by a concurrent signup between lookup and insert
                user = await self._users.find_by_email(email)
                if user is None:
                    raise

        updated = await self._users.update_fields(
            user.id,
            {"last_login": now, "is_email_verified": True, "updated_at": now},
        )
        user = updated or user
        if user.login_attempts > 0 or user.lock_until is not None:
            await self.reset_login_attempts(user)
        return user

    async def ensure_can_login(self, email: str) -> UserDoc:
        """Gate for the login flow.

        Raises:
            NotFoundError: no account for *email*.
            LockedError: the account is inside its lock window.
            IdentityInactiveError: the account has been deactivated.
        """
        user = await self._users.find_by_email(email)
        if user is None:
            raise NotFoundError("No account found with this email")
        if user.is_locked(self._clock()):
            log.warning("login_blocked", user_id=str(user.id), reason="locked")
            raise LockedError(
                "Account is temporarily locked due to multiple failed attempts",
                details={"lock_until": ensure_utc(user.lock_until).isoformat()},
            )
        if not user.is_active:
            log.warning("login_blocked", user_id=str(user.id), reason="inactive")
            raise IdentityInactiveError("Account is deactivated")
        return user

    async def complete_login(self, email: str) -> UserDoc:
        """Record a successful login: stamp last_login, clear failures."""
        user = await self._users.find_by_email(email)
        if user is None or not user.is_active:
            raise NotFoundError("User not found or account deactivated")

        now = self._clock()
        user = await self._users.update_fields(user.id, {"last_login": now}) or user
        if user.login_attempts > 0 or user.lock_until is not None:
            await self.reset_login_attempts(user)
        log.info("login_success", user_id=str(user.id), auth_method="otp")
        return user

    async def failed_login(self, email: str) -> None:
        """Count a failed login; lock the account once the threshold is hit.

        A lock that has run out restarts the counter at 1. Failures inside an
        active lock are logged but neither counted nor extend the lock, so
        login_attempts never exceeds max_login_attempts.
        """
        user = await self._users.find_by_email(email)
        if user is None:
            return

        now = self._clock()
        if user.lock_until is not None and not user.is_locked(now):
            await self._users.restart_login_attempts(user.id)
            log.info("login_failure_window_restarted", user_id=str(user.id))
            return
        if user.is_locked(now):
            log.info("login_failed_while_locked", user_id=str(user.id))
            return

        max_attempts = self._settings.max_login_attempts
        new_lock = None
        if user.login_attempts + 1 >= max_attempts:
            new_lock = now + timedelta(seconds=self._settings.lockout_seconds)

        await self._users.increment_login_attempts(user.id, max_attempts, lock_until=new_lock)
        if new_lock is not None:
            log.warning(
                "account_locked",
                user_id=str(user.id),
                attempts=user.login_attempts + 1,
                lock_until=new_lock.isoformat(),
            )
        else:
            log.info("login_failed", user_id=str(user.id), attempts=user.login_attempts + 1)

    async def reset_login_attempts(self, user: UserDoc) -> None:
        await self._users.reset_login_attempts(user.id)
        user.login_attempts = 0
        user.lock_until = None

    async def update_profile(self, user_id: Any, updates: dict) -> UserDoc:
        fields: dict = {}
        for key in ALLOWED_PROFILE_UPDATES:
            if key not in updates or updates[key] is None:
                continue
            value = updates[key]
            if key == "profile":
                value = UserProfile.model_validate(value).model_dump()
            fields[key] = value
        fields["updated_at"] = self._clock()

        user = await self._users.update_fields(user_id, fields)
        if user is None:
            raise NotFoundError("User not found")
        log.info("profile_updated", user_id=str(user_id), fields=sorted(fields))
        return user

    async def deactivate(self, user_id: Any) -> None:
        user = await self._users.update_fields(
            user_id, {"is_active": False, "updated_at": self._clock()}
        )
        if user is None:
            raise NotFoundError("User not found")
        log.info("account_deactivated", user_id=str(user_id))

    def sanitize(self, user: UserDoc) -> dict:
        """Public view of a user: no lock bookkeeping, plus derived fields."""
        data = user.model_dump(mode="json", exclude={"login_attempts", "lock_until"})
        data["full_name"] = user.full_name
        data["is_locked"] = user.is_locked(self._clock())
        return data
