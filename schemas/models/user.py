"""
User document model.

Maps to the `users` MongoDB collection.

Users are created on their first successful signup verification and are
never hard-deleted; deactivation flips is_active to False. Failed login
attempts accumulate in login_attempts until lock_until is set.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.base import MongoBaseModel
from shared.datetime_utils import ensure_utc, utcnow


class NotificationPreferences(BaseModel):
    email: bool = True
    marketing: bool = False


class UserPreferences(BaseModel):
    notifications: NotificationPreferences = NotificationPreferences()
    theme: Literal["light", "dark"] = "light"


class UserProfile(BaseModel):
    """Embedded profile sub-document."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: Optional[str] = Field(default=None, max_length=30)
    last_name: Optional[str] = Field(default=None, max_length=30)
    avatar: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    address: Optional[str] = None
    preferences: UserPreferences = UserPreferences()


class UserDoc(MongoBaseModel):
    """
    Document model for the `users` collection.

    role values: "user", "admin"
    """

    email: str
    name: Optional[str] = Field(default=None, max_length=50)
    role: Literal["user", "admin"] = "user"
    profile: UserProfile = UserProfile()
    is_email_verified: bool = False
    is_active: bool = True
    login_attempts: int = Field(default=0, ge=0)
    lock_until: Optional[datetime] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        """True while lock_until is set and still in the future."""
        if self.lock_until is None:
            return False
        return ensure_utc(self.lock_until) > (now or utcnow())

    @property
    def full_name(self) -> str:
        if self.profile.first_name and self.profile.last_name:
            return f"{self.profile.first_name} {self.profile.last_name}"
        return self.name or self.email.split("@")[0]
