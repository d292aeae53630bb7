"""
Input validators and normalizers - framework-agnostic, pure functions.
"""

from __future__ import annotations

import re
from typing import Optional

import validators as _validators
from bson import ObjectId


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address."""
    return (email or "").strip().lower()


def validate_email(email: str) -> bool:
    """Return True if *email* is a syntactically valid address."""
    return bool(_validators.email(email))


def validate_otp_format(code: str, length: Optional[int] = 6) -> bool:
    """Return True if *code* is exactly *length* decimal digits.

    ``length=None`` accepts any non-empty run of digits.
    """
    pattern = r"\d+" if length is None else rf"\d{{{length}}}"
    return bool(re.fullmatch(pattern, code or "", flags=re.ASCII))


def validate_object_id(value: str) -> bool:
    """Return True if *value* is a valid 24-hex MongoDB ObjectId string."""
    return isinstance(value, str) and ObjectId.is_valid(value)


def validate_phone_number(phone: str) -> bool:
    """Loose E.164-style check: optional ``+`` then 7 to 15 digits.

    Spaces, dashes and parentheses are ignored.
    """
    digits = re.sub(r"[\s\-()]", "", phone or "")
    return bool(re.fullmatch(r"\+?\d{7,15}", digits))
