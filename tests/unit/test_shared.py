"""
Unit tests for the shared/ utility modules.

Covers:
- shared.validators      (normalize_email, validate_email, validate_otp_format,
                          validate_object_id, validate_phone_number)
- shared.generators      (generate_otp_code, generate_sku)
- shared.crypto          (hash_token, token_matches)
- shared.datetime_utils  (utcnow, ensure_utc)
- shared.logging         (mask_email, redact_sensitive_fields)
"""

from __future__ import annotations

import hashlib
import re
from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest

from shared.crypto import hash_token, token_matches
from shared.datetime_utils import ensure_utc, utcnow
from shared.generators import generate_otp_code, generate_sku
from shared.logging import mask_email, redact_sensitive_fields
from shared.validators import (
    normalize_email,
    validate_email,
    validate_object_id,
    validate_otp_format,
    validate_phone_number,
)

# ---------------------------------------------------------------------------
# shared.validators
# ---------------------------------------------------------------------------


def test_normalize_email():
    assert normalize_email("  Alice@Example.COM ") == "alice@example.com"


@pytest.mark.parametrize(
    "email, expected",
    [
        ("alice@example.com", True),
        ("a.b+tag@sub.example.org", True),
        ("no-at-sign.example.com", False),
        ("alice@", False),
        ("", False),
    ],
)
def test_validate_email(email, expected):
    assert validate_email(email) is expected


@pytest.mark.parametrize(
    "code, expected",
    [
        ("123456", True),
        ("12345", False),
        ("1234567", False),
        ("12a456", False),
        ("", False),
        (None, False),
    ],
)
def test_validate_otp_format(code, expected):
    assert validate_otp_format(code) is expected


def test_validate_otp_format_custom_length():
    assert validate_otp_format("1234", length=4) is True
    assert validate_otp_format("12345678", length=8) is True


def test_validate_otp_format_any_length():
    assert validate_otp_format("12345678", length=None) is True
    assert validate_otp_format("", length=None) is False
    assert validate_otp_format("\u0661\u0662\u0663", length=None) is False


@pytest.mark.parametrize(
    "value, expected",
    [
        ("507f1f77bcf86cd799439011", True),
        ("507f1f77bcf86cd79943901", False),
        ("zzzzzzzzzzzzzzzzzzzzzzzz", False),
        (123, False),
    ],
)
def test_validate_object_id(value, expected):
    assert validate_object_id(value) is expected


@pytest.mark.parametrize(
    "phone, expected",
    [
        ("+14155552671", True),
        ("(415) 555-2671", True),
        ("12345", False),
        ("+1-415-CALL-NOW", False),
    ],
)
def test_validate_phone_number(phone, expected):
    assert validate_phone_number(phone) is expected


# ---------------------------------------------------------------------------
# shared.generators
# ---------------------------------------------------------------------------


class TestGenerateOtpCode:
    @pytest.mark.parametrize("length", [1, 4, 6, 9])
    def test_length(self, length):
        for _ in range(200):
            assert len(generate_otp_code(length)) == length

    def test_only_digits(self):
        assert all(generate_otp_code().isdigit() for _ in range(200))

    def test_no_leading_zero(self):
        assert all(generate_otp_code()[0] != "0" for _ in range(500))

    def test_values_spread_across_range(self):
        buckets = Counter(int(generate_otp_code()) // 100_000 for _ in range(3000))
        # 100000-999999 split into nine leading-digit buckets, each roughly 1/9
        assert set(buckets) == set(range(1, 10))
        assert min(buckets.values()) > 3000 / 9 * 0.5

    @pytest.mark.parametrize("length", [0, 10])
    def test_rejects_bad_length(self, length):
        with pytest.raises(ValueError):
            generate_otp_code(length)


def test_generate_sku_format():
    assert re.fullmatch(r"PRD-\d{13}-\d{1,3}", generate_sku())


# ---------------------------------------------------------------------------
# shared.crypto
# ---------------------------------------------------------------------------


def test_hash_token_known_value():
    assert hash_token("123456") == hashlib.sha256(b"123456").hexdigest()


def test_hash_token_distinct_inputs():
    assert hash_token("123456") != hash_token("123457")


def test_token_matches():
    h = hash_token("654321")
    assert token_matches("654321", h) is True
    assert token_matches("654320", h) is False


# ---------------------------------------------------------------------------
# shared.datetime_utils
# ---------------------------------------------------------------------------


def test_utcnow_is_aware():
    assert utcnow().tzinfo is not None
    assert utcnow().utcoffset() == timedelta(0)


def test_ensure_utc_naive_assumed_utc():
    naive = datetime(2026, 1, 1, 12, 0)
    assert ensure_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_ensure_utc_converts_offset():
    plus_two = timezone(timedelta(hours=2))
    value = datetime(2026, 1, 1, 14, 0, tzinfo=plus_two)
    assert ensure_utc(value) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert ensure_utc(value).tzinfo == timezone.utc


def test_ensure_utc_none():
    assert ensure_utc(None) is None


# ---------------------------------------------------------------------------
# shared.logging
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "email, expected",
    [
        ("alice@example.com", "a***@example.com"),
        ("no-at-sign", "***"),
        (None, None),
    ],
)
def test_mask_email(email, expected):
    assert mask_email(email) == expected


def test_redaction_processor():
    event = {
        "event": "otp_issued",
        "code": "123456",
        "refresh_token": "abc",
        "jwt_secret": "s3cret",
        "email": "al***@example.com",
    }
    out = redact_sensitive_fields(None, "info", dict(event))
    assert out["code"] == "***REDACTED***"
    assert out["refresh_token"] == "***REDACTED***"
    assert out["jwt_secret"] == "***REDACTED***"
    assert out["email"] == "al***@example.com"
    assert out["event"] == "otp_issued"
