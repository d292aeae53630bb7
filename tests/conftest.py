"""
Shared test fixtures.

In-memory stand-ins for the repositories and the email provider, plus a
controllable clock. They follow the repository contracts closely enough for
service-level and HTTP-level tests; query-shape tests for the real
repositories live in tests/unit/test_repositories.py.
"""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from schemas.models.cart import CartDoc
from schemas.models.otp import OtpDoc
from schemas.models.product import ProductDoc
from schemas.models.user import UserDoc
from shared.datetime_utils import ensure_utc

T0 = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeOtpRepository:
    def __init__(self) -> None:
        self.docs: dict[ObjectId, OtpDoc] = {}
        self._order: dict[ObjectId, int] = {}
        self._seq = itertools.count()

    def _for(self, email: str, purpose: str) -> list[OtpDoc]:
        return [d for d in self.docs.values() if d.email == email and d.purpose == purpose]

    def _latest(self, docs: list[OtpDoc]) -> Optional[OtpDoc]:
        if not docs:
            return None
        latest = max(docs, key=lambda d: (d.created_at, self._order[d.id]))
        return latest.model_copy(deep=True)

    async def insert(self, doc: OtpDoc) -> ObjectId:
        oid = ObjectId()
        stored = doc.model_copy(deep=True)
        stored.id = oid
        self.docs[oid] = stored
        self._order[oid] = next(self._seq)
        return oid

    async def find_latest_unused(self, email: str, purpose: str) -> Optional[OtpDoc]:
        return self._latest([d for d in self._for(email, purpose) if not d.used])

    async def find_issued_since(self, email: str, purpose: str, since: datetime) -> Optional[OtpDoc]:
        return self._latest([d for d in self._for(email, purpose) if d.created_at >= since])

    async def increment_attempts(self, otp_id: ObjectId, max_attempts: int) -> bool:
        doc = self.docs.get(otp_id)
        if doc is None or doc.attempts >= max_attempts:
            return False
        doc.attempts += 1
        return True

    async def mark_used(self, otp_id: ObjectId) -> bool:
        doc = self.docs.get(otp_id)
        if doc is None or doc.used:
            return False
        doc.used = True
        return True

    async def delete_by_id(self, otp_id: ObjectId) -> bool:
        return self.docs.pop(otp_id, None) is not None

    async def delete_for(self, email: str, purpose: str) -> int:
        doomed = [d.id for d in self._for(email, purpose)]
        for oid in doomed:
            del self.docs[oid]
        return len(doomed)

    async def delete_expired(self, now: datetime) -> int:
        doomed = [d.id for d in self.docs.values() if ensure_utc(d.expires_at) < now]
        for oid in doomed:
            del self.docs[oid]
        return len(doomed)


class FakeUserRepository:
    def __init__(self) -> None:
        self.docs: dict[ObjectId, UserDoc] = {}

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        for doc in self.docs.values():
            if doc.email == email:
                return doc.model_copy(deep=True)
        return None

    async def find_by_id(self, user_id: Any) -> Optional[UserDoc]:
        if not ObjectId.is_valid(str(user_id)):
            return None
        doc = self.docs.get(ObjectId(str(user_id)))
        return doc.model_copy(deep=True) if doc else None

    async def insert(self, user: UserDoc) -> ObjectId:
        if any(d.email == user.email for d in self.docs.values()):
            raise DuplicateKeyError("E11000 duplicate key error: email", 11000)
        oid = ObjectId()
        stored = user.model_copy(deep=True)
        stored.id = oid
        self.docs[oid] = stored
        return oid

    def _replace(self, user_id: Any, changes: dict) -> Optional[UserDoc]:
        oid = ObjectId(str(user_id))
        doc = self.docs.get(oid)
        if doc is None:
            return None
        merged = {**doc.model_dump(), **changes}
        self.docs[oid] = UserDoc.model_validate(merged)
        return self.docs[oid].model_copy(deep=True)

    async def update_fields(
        self,
        user_id: Any,
        set_fields: Optional[dict] = None,
        unset_fields: Optional[list[str]] = None,
    ) -> Optional[UserDoc]:
        changes = dict(set_fields or {})
        for field in unset_fields or []:
            changes[field] = None
        return self._replace(user_id, changes)

    async def increment_login_attempts(
        self, user_id: Any, max_attempts: int, lock_until: Optional[datetime] = None
    ) -> bool:
        doc = self.docs[ObjectId(str(user_id))]
        if doc.login_attempts >= max_attempts:
            return False
        changes: dict = {"login_attempts": doc.login_attempts + 1}
        if lock_until is not None:
            changes["lock_until"] = lock_until
        self._replace(user_id, changes)
        return True

    async def restart_login_attempts(self, user_id: Any) -> None:
        self._replace(user_id, {"login_attempts": 1, "lock_until": None})

    async def reset_login_attempts(self, user_id: Any) -> None:
        self._replace(user_id, {"login_attempts": 0, "lock_until": None})

    def get(self, email: str) -> Optional[UserDoc]:
        for doc in self.docs.values():
            if doc.email == email:
                return doc
        return None


class FakeCartRepository:
    def __init__(self) -> None:
        self.carts: dict[str, CartDoc] = {}
        self.saves = 0

    async def find_by_user(self, user_id: ObjectId) -> Optional[CartDoc]:
        cart = self.carts.get(str(user_id))
        return cart.model_copy(deep=True) if cart else None

    async def find_or_create(self, user_id: ObjectId, now: datetime) -> CartDoc:
        if str(user_id) not in self.carts:
            self.carts[str(user_id)] = CartDoc(
                id=ObjectId(),
                user_id=user_id,
                last_updated=now,
                created_at=now,
                updated_at=now,
            )
        return self.carts[str(user_id)].model_copy(deep=True)

    async def save(self, cart: CartDoc, now: datetime) -> CartDoc:
        cart.updated_at = now
        self.carts[str(cart.user_id)] = cart.model_copy(deep=True)
        self.saves += 1
        return cart


def _matches(doc: dict, query: dict) -> bool:
    for key, cond in query.items():
        value = doc.get(key)
        if isinstance(cond, dict):
            for op, arg in cond.items():
                if op == "$in" and value not in arg:
                    return False
                if op == "$ne" and value == arg:
                    return False
                if op == "$gte" and not (value is not None and value >= arg):
                    return False
                if op == "$lte" and not (value is not None and value <= arg):
                    return False
        elif value != cond:
            return False
    return True


def _sort_key(doc: dict, field: str) -> tuple:
    value: Any = doc
    for part in field.split("."):
        value = value.get(part) if isinstance(value, dict) else None
    return (value is not None, value)


class FakeProductRepository:
    """Products in a dict; find_many understands the operators the catalog uses."""

    def __init__(self) -> None:
        self.docs: dict[ObjectId, ProductDoc] = {}
        self.skus: set[str] = set()

    def add(self, **fields) -> ProductDoc:
        product = ProductDoc(id=ObjectId(), **fields)
        self.docs[product.id] = product
        if product.sku:
            self.skus.add(product.sku)
        return product

    async def find_by_id(self, product_id: Any) -> Optional[ProductDoc]:
        if not ObjectId.is_valid(str(product_id)):
            return None
        doc = self.docs.get(ObjectId(str(product_id)))
        return doc.model_copy(deep=True) if doc else None

    async def find_by_ids(self, product_ids) -> dict[str, ProductDoc]:
        found = {}
        for pid in product_ids:
            doc = await self.find_by_id(pid)
            if doc is not None:
                found[str(doc.id)] = doc
        return found

    async def find_many(self, query: dict, sort, skip: int = 0, limit: int = 0) -> list[ProductDoc]:
        docs = [d for d in self.docs.values() if _matches(d.model_dump(), query)]
        for field, direction in reversed(sort):
            docs.sort(key=lambda d: _sort_key(d.model_dump(), field), reverse=direction < 0)
        docs = docs[skip:]
        if limit:
            docs = docs[:limit]
        return [d.model_copy(deep=True) for d in docs]

    async def count(self, query: dict) -> int:
        return sum(1 for d in self.docs.values() if _matches(d.model_dump(), query))

    async def distinct(self, field: str, query: dict) -> list:
        values = {d.model_dump()[field] for d in self.docs.values() if _matches(d.model_dump(), query)}
        return sorted(v for v in values if v is not None)

    async def insert(self, product: ProductDoc) -> ObjectId:
        if product.sku and product.sku in self.skus:
            raise DuplicateKeyError("E11000 duplicate key error: sku", 11000)
        oid = ObjectId()
        stored = product.model_copy(deep=True)
        stored.id = oid
        self.docs[oid] = stored
        if product.sku:
            self.skus.add(product.sku)
        return oid

    async def update_fields(self, product_id: Any, fields: dict) -> Optional[ProductDoc]:
        doc = await self.find_by_id(product_id)
        if doc is None:
            return None
        updated = ProductDoc.model_validate({**doc.model_dump(), **fields})
        self.docs[updated.id] = updated
        return updated.model_copy(deep=True)

    async def increment_views(self, product_id: Any) -> None:
        doc = self.docs.get(ObjectId(str(product_id)))
        if doc is not None:
            doc.views += 1

    async def delete(self, product_id: Any) -> bool:
        if not ObjectId.is_valid(str(product_id)):
            return False
        return self.docs.pop(ObjectId(str(product_id)), None) is not None


class RecordingEmailProvider:
    """EmailProvider that remembers what it sent. Set ``fail`` to simulate outages."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False
        self.raise_error: Optional[Exception] = None

    async def send_otp(self, email: str, code: str, purpose: str) -> bool:
        if self.raise_error is not None:
            raise self.raise_error
        if self.fail:
            return False
        self.sent.append((email, code, purpose))
        return True

    async def aclose(self) -> None:
        return None

    def last_code(self, email: str, purpose: Optional[str] = None) -> str:
        for to, code, sent_purpose in reversed(self.sent):
            if to == email and (purpose is None or sent_purpose == purpose):
                return code
        raise AssertionError(f"no code sent to {email}")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def otp_repo():
    return FakeOtpRepository()


@pytest.fixture
def user_repo():
    return FakeUserRepository()


@pytest.fixture
def cart_repo():
    return FakeCartRepository()


@pytest.fixture
def email_provider():
    return RecordingEmailProvider()


@pytest.fixture
def product_repo():
    return FakeProductRepository()
