"""Session/Auth Gateway — credentials, attach, destroy, expiry."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from starlette.requests import Request

from mercadito.auth.cookies import sign, unsign
from mercadito.db.client import ensure_indexes
from mercadito.errors import AuthError, ConflictError, ValidationError

REGISTRATION = {
    "email": "Ana@Example.com",
    "first_name": "Ana",
    "last_name": "Diaz",
    "age": 30,
    "password": "correct-horse",
}


def _request(cookie_name: str, value: str | None) -> Request:
    headers = []
    if value is not None:
        headers.append((b"cookie", f"{cookie_name}={value}".encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


async def _login(sessions):
    identity = await sessions.register(dict(REGISTRATION))
    session_id = await sessions.open_session(identity)
    return identity, _request(sessions.cookie_name, sign(session_id, sessions.secret)), session_id


@pytest.mark.asyncio
async def test_register_provisions_cart_and_lowercases_email(container):
    identity = await container.sessions.register(dict(REGISTRATION))
    assert identity.email == "ana@example.com"
    assert identity.role == "user"
    cart = await container.carts.get(identity.cart_id)
    assert cart.products == []


@pytest.mark.asyncio
async def test_register_admin_email_gets_admin_role(container):
    identity = await container.sessions.register({**REGISTRATION, "email": "boss@example.com"})
    assert identity.is_admin


@pytest.mark.asyncio
async def test_register_duplicate_is_conflict(container):
    await container.sessions.register(dict(REGISTRATION))
    with pytest.raises(ConflictError):
        await container.sessions.register({**REGISTRATION, "email": "ana@example.com"})


class _StaleLookups:
    """Users collection whose duplicate check always misses, as in a race."""

    def __init__(self, collection):
        self._collection = collection

    def __getattr__(self, name):
        return getattr(self._collection, name)

    async def find_one(self, *args, **kwargs):
        return None


@pytest.mark.asyncio
async def test_register_race_is_conflict_without_orphan_cart(container, db):
    await ensure_indexes(db)
    await container.sessions.register(dict(REGISTRATION))
    container.sessions.users = _StaleLookups(container.sessions.users)

    with pytest.raises(ConflictError):
        await container.sessions.register(dict(REGISTRATION))
    assert await db["carts"].count_documents({}) == 1
    assert await db["users"].count_documents({}) == 1


@pytest.mark.asyncio
async def test_registered_cart_is_owned_by_the_user(container, db):
    identity = await container.sessions.register(dict(REGISTRATION))
    cart = await db["carts"].find_one({})
    assert cart["owner"] == identity.id
    user = await db["users"].find_one({})
    assert user["cart_id"] == identity.cart_id


@pytest.mark.asyncio
async def test_register_short_password(container):
    with pytest.raises(ValidationError):
        await container.sessions.register({**REGISTRATION, "password": "abc"})


@pytest.mark.asyncio
async def test_authenticate(container):
    await container.sessions.register(dict(REGISTRATION))
    identity = await container.sessions.authenticate(
        {"email": "ana@example.com", "password": "correct-horse"}
    )
    assert identity.first_name == "Ana"
    with pytest.raises(AuthError):
        await container.sessions.authenticate({"email": "ana@example.com", "password": "nope"})
    with pytest.raises(AuthError):
        await container.sessions.authenticate({"email": "ghost@example.com", "password": "x"})


@pytest.mark.asyncio
async def test_attach_session_roundtrip(container):
    identity, request, _ = await _login(container.sessions)
    attached = await container.sessions.attach_session(request)
    assert attached == identity


@pytest.mark.asyncio
async def test_attach_without_cookie_is_none(container):
    request = _request(container.sessions.cookie_name, None)
    assert await container.sessions.attach_session(request) is None


@pytest.mark.asyncio
async def test_forged_cookie_is_none(container):
    _, _, session_id = await _login(container.sessions)
    forged = _request(container.sessions.cookie_name, sign(session_id, "another-secret-of-at-least-32-bytes"))
    assert await container.sessions.attach_session(forged) is None
    unsigned = _request(container.sessions.cookie_name, session_id)
    assert await container.sessions.attach_session(unsigned) is None


@pytest.mark.asyncio
async def test_destroy_invalidates_session(container):
    _, request, _ = await _login(container.sessions)
    await container.sessions.destroy_session(request)
    assert await container.sessions.attach_session(request) is None


@pytest.mark.asyncio
async def test_expired_session_is_none_and_removed(container, db):
    _, request, session_id = await _login(container.sessions)
    await db["sessions"].update_one(
        {"_id": session_id},
        {"$set": {"expires_at": datetime.now(timezone.utc) - timedelta(seconds=1)}},
    )
    assert await container.sessions.attach_session(request) is None
    assert await db["sessions"].find_one({"_id": session_id}) is None


@pytest.mark.asyncio
async def test_activity_extends_expiry(container, db):
    _, request, session_id = await _login(container.sessions)
    soon = datetime.now(timezone.utc) + timedelta(seconds=5)
    await db["sessions"].update_one({"_id": session_id}, {"$set": {"expires_at": soon}})

    assert await container.sessions.attach_session(request) is not None
    record = await db["sessions"].find_one({"_id": session_id})
    expires = record["expires_at"].replace(tzinfo=timezone.utc)
    assert expires > datetime.now(timezone.utc) + timedelta(seconds=3000)


def test_cookie_signature():
    secret = "a-secret-of-at-least-thirty-two-bytes"
    value = sign("abc", secret)
    assert unsign(value, secret) == "abc"
    assert unsign(value, "a-different-secret-of-thirty-two-bytes") is None
    assert unsign("abc", secret) is None
    assert unsign(None, secret) is None
    assert unsign(".sig", secret) is None


def test_cookie_is_a_verifiable_jwt():
    secret = "a-secret-of-at-least-thirty-two-bytes"
    value = sign("abc", secret)
    assert jwt.decode(value, secret, algorithms=["HS256"]) == {"sid": "abc"}
    # Tokens signed with "none" or without a session id are refused
    assert unsign(jwt.encode({"sid": "abc"}, None, algorithm="none"), secret) is None
    assert unsign(jwt.encode({"user": "abc"}, secret, algorithm="HS256"), secret) is None
