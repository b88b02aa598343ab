"""Session/Auth Gateway — users, credentials and server-side sessions.

Learn: Three collections meet here:
- users     → credentials + role + the user's cart id
- sessions  → {_id: session id, user_id, expires_at}
- carts     → one empty cart, owned by the user, is provisioned at registration

attach_session() never raises for the "no session" cases (no cookie,
forged cookie, unknown id, expired record). It returns None and lets the
caller decide whether that is a 401.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from starlette.requests import HTTPConnection

from mercadito.app_logging import AppLogger
from mercadito.auth.cookies import new_session_id, unsign
from mercadito.auth.password import hash_password, verify_password
from mercadito.db.client import (
    SESSIONS,
    USERS,
    as_utc,
    parse_id,
    translate_store_errors,
)
from mercadito.errors import AppError, AuthError, ConflictError, NotFoundError
from mercadito.gateways.carts import CartGateway
from mercadito.schemas.auth import Identity, LoginRequest, RegisterRequest
from mercadito.schemas.common import parse


class SessionGateway:
    """Register, authenticate, and attach/destroy sessions."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        carts: CartGateway,
        logger: AppLogger,
        secret: str,
        ttl_seconds: int = 3600,
        cookie_name: str = "sid",
        admin_email: Optional[str] = None,
        password_rounds: int = 12,
    ):
        self.users = db[USERS]
        self.sessions = db[SESSIONS]
        self.carts = carts
        self.log = logger.bind(component="sessions")
        self.secret = secret
        self.ttl = timedelta(seconds=ttl_seconds)
        self.cookie_name = cookie_name
        self.admin_email = admin_email.lower() if admin_email else None
        self.password_rounds = password_rounds

    # ─── Users ──────────────────────────────────────────

    async def register(self, fields: dict) -> Identity:
        body = parse(RegisterRequest, fields)
        email = body.email.lower()

        with translate_store_errors("users.find"):
            existing = await self.users.find_one({"email": email})
        if existing:
            raise ConflictError("Email already registered")

        doc = {
            "email": email,
            "first_name": body.first_name,
            "last_name": body.last_name,
            "age": body.age,
            "password_hash": hash_password(body.password, rounds=self.password_rounds),
            "role": "admin" if email == self.admin_email else "user",
            "cart_id": None,
        }
        # The unique email index settles concurrent registrations
        with translate_store_errors("users.insert"):
            try:
                result = await self.users.insert_one(doc)
            except DuplicateKeyError as e:
                raise ConflictError("Email already registered") from e
        doc["_id"] = result.inserted_id
        user_id = str(result.inserted_id)

        try:
            cart = await self.carts.create(owner=user_id)
            with translate_store_errors("users.set_cart"):
                await self.users.update_one({"_id": doc["_id"]}, {"$set": {"cart_id": cart.id}})
        except AppError:
            with translate_store_errors("users.rollback"):
                await self.users.delete_one({"_id": doc["_id"]})
            raise
        doc["cart_id"] = cart.id

        self.log.info("auth.registered", user_id=user_id, role=doc["role"])
        return _identity(doc)

    async def authenticate(self, credentials: dict) -> Identity:
        body = parse(LoginRequest, credentials)
        with translate_store_errors("users.find"):
            user = await self.users.find_one({"email": body.email.lower()})
        if not user or not verify_password(body.password, user.get("password_hash", "")):
            self.log.warning("auth.login_failed", email=body.email)
            raise AuthError("Invalid credentials")
        return _identity(user)

    async def get_identity(self, user_id: str) -> Identity:
        oid = parse_id(user_id, "User")
        with translate_store_errors("users.get"):
            user = await self.users.find_one({"_id": oid})
        if not user:
            raise NotFoundError("User not found")
        return _identity(user)

    # ─── Sessions ───────────────────────────────────────

    async def open_session(self, identity: Identity) -> str:
        """Create a session record and return its (unsigned) id."""
        session_id = new_session_id()
        with translate_store_errors("sessions.insert"):
            await self.sessions.insert_one(
                {
                    "_id": session_id,
                    "user_id": identity.id,
                    "expires_at": datetime.now(timezone.utc) + self.ttl,
                }
            )
        self.log.debug("auth.session_opened", user_id=identity.id)
        return session_id

    def session_id_from(self, conn: HTTPConnection) -> Optional[str]:
        return unsign(conn.cookies.get(self.cookie_name), self.secret)

    async def attach_session(self, conn: HTTPConnection) -> Optional[Identity]:
        """Resolve the request's cookie to an Identity, or None.

        Learn: Mongo's TTL reaper runs about once a minute, so an expired
        record can still be found. Expiry is therefore checked here too.
        A live session gets its expiry pushed forward (rolling TTL).
        """
        session_id = self.session_id_from(conn)
        if not session_id:
            return None

        with translate_store_errors("sessions.find"):
            record = await self.sessions.find_one({"_id": session_id})
        if not record:
            return None

        now = datetime.now(timezone.utc)
        if as_utc(record["expires_at"]) <= now:
            with translate_store_errors("sessions.delete"):
                await self.sessions.delete_one({"_id": session_id})
            return None

        try:
            identity = await self.get_identity(record["user_id"])
        except NotFoundError:
            return None

        with translate_store_errors("sessions.touch"):
            await self.sessions.update_one(
                {"_id": session_id}, {"$set": {"expires_at": now + self.ttl}}
            )
        return identity

    async def destroy_session(self, conn: HTTPConnection) -> None:
        session_id = self.session_id_from(conn)
        if not session_id:
            return
        with translate_store_errors("sessions.delete"):
            await self.sessions.delete_one({"_id": session_id})
        self.log.debug("auth.session_destroyed")


def _identity(user: dict) -> Identity:
    return Identity(
        id=str(user["_id"]),
        email=user["email"],
        first_name=user.get("first_name", ""),
        last_name=user.get("last_name", ""),
        role=user.get("role", "user"),
        cart_id=user.get("cart_id"),
    )
