"""MongoDB client, database handle and store-error translation.

Learn: motor's AsyncIOMotorClient owns its own connection pool. We build
exactly one per process (in the container) and pass the database handle
to every gateway, so tests can swap in an in-memory mongomock-motor database
without touching module globals.
"""

from contextlib import contextmanager
from datetime import datetime, timezone

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from mercadito.errors import NotFoundError, StartupError, StoreError

PRODUCTS = "products"
MESSAGES = "messages"
USERS = "users"
SESSIONS = "sessions"
CARTS = "carts"
TICKETS = "tickets"


def create_client(url: str) -> AsyncIOMotorClient:
    """Build the process-wide client. Connecting is lazy; see ping()."""
    return AsyncIOMotorClient(url, serverSelectionTimeoutMS=5000, tz_aware=True)


async def ping(db: AsyncIOMotorDatabase) -> None:
    """Verify the store answers. Raises StartupError otherwise."""
    try:
        await db.command("ping")
    except PyMongoError as e:
        raise StartupError(f"Could not connect to MongoDB: {e}") from e


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the indexes the gateways rely on (idempotent)."""
    with translate_store_errors("ensure_indexes"):
        # Session records disappear once expires_at passes
        await db[SESSIONS].create_index("expires_at", expireAfterSeconds=0)
        await db[USERS].create_index("email", unique=True)
        await db[TICKETS].create_index("code", unique=True)
        await db[MESSAGES].create_index([("created_at", ASCENDING)])


@contextmanager
def translate_store_errors(operation: str):
    """Re-raise driver failures as StoreError."""
    try:
        yield
    except PyMongoError as e:
        raise StoreError(f"{operation} failed: {e}") from e


def parse_id(value: str, what: str = "Document") -> ObjectId:
    """Parse a string id. Malformed ids are reported as not found."""
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        raise NotFoundError(f"{what} not found")
    return ObjectId(value)


def public(doc: dict) -> dict:
    """Copy a Mongo document with `_id` exposed as a string `id`."""
    out = {k: v for k, v in doc.items() if k != "_id"}
    out["id"] = str(doc["_id"])
    return out


def as_utc(value: datetime) -> datetime:
    """Stored datetimes may come back naive (always UTC in Mongo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
