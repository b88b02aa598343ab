"""Message Store Gateway — append-only chat log."""

from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from mercadito.app_logging import AppLogger
from mercadito.db.client import MESSAGES, as_utc, public, translate_store_errors
from mercadito.schemas.common import parse
from mercadito.schemas.message import MessageCreate, MessageRead


class MessageGateway:
    """Append and read chat messages. No update or delete."""

    def __init__(self, db: AsyncIOMotorDatabase, logger: AppLogger):
        self.collection = db[MESSAGES]
        self.log = logger.bind(component="messages")

    async def list_all(self) -> list[MessageRead]:
        """Every message, oldest first."""
        with translate_store_errors("messages.list_all"):
            docs = await (
                self.collection.find({})
                .sort([("created_at", ASCENDING), ("_id", ASCENDING)])
                .to_list(length=None)
            )
        return [_read(d) for d in docs]

    async def create(self, sender: str, body: str) -> MessageRead:
        data = parse(MessageCreate, {"sender": sender, "body": body})
        doc = {
            "sender": data.sender,
            "body": data.body,
            "created_at": datetime.now(timezone.utc),
        }
        with translate_store_errors("messages.create"):
            result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        self.log.debug("messages.created", message_id=str(result.inserted_id), sender=data.sender)
        return _read(doc)


def _read(doc: dict) -> MessageRead:
    data = public(doc)
    data["created_at"] = as_utc(data["created_at"])
    return MessageRead.model_validate(data)
