"""Ticket Gateway — checkout a cart into a ticket.

Learn: Stock is reserved line by line with an atomic conditional
decrement (see CatalogGateway.reserve_stock), so two concurrent checkouts
can never push stock below zero. Lines that cannot be reserved stay in the
cart and are reported back as `unavailable`.
"""

import uuid
from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from mercadito.app_logging import AppLogger
from mercadito.db.client import TICKETS, as_utc, public, translate_store_errors
from mercadito.errors import AppError, NotFoundError, ValidationError
from mercadito.gateways.carts import CartGateway
from mercadito.gateways.catalog import CatalogGateway
from mercadito.schemas.ticket import PurchaseResult, TicketItem, TicketRead


class TicketGateway:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        catalog: CatalogGateway,
        carts: CartGateway,
        logger: AppLogger,
    ):
        self.collection = db[TICKETS]
        self.catalog = catalog
        self.carts = carts
        self.log = logger.bind(component="tickets")

    async def purchase(self, cart_id: str, purchaser: str) -> PurchaseResult:
        lines = await self.carts.lines(cart_id)
        if not lines:
            raise ValidationError("Cart is empty")

        bought: list[TicketItem] = []
        remaining: list[dict] = []
        ticket_id = None
        try:
            for line in lines:
                try:
                    product = await self.catalog.reserve_stock(line["product"], line["quantity"])
                except NotFoundError:
                    product = None
                if product is None:
                    remaining.append(line)
                    continue
                bought.append(
                    TicketItem(
                        product=product.id,
                        title=product.title,
                        quantity=line["quantity"],
                        price=product.price,
                    )
                )

            if not bought:
                raise ValidationError("None of the products in the cart have enough stock")

            doc = {
                "code": uuid.uuid4().hex,
                "purchase_datetime": datetime.now(timezone.utc),
                "amount": round(sum(i.price * i.quantity for i in bought), 2),
                "purchaser": purchaser,
                "items": [i.model_dump() for i in bought],
            }
            with translate_store_errors("tickets.create"):
                result = await self.collection.insert_one(doc)
            ticket_id = doc["_id"] = result.inserted_id

            await self.carts.set_lines(cart_id, remaining)
        except AppError as e:
            await self._roll_back(ticket_id, bought, reason=e.message)
            raise

        self.log.info(
            "tickets.purchased",
            code=doc["code"],
            amount=doc["amount"],
            unavailable=len(remaining),
        )
        return PurchaseResult(
            ticket=_read(doc),
            unavailable=[line["product"] for line in remaining],
        )

    async def _roll_back(self, ticket_id, bought: list[TicketItem], reason: str) -> None:
        """Undo a half-finished checkout: drop the ticket, give the stock back."""
        if not bought:
            return
        self.log.warning("tickets.rolling_back", reason=reason, lines=len(bought))
        try:
            if ticket_id is not None:
                with translate_store_errors("tickets.rollback"):
                    await self.collection.delete_one({"_id": ticket_id})
            for item in bought:
                await self.catalog.release_stock(item.product, item.quantity)
        except AppError as e:
            # The original failure is re-raised by the caller
            self.log.error("tickets.rollback_failed", error=e.message, reason=reason)

    async def get(self, code: str) -> TicketRead:
        with translate_store_errors("tickets.get"):
            doc = await self.collection.find_one({"code": code})
        if not doc:
            raise NotFoundError("Ticket not found")
        return _read(doc)

    async def list_for(self, purchaser: str) -> list[TicketRead]:
        with translate_store_errors("tickets.list"):
            docs = await (
                self.collection.find({"purchaser": purchaser})
                .sort("_id", DESCENDING)
                .to_list(length=None)
            )
        return [_read(d) for d in docs]


def _read(doc: dict) -> TicketRead:
    data = public(doc)
    data["purchase_datetime"] = as_utc(data["purchase_datetime"])
    return TicketRead.model_validate(data)
