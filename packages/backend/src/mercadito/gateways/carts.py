"""Cart Gateway — carts hold `{product, quantity}` lines.

Learn: Line changes are single atomic updates on the cart document
(`$inc` on the matched line, `$push` of a new line, `$pull`), so two
requests touching the same cart never overwrite each other's lines.
Each cart records the user it belongs to (`owner`); authorize() is the
access rule the routes apply.
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from mercadito.app_logging import AppLogger
from mercadito.db.client import CARTS, parse_id, translate_store_errors
from mercadito.errors import ForbiddenError, NotFoundError, ValidationError
from mercadito.gateways.catalog import CatalogGateway
from mercadito.schemas.auth import Identity
from mercadito.schemas.cart import CartItemRead, CartItemWrite, CartRead


class CartGateway:
    def __init__(self, db: AsyncIOMotorDatabase, catalog: CatalogGateway, logger: AppLogger):
        self.collection = db[CARTS]
        self.catalog = catalog
        self.log = logger.bind(component="carts")

    async def create(self, owner: Optional[str] = None) -> CartRead:
        with translate_store_errors("carts.create"):
            result = await self.collection.insert_one({"products": [], "owner": owner})
        self.log.debug("carts.created", cart_id=str(result.inserted_id), owner=owner)
        return CartRead(id=str(result.inserted_id), products=[], total=0.0)

    async def authorize(self, cart_id: str, identity: Identity) -> None:
        """Admins, the cart's owner, and the user whose cart it is may use it."""
        doc = await self._load(cart_id)
        if identity.is_admin or cart_id == identity.cart_id or doc.get("owner") == identity.id:
            return
        self.log.warning("carts.access_denied", cart_id=cart_id, user=identity.email)
        raise ForbiddenError("Cart belongs to another user")

    async def lines(self, cart_id: str) -> list[dict]:
        """Raw `{product, quantity}` lines, product ids as strings."""
        return (await self._load(cart_id))["products"]

    async def get(self, cart_id: str) -> CartRead:
        """Cart with each line's product populated.

        Lines whose product has since been deleted are left out.
        """
        doc = await self._load(cart_id)
        items = []
        for line in doc["products"]:
            try:
                product = await self.catalog.get(line["product"])
            except NotFoundError:
                continue
            items.append(CartItemRead(product=product, quantity=line["quantity"]))
        total = round(sum(i.product.price * i.quantity for i in items), 2)
        return CartRead(id=str(doc["_id"]), products=items, total=total)

    async def add_product(self, cart_id: str, product_id: str, quantity: int = 1) -> CartRead:
        if quantity < 1:
            raise ValidationError("quantity must be at least 1")
        await self.catalog.get(product_id)
        oid = parse_id(cart_id, "Cart")
        increment = {"$inc": {"products.$.quantity": quantity}}
        with translate_store_errors("carts.add_product"):
            result = await self.collection.update_one(
                {"_id": oid, "products.product": product_id}, increment
            )
            if not result.matched_count:
                result = await self.collection.update_one(
                    {"_id": oid, "products.product": {"$ne": product_id}},
                    {"$push": {"products": {"product": product_id, "quantity": quantity}}},
                )
            if not result.matched_count:
                # Another request added the line between the two updates
                result = await self.collection.update_one(
                    {"_id": oid, "products.product": product_id}, increment
                )
        if not result.matched_count:
            raise NotFoundError("Cart not found")
        return await self.get(cart_id)

    async def set_quantity(self, cart_id: str, product_id: str, quantity: int) -> CartRead:
        if quantity < 1:
            raise ValidationError("quantity must be at least 1")
        oid = parse_id(cart_id, "Cart")
        with translate_store_errors("carts.set_quantity"):
            result = await self.collection.update_one(
                {"_id": oid, "products.product": product_id},
                {"$set": {"products.$.quantity": quantity}},
            )
        if not result.matched_count:
            await self._load(cart_id)
            raise NotFoundError("Product not in cart")
        return await self.get(cart_id)

    async def remove_product(self, cart_id: str, product_id: str) -> CartRead:
        oid = parse_id(cart_id, "Cart")
        with translate_store_errors("carts.remove_product"):
            result = await self.collection.update_one(
                {"_id": oid, "products.product": product_id},
                {"$pull": {"products": {"product": product_id}}},
            )
        if not result.matched_count:
            await self._load(cart_id)
            raise NotFoundError("Product not in cart")
        return await self.get(cart_id)

    async def replace_products(self, cart_id: str, items: list[CartItemWrite]) -> CartRead:
        doc = await self._load(cart_id)
        merged: dict[str, int] = {}
        for item in items:
            await self.catalog.get(item.product)
            merged[item.product] = merged.get(item.product, 0) + item.quantity
        lines = [{"product": pid, "quantity": qty} for pid, qty in merged.items()]
        await self._save(doc["_id"], lines)
        return await self.get(cart_id)

    async def set_lines(self, cart_id: str, lines: list[dict]) -> None:
        doc = await self._load(cart_id)
        await self._save(doc["_id"], lines)

    async def clear(self, cart_id: str) -> CartRead:
        doc = await self._load(cart_id)
        await self._save(doc["_id"], [])
        return CartRead(id=str(doc["_id"]), products=[], total=0.0)

    async def _load(self, cart_id: str) -> dict:
        oid = parse_id(cart_id, "Cart")
        with translate_store_errors("carts.get"):
            doc = await self.collection.find_one({"_id": oid})
        if not doc:
            raise NotFoundError("Cart not found")
        doc.setdefault("products", [])
        return doc

    async def _save(self, oid, lines: list[dict]) -> None:
        with translate_store_errors("carts.update"):
            doc = await self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": {"products": lines}},
                return_document=ReturnDocument.AFTER,
            )
        if not doc:
            raise NotFoundError("Cart not found")
