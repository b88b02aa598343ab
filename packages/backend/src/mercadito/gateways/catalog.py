"""Catalog Store Gateway — product CRUD with paginated listing."""

from __future__ import annotations

import math
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from mercadito.app_logging import AppLogger
from mercadito.db.client import PRODUCTS, parse_id, public, translate_store_errors
from mercadito.errors import NotFoundError, ValidationError
from mercadito.schemas.common import parse
from mercadito.schemas.product import (
    Pagination,
    ProductCreate,
    ProductFilter,
    ProductPage,
    ProductRead,
    ProductUpdate,
)


class CatalogGateway:
    """Owns the products collection."""

    def __init__(self, db: AsyncIOMotorDatabase, logger: AppLogger):
        self.collection = db[PRODUCTS]
        self.log = logger.bind(component="catalog")

    async def list(
        self,
        filter: Optional[ProductFilter] = None,
        pagination: Optional[Pagination] = None,
    ) -> ProductPage:
        """One page of products plus page metadata.

        Learn: A page past the end is not an error, it is simply empty
        (has_next_page False, prev_page pointing back into range).
        """
        filter = filter or ProductFilter()
        pagination = pagination or Pagination()

        query: dict[str, Any] = {}
        if filter.category:
            query["category"] = filter.category
        if filter.available is True:
            query["stock"] = {"$gt": 0}
        elif filter.available is False:
            query["stock"] = 0

        skip = (pagination.page - 1) * pagination.limit
        with translate_store_errors("products.list"):
            total = await self.collection.count_documents(query)
            cursor = self.collection.find(query)
            if pagination.sort:
                direction = ASCENDING if pagination.sort == "asc" else DESCENDING
                cursor = cursor.sort([("price", direction), ("_id", ASCENDING)])
            else:
                cursor = cursor.sort("_id", ASCENDING)
            docs = await cursor.skip(skip).limit(pagination.limit).to_list(
                length=pagination.limit
            )

        total_pages = max(1, math.ceil(total / pagination.limit))
        page = pagination.page
        has_prev = page > 1
        has_next = page < total_pages
        return ProductPage(
            items=[_read(d) for d in docs],
            total=total,
            total_pages=total_pages,
            page=page,
            has_prev_page=has_prev,
            has_next_page=has_next,
            prev_page=min(page - 1, total_pages) if has_prev else None,
            next_page=page + 1 if has_next else None,
        )

    async def list_all(self) -> list[ProductRead]:
        """Full catalog snapshot in insertion order."""
        with translate_store_errors("products.list_all"):
            docs = await self.collection.find({}).sort("_id", ASCENDING).to_list(
                length=None
            )
        return [_read(d) for d in docs]

    async def get(self, product_id: str) -> ProductRead:
        oid = parse_id(product_id, "Product")
        with translate_store_errors("products.get"):
            doc = await self.collection.find_one({"_id": oid})
        if not doc:
            raise NotFoundError("Product not found")
        return _read(doc)

    async def create(self, fields: dict) -> ProductRead:
        data = parse(ProductCreate, fields)
        doc = data.model_dump()
        with translate_store_errors("products.create"):
            result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        self.log.info("catalog.product_created", product_id=str(result.inserted_id))
        return _read(doc)

    async def update(self, product_id: str, fields: dict) -> ProductRead:
        oid = parse_id(product_id, "Product")
        changes = parse(ProductUpdate, fields).model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("No fields to update")
        if any(v is None for v in changes.values()):
            raise ValidationError("Fields cannot be set to null")
        with translate_store_errors("products.update"):
            doc = await self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        if not doc:
            raise NotFoundError("Product not found")
        self.log.info("catalog.product_updated", product_id=product_id, fields=sorted(changes))
        return _read(doc)

    async def delete(self, product_id: str) -> None:
        oid = parse_id(product_id, "Product")
        with translate_store_errors("products.delete"):
            result = await self.collection.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise NotFoundError("Product not found")
        self.log.info("catalog.product_deleted", product_id=product_id)

    async def reserve_stock(self, product_id: str, quantity: int) -> Optional[ProductRead]:
        """Atomically take `quantity` units. None if there is not enough stock."""
        oid = parse_id(product_id, "Product")
        with translate_store_errors("products.reserve_stock"):
            doc = await self.collection.find_one_and_update(
                {"_id": oid, "stock": {"$gte": quantity}},
                {"$inc": {"stock": -quantity}},
                return_document=ReturnDocument.AFTER,
            )
        return _read(doc) if doc else None

    async def release_stock(self, product_id: str, quantity: int) -> None:
        """Give back units taken by reserve_stock."""
        oid = parse_id(product_id, "Product")
        with translate_store_errors("products.release_stock"):
            await self.collection.update_one({"_id": oid}, {"$inc": {"stock": quantity}})
        self.log.warning("catalog.stock_released", product_id=product_id, quantity=quantity)


def _read(doc: dict) -> ProductRead:
    return ProductRead.model_validate(public(doc))
