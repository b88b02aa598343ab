"""Cart schemas."""

from typing import Optional

from pydantic import BaseModel, Field

from mercadito.schemas.product import ProductRead


class CartItemWrite(BaseModel):
    product: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class CartReplace(BaseModel):
    products: list[CartItemWrite]


class QuantityUpdate(BaseModel):
    quantity: int = Field(..., ge=1)


class QuantityAdd(BaseModel):
    quantity: int = Field(1, ge=1)


class CartItemRead(BaseModel):
    product: ProductRead
    quantity: int


class CartRead(BaseModel):
    id: str
    products: list[CartItemRead] = Field(default_factory=list)
    total: Optional[float] = None
