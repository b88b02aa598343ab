"""Ticket (checkout) schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class PurchaseRequest(BaseModel):
    cart_id: str = Field(..., min_length=1)


class TicketItem(BaseModel):
    product: str
    title: str
    quantity: int
    price: float


class TicketRead(BaseModel):
    id: str
    code: str
    purchase_datetime: datetime
    amount: float
    purchaser: str
    items: list[TicketItem] = Field(default_factory=list)


class PurchaseResult(BaseModel):
    ticket: TicketRead
    unavailable: list[str] = Field(default_factory=list)
