"""Ticket API routes — checkout and purchase history (authenticated)."""

from fastapi import APIRouter, Body, Depends, Request

from mercadito.auth.dependencies import get_current_user
from mercadito.errors import ForbiddenError
from mercadito.gateways.tickets import TicketGateway
from mercadito.schemas.auth import Identity
from mercadito.schemas.common import ok, parse
from mercadito.schemas.ticket import PurchaseRequest

router = APIRouter(prefix="/tickets")


def _tickets(request: Request) -> TicketGateway:
    return request.app.state.container.tickets


@router.post("", status_code=201)
async def purchase(
    body: dict = Body(...),
    identity: Identity = Depends(get_current_user),
    tickets: TicketGateway = Depends(_tickets),
):
    """Check out a cart. Lines without enough stock stay in the cart."""
    data = parse(PurchaseRequest, body)
    await tickets.carts.authorize(data.cart_id, identity)
    result = await tickets.purchase(data.cart_id, purchaser=identity.email)
    return ok(result.model_dump(mode="json"))


@router.get("")
async def my_tickets(
    identity: Identity = Depends(get_current_user),
    tickets: TicketGateway = Depends(_tickets),
):
    found = await tickets.list_for(identity.email)
    return ok([t.model_dump(mode="json") for t in found])


@router.get("/{code}")
async def get_ticket(
    code: str,
    identity: Identity = Depends(get_current_user),
    tickets: TicketGateway = Depends(_tickets),
):
    ticket = await tickets.get(code)
    if ticket.purchaser != identity.email and not identity.is_admin:
        raise ForbiddenError("Ticket belongs to another user")
    return ok(ticket.model_dump(mode="json"))
