"""Cart API routes (authenticated — see api/__init__.py).

Every route under /{cid} first checks the caller may use that cart:
admins, or the user the cart belongs to.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request

from mercadito.auth.dependencies import get_current_user
from mercadito.gateways.carts import CartGateway
from mercadito.schemas.auth import Identity
from mercadito.schemas.cart import CartReplace, QuantityAdd, QuantityUpdate
from mercadito.schemas.common import ok, parse

router = APIRouter(prefix="/carts")


def _carts(request: Request) -> CartGateway:
    return request.app.state.container.carts


async def _owned_cart(
    cid: str,
    identity: Identity = Depends(get_current_user),
    carts: CartGateway = Depends(_carts),
) -> None:
    await carts.authorize(cid, identity)


def _dump(cart) -> dict:
    return ok(cart.model_dump(mode="json"))


@router.post("", status_code=201)
async def create_cart(
    identity: Identity = Depends(get_current_user),
    carts: CartGateway = Depends(_carts),
):
    return _dump(await carts.create(owner=identity.id))

@router.get("/{cid}", dependencies=[Depends(_owned_cart)])
async def get_cart(cid: str, carts: CartGateway = Depends(_carts)):
    return _dump(await carts.get(cid))


@router.put("/{cid}", dependencies=[Depends(_owned_cart)])
async def replace_cart_products(
    cid: str,
    body: dict = Body(...),
    carts: CartGateway = Depends(_carts),
):
    data = parse(CartReplace, body)
    return _dump(await carts.replace_products(cid, data.products))


@router.delete("/{cid}", dependencies=[Depends(_owned_cart)])
async def empty_cart(cid: str, carts: CartGateway = Depends(_carts)):
    return _dump(await carts.clear(cid))


@router.post("/{cid}/products/{pid}", dependencies=[Depends(_owned_cart)])
async def add_to_cart(
    cid: str,
    pid: str,
    body: Optional[dict] = Body(None),
    carts: CartGateway = Depends(_carts),
):
    data = parse(QuantityAdd, body or {})
    return _dump(await carts.add_product(cid, pid, data.quantity))


@router.put("/{cid}/products/{pid}", dependencies=[Depends(_owned_cart)])
async def update_cart_quantity(
    cid: str,
    pid: str,
    body: dict = Body(...),
    carts: CartGateway = Depends(_carts),
):
    data = parse(QuantityUpdate, body)
    return _dump(await carts.set_quantity(cid, pid, data.quantity))


@router.delete("/{cid}/products/{pid}", dependencies=[Depends(_owned_cart)])
async def remove_from_cart(cid: str, pid: str, carts: CartGateway = Depends(_carts)):
    return _dump(await carts.remove_product(cid, pid))
