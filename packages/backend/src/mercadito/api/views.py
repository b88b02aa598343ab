"""Server-rendered pages (Jinja2).

Learn: Views reuse the same gateways as the JSON API. Catalog and cart
pages render data server-side; the realtime and chat pages render a
shell and the browser fills it in over the /ws socket.
"""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from mercadito.auth.dependencies import get_current_user_optional
from mercadito.schemas.auth import Identity
from mercadito.schemas.common import parse
from mercadito.schemas.product import Pagination, ProductFilter

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

router = APIRouter(include_in_schema=False)


def _render(request: Request, name: str, identity: Optional[Identity], **context):
    return templates.TemplateResponse(
        request, name, {"user": identity, **context}
    )


@router.get("/")
@router.get("/products")
async def products_page(
    request: Request,
    page: int = 1,
    limit: int = 10,
    sort: Optional[str] = None,
    category: Optional[str] = None,
    identity: Optional[Identity] = Depends(get_current_user_optional),
):
    catalog = request.app.state.container.catalog
    pagination = parse(Pagination, {"limit": limit, "page": page, "sort": sort})
    result = await catalog.list(ProductFilter(category=category), pagination)
    return _render(request, "products.html", identity, page=result)


@router.get("/products/{pid}")
async def product_detail_page(
    request: Request,
    pid: str,
    identity: Optional[Identity] = Depends(get_current_user_optional),
):
    product = await request.app.state.container.catalog.get(pid)
    return _render(request, "product_detail.html", identity, product=product)


@router.get("/carts/{cid}")
async def cart_page(
    request: Request,
    cid: str,
    identity: Optional[Identity] = Depends(get_current_user_optional),
):
    if identity is None:
        return RedirectResponse("/login", status_code=303)
    carts = request.app.state.container.carts
    await carts.authorize(cid, identity)
    cart = await carts.get(cid)
    return _render(request, "cart.html", identity, cart=cart)


@router.get("/realtimeproducts")
async def realtime_products_page(
    request: Request,
    identity: Optional[Identity] = Depends(get_current_user_optional),
):
    return _render(request, "realtime_products.html", identity)


@router.get("/chat")
async def chat_page(
    request: Request,
    identity: Optional[Identity] = Depends(get_current_user_optional),
):
    return _render(request, "chat.html", identity)


@router.get("/login")
async def login_page(
    request: Request,
    identity: Optional[Identity] = Depends(get_current_user_optional),
):
    if identity:
        return RedirectResponse("/profile", status_code=303)
    return _render(request, "login.html", None)


@router.get("/register")
async def register_page(request: Request):
    return _render(request, "register.html", None)


@router.get("/profile")
async def profile_page(
    request: Request,
    identity: Optional[Identity] = Depends(get_current_user_optional),
):
    if identity is None:
        return RedirectResponse("/login", status_code=303)
    return _render(request, "profile.html", identity)
