"""Product API routes.

Learn: Reads are public; writes need an admin session. Each route makes
exactly one catalog call and wraps the result in the success envelope.
Gateway errors (NotFound, Validation, ...) are rendered by the central
error handlers in main.py.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Request

from mercadito.auth.dependencies import require_admin
from mercadito.gateways.catalog import CatalogGateway
from mercadito.schemas.common import ok, parse
from mercadito.schemas.product import Pagination, ProductFilter

router = APIRouter(prefix="/products")


def _catalog(request: Request) -> CatalogGateway:
    return request.app.state.container.catalog


@router.get("")
async def list_products(
    request: Request,
    limit: int = 10,
    page: int = 1,
    sort: Optional[str] = None,
    category: Optional[str] = None,
    available: Optional[bool] = None,
    catalog: CatalogGateway = Depends(_catalog),
):
    pagination = parse(Pagination, {"limit": limit, "page": page, "sort": sort})
    result = await catalog.list(
        ProductFilter(category=category, available=available), pagination
    )

    def link(target: Optional[int]) -> Optional[str]:
        if target is None:
            return None
        return str(request.url.include_query_params(page=target))

    body = ok([p.model_dump(mode="json") for p in result.items])
    body.update(
        total=result.total,
        totalPages=result.total_pages,
        page=result.page,
        prevPage=result.prev_page,
        nextPage=result.next_page,
        hasPrevPage=result.has_prev_page,
        hasNextPage=result.has_next_page,
        prevLink=link(result.prev_page),
        nextLink=link(result.next_page),
    )
    return body


@router.get("/{pid}")
async def get_product(pid: str, catalog: CatalogGateway = Depends(_catalog)):
    product = await catalog.get(pid)
    return ok(product.model_dump(mode="json"))


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_product(
    fields: dict = Body(...),
    catalog: CatalogGateway = Depends(_catalog),
):
    product = await catalog.create(fields)
    return ok(product.model_dump(mode="json"))


@router.put("/{pid}", dependencies=[Depends(require_admin)])
async def update_product(
    pid: str,
    fields: dict = Body(...),
    catalog: CatalogGateway = Depends(_catalog),
):
    product = await catalog.update(pid, fields)
    return ok(product.model_dump(mode="json"))


@router.delete("/{pid}", dependencies=[Depends(require_admin)])
async def delete_product(pid: str, catalog: CatalogGateway = Depends(_catalog)):
    await catalog.delete(pid)
    return ok({"id": pid})
