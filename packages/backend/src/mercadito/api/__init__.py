"""API route aggregation.

All routers registered here are mounted under /api in main.py.

Learn: Auth is applied at the include_router level for carts and tickets
using FastAPI's dependencies parameter. Products decide per route (reads
are public, writes need an admin); health and auth are open.
"""

from fastapi import APIRouter, Depends

from mercadito.api.auth import router as auth_router
from mercadito.api.carts import router as carts_router
from mercadito.api.health import router as health_router
from mercadito.api.products import router as products_router
from mercadito.api.tickets import router as tickets_router
from mercadito.auth.dependencies import get_current_user

_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(products_router, tags=["products"])

# Protected routes — require a session
api_router.include_router(carts_router, tags=["carts"], dependencies=_auth)
api_router.include_router(tickets_router, tags=["tickets"], dependencies=_auth)
