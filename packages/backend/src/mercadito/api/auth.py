"""Auth API — registration, login, logout, current identity.

Learn: Login stores a session record server-side and sets a signed
cookie holding only the session id. Logout deletes the record, so the
same cookie replayed later attaches nothing.
"""

from fastapi import APIRouter, Body, Depends, Request, Response

from mercadito.auth.cookies import sign
from mercadito.auth.dependencies import get_current_user
from mercadito.gateways.sessions import SessionGateway
from mercadito.schemas.auth import Identity
from mercadito.schemas.common import ok

router = APIRouter(prefix="/auth")


def _sessions(request: Request) -> SessionGateway:
    return request.app.state.container.sessions


@router.post("/register", status_code=201)
async def register(
    body: dict = Body(...),
    sessions: SessionGateway = Depends(_sessions),
):
    """Create a user account (and its empty cart)."""
    identity = await sessions.register(body)
    return ok(identity.model_dump())


@router.post("/login")
async def login(
    request: Request,
    response: Response,
    body: dict = Body(...),
    sessions: SessionGateway = Depends(_sessions),
):
    identity = await sessions.authenticate(body)
    session_id = await sessions.open_session(identity)

    settings = request.app.state.container.settings
    response.set_cookie(
        key=sessions.cookie_name,
        value=sign(session_id, sessions.secret),
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=not settings.is_development,
    )
    return ok(identity.model_dump())


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    sessions: SessionGateway = Depends(_sessions),
):
    await sessions.destroy_session(request)
    response.delete_cookie(sessions.cookie_name)
    return ok(None)


@router.get("/current")
async def current(identity: Identity = Depends(get_current_user)):
    return ok(identity.model_dump())
