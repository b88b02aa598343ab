"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to resolve the
session cookie into an Identity.

- get_current_user_optional → Identity or None (views, realtime pages)
- get_current_user          → Identity or 401
- require_admin             → Identity with role admin, or 403
"""

from typing import Optional

from fastapi import Depends, Request

from mercadito.errors import AuthError, ForbiddenError
from mercadito.schemas.auth import Identity


async def get_current_user_optional(request: Request) -> Optional[Identity]:
    sessions = request.app.state.container.sessions
    return await sessions.attach_session(request)


async def get_current_user(
    identity: Optional[Identity] = Depends(get_current_user_optional),
) -> Identity:
    if identity is None:
        raise AuthError("Authentication required")
    return identity


async def require_admin(identity: Identity = Depends(get_current_user)) -> Identity:
    if not identity.is_admin:
        raise ForbiddenError("Admin role required")
    return identity
