"""Signed session-id cookies.

Learn: The cookie value is a small HS256 JWT keyed with SESSION_SECRET whose
only claim is the session id (`sid`). Expiry is not in the token: the
session record in Mongo owns it, so logout and TTL reaping still revoke
the cookie. A token that fails verification is treated exactly like no
cookie at all.
"""

import secrets
from typing import Optional

import jwt

ALGORITHM = "HS256"


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def sign(session_id: str, secret: str) -> str:
    return jwt.encode({"sid": session_id}, secret, algorithm=ALGORITHM)


def unsign(value: Optional[str], secret: str) -> Optional[str]:
    """Return the session id if the token verifies, else None."""
    if not value:
        return None
    try:
        payload = jwt.decode(value, secret, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        return None
    session_id = payload.get("sid")
    return session_id if isinstance(session_id, str) and session_id else None
