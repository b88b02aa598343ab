"""Websocket frame envelope, event names, and typed commands.

Every frame in both directions is `{"event": <name>, "data": <payload>}`.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

import pydantic
from pydantic import BaseModel, ConfigDict

from mercadito.errors import ValidationError

# ─── Server → client ─────────────────────────────────────

PRODUCTS = "productos"  # catalog snapshot on connect, echo after an add
MESSAGE_HISTORY = "message"  # chat history on connect (private)
MESSAGE_LOGS = "messageLogs"  # chat history after a new message (everyone)
USER_JOINED = "nuevo_user"  # someone else connected
ERROR = "error"
PONG = "pong"

# ─── Client → server ─────────────────────────────────────

ADD_PRODUCT = "agregarProducto"
POST_MESSAGE = "message"
PING = "ping"


class Frame(BaseModel):
    event: str
    data: Any = None

    model_config = ConfigDict(extra="ignore")


def frame(event: str, data: Any = None) -> dict:
    return {"event": event, "data": data}


# ─── Commands ────────────────────────────────────────────


@dataclass(frozen=True)
class AddProduct:
    payload: dict


@dataclass(frozen=True)
class PostMessage:
    payload: dict


@dataclass(frozen=True)
class Ping:
    pass


Command = Union[AddProduct, PostMessage, Ping]


@dataclass
class CommandResult:
    event: str
    ok: bool = True
    error: Optional[str] = None
    data: Any = field(default=None)


def parse_command(raw: Any) -> Command:
    """Turn a decoded JSON frame into a typed command.

    Raises ValidationError for anything that is not a known event with a
    payload of the right shape.
    """
    if not isinstance(raw, dict):
        raise ValidationError("Frame must be a JSON object")
    try:
        parsed = Frame.model_validate(raw)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Malformed frame: {e}") from e

    if parsed.event == PING:
        return Ping()
    if parsed.event in (ADD_PRODUCT, POST_MESSAGE):
        if not isinstance(parsed.data, dict):
            raise ValidationError(f"'{parsed.event}' expects an object payload")
        if parsed.event == ADD_PRODUCT:
            return AddProduct(payload=parsed.data)
        return PostMessage(payload=parsed.data)
    raise ValidationError(f"Unknown event: {parsed.event}")
