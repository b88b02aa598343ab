"""Response envelope and input parsing shared by routes and gateways."""

from typing import Any, Optional, TypeVar

import pydantic
from pydantic import BaseModel

from mercadito.errors import ValidationError

M = TypeVar("M", bound=BaseModel)


def ok(payload: Any) -> dict:
    return {"status": "success", "payload": payload}


def fail(message: str, detail: Optional[Any] = None) -> dict:
    body = {"status": "error", "error": message}
    if detail is not None:
        body["detail"] = detail
    return body


def describe_errors(errors: list[dict]) -> str:
    """Flatten pydantic error dicts into one readable line."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid input"


def parse(model: type[M], data: Any) -> M:
    """Validate raw input against a schema, raising the app's ValidationError."""
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object")
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(describe_errors(e.errors())) from e
