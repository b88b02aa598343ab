"""Request context middleware — request id + one http log line per request.

Learn: Every request gets an id, either from the incoming X-Request-ID
header or freshly generated. The id is bound to structlog's contextvars
so every log entry made while serving the request carries it, and it is
echoed back in the response header. After the response is produced, one
line is logged at the `http` severity.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger = request.app.state.container.logger
        logger.http(
            f"{request.method} {request.url.path}",
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response
