"""FastAPI application factory.

Learn: App factory pattern — create_app(container) returns a configured
FastAPI instance around an already-wired dependency container. Lifespan
verifies the store and creates indexes before the first request; if
MongoDB does not answer, startup aborts with StartupError and nothing is
served. Error mapping for every route lives here, in one place.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mercadito import __version__
from mercadito.api import api_router
from mercadito.api.diagnostics import router as diagnostics_router
from mercadito.api.views import router as views_router
from mercadito.config import load_settings
from mercadito.containers import AppContainer, build_container
from mercadito.db.client import ensure_indexes, ping
from mercadito.errors import AppError
from mercadito.schemas.common import describe_errors, fail


def create_app(container: AppContainer, check_store: bool = True) -> FastAPI:
    """Build and return the FastAPI application."""
    logger = container.logger

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown lifecycle."""
        settings = container.settings
        if check_store:
            try:
                await ping(container.db)
                await ensure_indexes(container.db)
            except Exception as e:
                logger.fatal("mercadito.startup_failed", error=str(e))
                await container.close_resources()
                raise
        logger.info(
            "mercadito.starting",
            version=__version__,
            environment=settings.environment,
            port=settings.port,
        )

        yield

        logger.info("mercadito.shutdown", open_connections=len(container.bridge.connections))
        await container.close_resources()

    app = FastAPI(
        title="Mercadito",
        description="E-commerce backend with a realtime product and chat feed",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.container = container

    # ── Middleware stack ──────────────────────────────────────
    # Starlette runs middleware in reverse order of registration:
    # RequestContext → SecurityHeaders → handler
    from mercadito.middleware.request_context import RequestContextMiddleware
    from mercadito.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)

    _register_error_handlers(app, container)

    app.include_router(api_router)
    app.include_router(diagnostics_router)
    app.include_router(views_router)

    from mercadito.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


def _register_error_handlers(app: FastAPI, container: AppContainer) -> None:
    """Map every failure to `{"status": "error", "error": ...}`."""
    logger = container.logger

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("http.store_error", path=request.url.path, error=exc.message)
        else:
            logger.debug(
                "http.client_error",
                path=request.url.path,
                status=exc.status_code,
                error=exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content=fail(exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=fail(describe_errors(exc.errors())))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error(
            "http.unhandled_error",
            path=request.url.path,
            error=repr(exc),
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content=fail("Internal server error"))


def build_app() -> FastAPI:
    """uvicorn factory: `uvicorn --factory mercadito.main:build_app`.

    Raises StartupError when MONGO_URL or SESSION_SECRET is missing.
    """
    settings = load_settings()
    return create_app(build_container(settings))
