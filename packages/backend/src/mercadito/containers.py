"""Dependency container wiring for the application.

Learn: The store client is a process-wide singleton, but it is built
here and passed down explicitly rather than imported as a module global.
Tests build the same container around an in-memory database.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from mercadito.app_logging import AppLogger, configure_logging
from mercadito.config import Settings
from mercadito.db.client import create_client
from mercadito.gateways.carts import CartGateway
from mercadito.gateways.catalog import CatalogGateway
from mercadito.gateways.messages import MessageGateway
from mercadito.gateways.sessions import SessionGateway
from mercadito.gateways.tickets import TicketGateway
from mercadito.realtime.bridge import RealtimeBridge


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    logger: AppLogger
    db: AsyncIOMotorDatabase
    catalog: CatalogGateway
    messages: MessageGateway
    carts: CartGateway
    tickets: TicketGateway
    sessions: SessionGateway
    bridge: RealtimeBridge
    close_resources: Callable[[], Awaitable[None]]


def wire(
    settings: Settings,
    db: AsyncIOMotorDatabase,
    logger: AppLogger,
    close_resources: Optional[Callable[[], Awaitable[None]]] = None,
    password_rounds: int = 12,
) -> AppContainer:
    """Build every gateway around an already-open database handle."""
    catalog = CatalogGateway(db, logger)
    messages = MessageGateway(db, logger)
    carts = CartGateway(db, catalog, logger)
    tickets = TicketGateway(db, catalog, carts, logger)
    sessions = SessionGateway(
        db,
        carts,
        logger,
        secret=settings.session_secret,
        ttl_seconds=settings.session_ttl_seconds,
        cookie_name=settings.session_cookie,
        admin_email=settings.admin_email,
        password_rounds=password_rounds,
    )
    bridge = RealtimeBridge(catalog, messages, logger)

    async def _noop() -> None:
        return None

    return AppContainer(
        settings=settings,
        logger=logger,
        db=db,
        catalog=catalog,
        messages=messages,
        carts=carts,
        tickets=tickets,
        sessions=sessions,
        bridge=bridge,
        close_resources=close_resources or _noop,
    )


def build_container(settings: Settings) -> AppContainer:
    """Create the default dependency container (real MongoDB)."""
    configure_logging(json_output=not settings.is_development)
    logger = AppLogger("mercadito", level=settings.log_level)

    client = create_client(settings.mongo_url)
    db = client[settings.mongo_db]

    async def close_resources() -> None:
        client.close()

    return wire(settings, db, logger, close_resources=close_resources)
