"""Realtime bridge — live connections over the catalog and chat log.

Learn: Connection lifecycle is connected → initialized → closed.

On connect the bridge, while holding the connection's send lock:
1. registers the connection (so broadcasts queue up behind the lock)
2. sends the full catalog privately (`productos`)
3. sends the full chat history privately (`message`)
then marks it initialized and tells everyone else (`nuevo_user`).
Holding the lock during the replay means nothing sent later can reach
the client before its initial state.

Commands:
- AddProduct  → write through the catalog, append to this connection's
                local snapshot, echo the *raw* payload back to this
                connection only. The echo is not the stored record (no id,
                no defaults); clients that need those refetch.
- PostMessage → write through the message store, refetch the whole log,
                broadcast it to every connection (full-log rebroadcast).
- Ping        → pong.
Failures become a private `error` event instead of being dropped.

A closed connection is forgotten immediately. Writes it started still
finish, and broadcasts to the remaining connections still go out.
"""

import asyncio
import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol, Union

from mercadito.app_logging import AppLogger
from mercadito.errors import AppError, ValidationError
from mercadito.gateways.catalog import CatalogGateway
from mercadito.gateways.messages import MessageGateway
from mercadito.realtime import protocol
from mercadito.realtime.protocol import (
    AddProduct,
    Command,
    CommandResult,
    Ping,
    PostMessage,
    frame,
    parse_command,
)
from mercadito.schemas.auth import Identity
from mercadito.schemas.product import ProductRead


class Transport(Protocol):
    async def send_json(self, data: Any) -> None: ...


class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    INITIALIZED = "initialized"
    CLOSED = "closed"


@dataclass
class Connection:
    id: str
    transport: Transport
    identity: Optional[Identity] = None
    status: ConnectionStatus = ConnectionStatus.CONNECTED
    # Append-only copy of what this client has been shown
    products: list[ProductRead] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class RealtimeBridge:
    """Owns every live connection in this process."""

    def __init__(
        self,
        catalog: CatalogGateway,
        messages: MessageGateway,
        logger: AppLogger,
    ):
        self.catalog = catalog
        self.messages = messages
        self.log = logger.bind(component="realtime")
        self._connections: dict[str, Connection] = {}

    @property
    def connections(self) -> list[Connection]:
        return list(self._connections.values())

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    # ─── Lifecycle ──────────────────────────────────────

    async def connect(
        self,
        transport: Transport,
        identity: Optional[Identity] = None,
        connection_id: Optional[str] = None,
    ) -> Connection:
        """Register a connection and replay the initial state to it.

        Store failures during the replay close the connection and
        propagate to the caller.
        """
        conn = Connection(
            id=connection_id or uuid.uuid4().hex,
            transport=transport,
            identity=identity,
        )
        async with conn.lock:
            self._connections[conn.id] = conn
            try:
                products = await self.catalog.list_all()
                conn.products = list(products)
                delivered = await self._deliver(
                    conn,
                    frame(
                        protocol.PRODUCTS,
                        {"products": [p.model_dump(mode="json") for p in products]},
                    ),
                )
                if delivered:
                    history = await self.messages.list_all()
                    delivered = await self._deliver(
                        conn,
                        frame(
                            protocol.MESSAGE_HISTORY,
                            [m.model_dump(mode="json") for m in history],
                        ),
                    )
            except Exception:
                self.disconnect(conn.id)
                raise
            if not delivered:
                return conn
            conn.status = ConnectionStatus.INITIALIZED

        self.log.info(
            "realtime.connected",
            connection_id=conn.id,
            user=identity.email if identity else None,
            connections=len(self._connections),
        )
        await self.broadcast(
            frame(
                protocol.USER_JOINED,
                {"connection_id": conn.id, "user": identity.email if identity else None},
            ),
            exclude=conn.id,
        )
        return conn

    def disconnect(self, connection_id: str) -> None:
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            return
        conn.status = ConnectionStatus.CLOSED
        conn.products.clear()
        self.log.info(
            "realtime.disconnected",
            connection_id=connection_id,
            connections=len(self._connections),
        )

    # ─── Inbound ────────────────────────────────────────

    async def receive(self, connection_id: str, raw: Union[str, bytes, None]) -> CommandResult:
        """Decode one raw frame and dispatch it. Only JSON text frames are accepted."""
        if not isinstance(raw, str):
            return await self._reject(
                connection_id, None, ValidationError("Frames must be JSON text")
            )
        try:
            command = parse_command(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            message = e.message if isinstance(e, ValidationError) else "Invalid JSON"
            return await self._reject(connection_id, None, ValidationError(message))
        return await self.dispatch(connection_id, command)

    async def dispatch(self, connection_id: str, command: Command) -> CommandResult:
        event = _event_name(command)
        conn = self._connections.get(connection_id)
        if conn is None or conn.status is not ConnectionStatus.INITIALIZED:
            return CommandResult(event=event, ok=False, error="Connection is not open")

        try:
            if isinstance(command, AddProduct):
                return await self._add_product(conn, command)
            if isinstance(command, PostMessage):
                return await self._post_message(conn, command)
            await self.send(conn, frame(protocol.PONG))
            return CommandResult(event=event)
        except AppError as e:
            return await self._reject(connection_id, event, e)
        except Exception as e:
            self.log.error(
                "realtime.command_crashed",
                connection_id=connection_id,
                event_name=event,
                exc_info=True,
            )
            return await self._reject(connection_id, event, AppError(f"Internal error: {e}"))

    async def _add_product(self, conn: Connection, command: AddProduct) -> CommandResult:
        product = await self.catalog.create(dict(command.payload))
        conn.products.append(product)
        await self.send(conn, frame(protocol.PRODUCTS, command.payload))
        return CommandResult(event=protocol.ADD_PRODUCT, data=product)

    async def _post_message(self, conn: Connection, command: PostMessage) -> CommandResult:
        payload = command.payload
        sender = payload.get("sender", payload.get("user"))
        if not sender and conn.identity:
            sender = conn.identity.email
        body = payload.get("body", payload.get("message"))

        message = await self.messages.create(sender, body)
        history = await self.messages.list_all()
        await self.broadcast(
            frame(protocol.MESSAGE_LOGS, [m.model_dump(mode="json") for m in history])
        )
        return CommandResult(event=protocol.POST_MESSAGE, data=message)

    async def _reject(
        self, connection_id: str, event: Optional[str], error: AppError
    ) -> CommandResult:
        self.log.warning(
            "realtime.command_failed",
            connection_id=connection_id,
            event_name=event,
            error=error.message,
        )
        conn = self._connections.get(connection_id)
        if conn is not None:
            await self.send(
                conn,
                frame(
                    protocol.ERROR,
                    {
                        "event": event,
                        "error": type(error).__name__,
                        "message": error.message,
                    },
                ),
            )
        return CommandResult(event=event or "", ok=False, error=error.message)

    # ─── Outbound ───────────────────────────────────────

    async def send(self, conn: Connection, payload: dict) -> bool:
        """Send to one connection, serialized with its other sends."""
        async with conn.lock:
            return await self._deliver(conn, payload)

    async def broadcast(self, payload: dict, exclude: Optional[str] = None) -> int:
        """Send to every open connection except `exclude`. Returns deliveries."""
        targets = [c for c in self.connections if c.id != exclude]
        results = await asyncio.gather(*(self.send(c, payload) for c in targets))
        return sum(1 for r in results if r)

    async def _deliver(self, conn: Connection, payload: dict) -> bool:
        if conn.status is ConnectionStatus.CLOSED:
            return False
        try:
            await conn.transport.send_json(payload)
            return True
        except Exception as e:
            # Peer went away mid-send; drop it, keep serving the others
            self.log.warning(
                "realtime.send_failed", connection_id=conn.id, error=str(e)
            )
            self.disconnect(conn.id)
            return False


def _event_name(command: Command) -> str:
    if isinstance(command, AddProduct):
        return protocol.ADD_PRODUCT
    if isinstance(command, PostMessage):
        return protocol.POST_MESSAGE
    if isinstance(command, Ping):
        return protocol.PING
    raise TypeError(f"Unknown command: {command!r}")
