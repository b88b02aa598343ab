"""WebSocket endpoint — the transport side of the realtime bridge.

Learn: Each browser tab opens one socket at /ws. The handler:
1. Attaches the session cookie (optional — anonymous clients are allowed)
2. Hands the socket to the bridge, which replays catalog + chat history
3. Reads frames one at a time and dispatches them in arrival order
4. Forgets the connection as soon as either side disconnects
"""

from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketState

from mercadito.errors import AppError
from mercadito.realtime.bridge import ConnectionStatus

router = APIRouter()


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket):
    container = websocket.app.state.container
    bridge = container.bridge
    log = container.logger.bind(component="realtime.ws")

    try:
        identity = await container.sessions.attach_session(websocket)
    except AppError as e:
        log.error("realtime.session_lookup_failed", error=e.message)
        identity = None

    await websocket.accept()

    try:
        conn = await bridge.connect(websocket, identity=identity)
    except AppError as e:
        log.error("realtime.replay_failed", error=e.message)
        await websocket.close(code=1011, reason="Initial state unavailable")
        return

    if conn.status is not ConnectionStatus.INITIALIZED:
        return

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            # Binary frames have no "text"; the bridge answers them with an error
            await bridge.receive(conn.id, message.get("text"))
    finally:
        bridge.disconnect(conn.id)
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()
