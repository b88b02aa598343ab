"""The /ws endpoint end to end, through Starlette's TestClient.

All sockets in a test share one TestClient (and so one event loop), the
way several browser tabs share one server.
"""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from fakes import BrokenDatabase
from mercadito.containers import wire
from mercadito.main import create_app


@pytest.fixture()
def tc(container):
    with TestClient(create_app(container, check_store=False)) as client:
        yield client


def _initial(ws):
    products = ws.receive_json()
    history = ws.receive_json()
    assert products["event"] == "productos"
    assert history["event"] == "message"
    return products["data"], history["data"]


def test_connect_receives_empty_state(tc):
    with tc.websocket_connect("/ws") as ws:
        products, history = _initial(ws)
        assert products == {"products": []}
        assert history == []


def test_added_product_is_echoed_then_replayed_to_newcomers(tc):
    with tc.websocket_connect("/ws") as a:
        _initial(a)
        a.send_json({"event": "agregarProducto", "data": {"title": "X", "price": 10}})
        assert a.receive_json() == {"event": "productos", "data": {"title": "X", "price": 10}}

        with tc.websocket_connect("/ws") as b:
            products, _ = _initial(b)
            assert [p["title"] for p in products["products"]] == ["X"]
            assert products["products"][0]["id"]

            joined = a.receive_json()
            assert joined["event"] == "nuevo_user"
            assert joined["data"]["user"] is None


def test_chat_message_reaches_everyone_once(tc):
    with tc.websocket_connect("/ws") as a:
        _initial(a)
        # a pong means a's handler is in its read loop
        a.send_json({"event": "ping"})
        assert a.receive_json()["event"] == "pong"

        with tc.websocket_connect("/ws") as b:
            _initial(b)
            assert a.receive_json()["event"] == "nuevo_user"

            a.send_json({"event": "message", "data": {"user": "ana", "message": "hi"}})

            for ws in (a, b):
                frame = ws.receive_json()
                assert frame["event"] == "messageLogs"
                assert [m["body"] for m in frame["data"]] == ["hi"]


def test_invalid_frame_gets_error_and_socket_stays_open(tc):
    with tc.websocket_connect("/ws") as ws:
        _initial(ws)
        ws.send_text("{not json")
        error = ws.receive_json()
        assert error["event"] == "error"
        assert error["data"]["message"] == "Invalid JSON"

        ws.send_json({"event": "ping"})
        assert ws.receive_json() == {"event": "pong", "data": None}


def test_binary_frame_gets_error_and_socket_stays_open(tc):
    with tc.websocket_connect("/ws") as ws:
        _initial(ws)
        ws.send_bytes(b'{"event": "ping"}')
        error = ws.receive_json()
        assert error["event"] == "error"
        assert error["data"]["error"] == "ValidationError"

        ws.send_json({"event": "ping"})
        assert ws.receive_json() == {"event": "pong", "data": None}


def test_session_cookie_identifies_socket_user(tc):
    tc.post(
        "/api/auth/register",
        json={"email": "ws@example.com", "first_name": "W", "password": "long-enough-1"},
    )
    r = tc.post("/api/auth/login", json={"email": "ws@example.com", "password": "long-enough-1"})
    assert r.status_code == 200

    with tc.websocket_connect("/ws") as ws:
        _initial(ws)
        ws.send_json({"event": "message", "data": {"body": "from a session"}})
        frame = ws.receive_json()
        assert frame["data"][-1]["sender"] == "ws@example.com"


def test_store_down_closes_socket(settings, logger):
    app = create_app(wire(settings, BrokenDatabase(), logger), check_store=False)
    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/ws") as ws:
                ws.receive_json()
    assert exc.value.code == 1011
