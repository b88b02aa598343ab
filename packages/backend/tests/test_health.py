"""Health endpoint tests."""

import pytest
from httpx import ASGITransport, AsyncClient
from structlog.testing import capture_logs

from fakes import BrokenDatabase
from mercadito.containers import wire
from mercadito.errors import StartupError
from mercadito.main import create_app


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status, version and mongo check."""
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["mongo"] == "ok"
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_degraded_when_store_down(settings, logger):
    app = create_app(wire(settings, BrokenDatabase(), logger), check_store=False)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        resp = await ac.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "degraded"
    assert resp.json()["mongo"].startswith("error")


@pytest.mark.asyncio
async def test_startup_creates_indexes(container, db):
    app = create_app(container)
    async with app.router.lifespan_context(app):
        pass
    assert "expires_at_1" in await db["sessions"].index_information()
    assert (await db["users"].index_information())["email_1"]["unique"]
    assert (await db["tickets"].index_information())["code_1"]["unique"]


@pytest.mark.asyncio
async def test_startup_aborts_when_store_unreachable(settings, logger):
    closed = []

    async def close_resources():
        closed.append(True)

    container = wire(settings, BrokenDatabase(), logger, close_resources=close_resources)
    app = create_app(container)
    with capture_logs() as logs:
        with pytest.raises(StartupError):
            async with app.router.lifespan_context(app):
                pass
    assert closed == [True]
    assert any(entry.get("severity") == "fatal" for entry in logs)
