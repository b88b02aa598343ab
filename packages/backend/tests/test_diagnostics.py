"""The /loggerTest smoke route."""

import pytest
from structlog.testing import capture_logs


@pytest.mark.asyncio
async def test_logger_test_emits_six_levels(client):
    with capture_logs() as logs:
        r = await client.get("/loggerTest")
    assert r.status_code == 200
    assert r.text == "Logger test complete"

    from_route = [entry for entry in logs if entry.get("source") == "loggerTest"]
    assert [entry["severity"] for entry in from_route] == [
        "debug", "http", "info", "warning", "error", "fatal",
    ]
