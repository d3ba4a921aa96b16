"""Tests for the health check server and graceful shutdown."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import test_utils

from questionbot.core.health import ROOT_TEXT, HealthCheckServer
from questionbot.handlers.shutdown import shutdown_handler

pytestmark = pytest.mark.asyncio


@pytest.fixture
def ready_bot(mock_bot):
    mock_bot.is_ready = MagicMock(return_value=True)
    mock_bot.latency = 0.042
    return mock_bot


async def test_root_answers_plain_text(ready_bot):
    server = HealthCheckServer(ready_bot, port=0)
    async with test_utils.TestClient(test_utils.TestServer(server.create_app())) as client:
        response = await client.get("/")
        assert response.status == 200
        assert await response.text() == ROOT_TEXT


async def test_health_reports_discord_and_database(ready_bot):
    server = HealthCheckServer(ready_bot, port=0)
    async with test_utils.TestClient(test_utils.TestServer(server.create_app())) as client:
        response = await client.get("/health")
        body = await response.json()

    assert body["status"] == "healthy"
    assert body["discord"] == {"connected": True, "latency_ms": 42, "guilds": 0}
    assert body["database"]["healthy"] is True
    assert body["database"]["tables"] == 4
    assert body["scheduler"] is None


async def test_health_before_ready(ready_bot):
    ready_bot.is_ready.return_value = False
    status = HealthCheckServer(ready_bot).build_status()
    assert status["status"] == "starting"
    assert status["discord"]["latency_ms"] is None


async def test_health_with_closed_database(ready_bot):
    ready_bot.store.db.close()
    status = HealthCheckServer(ready_bot).build_status()
    assert status["status"] == "degraded"


async def test_shutdown_stops_services_and_closes_database(mock_bot):
    scheduler = MagicMock(is_running=True, stop=AsyncMock(return_value=True))
    server = MagicMock(stop=AsyncMock())
    mock_bot.daily_scheduler = scheduler
    mock_bot.health_server = server

    await shutdown_handler(mock_bot)

    scheduler.stop.assert_awaited_once()
    server.stop.assert_awaited_once()
    assert mock_bot.store.db.is_healthy is False


async def test_shutdown_survives_failing_cleanup(mock_bot):
    mock_bot.health_server = MagicMock(stop=AsyncMock(side_effect=RuntimeError("boom")))

    await shutdown_handler(mock_bot)

    assert mock_bot.store.db.is_healthy is False
