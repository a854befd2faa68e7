"""Tests for gateway construction at startup."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

pytest.importorskip("fastapi")

from webstore.exceptions import StorageError
from webstore.server.config import Settings
from webstore.server.db import open_gateway
from webstore.store.memory import MemoryGateway
from webstore.store.mongo import MongoGateway


@pytest.mark.asyncio
async def test_no_uri_uses_memory_gateway():
    gateway = await open_gateway(Settings(mongo_uri=""))
    assert isinstance(gateway, MemoryGateway)


@pytest.mark.asyncio
async def test_uri_builds_mongo_gateway():
    settings = Settings(mongo_uri="mongodb://db:27017", database_name="shop",
                        storage_timeout_seconds=1.5)
    with patch.object(MongoGateway, "ping", AsyncMock()) as ping, \
         patch.object(MongoGateway, "connect", wraps=MongoGateway.connect) as connect:
        gateway = await open_gateway(settings)

    assert isinstance(gateway, MongoGateway)
    connect.assert_called_once_with("mongodb://db:27017", "shop", timeout_seconds=1.5)
    ping.assert_awaited_once()
    await gateway.close()


@pytest.mark.asyncio
async def test_unreachable_mongo_is_not_fatal():
    settings = Settings(mongo_uri="mongodb://db:27017")
    with patch.object(MongoGateway, "ping", AsyncMock(side_effect=StorageError("down"))):
        gateway = await open_gateway(settings)
    assert isinstance(gateway, MongoGateway)
    await gateway.close()


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("MONGO_URI", "mongodb://x")
    monkeypatch.setenv("PORT", "4000")
    monkeypatch.setenv("STORAGE_TIMEOUT_SECONDS", "2")
    monkeypatch.setenv("METRICS_ENABLED", "no")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    s = Settings.from_env()

    assert s.mongo_uri == "mongodb://x"
    assert s.port == 4000
    assert s.storage_timeout_seconds == 2.0
    assert s.metrics_enabled is False
    assert s.log_level == "DEBUG"
    assert s.database_name == "webstore"
