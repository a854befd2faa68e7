"""Tests for MongoGateway against mocked pymongo collections."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from webstore.exceptions import InvalidIdError, StorageError
from webstore.store.base import LESSONS, ORDERS
from webstore.store.mongo import MongoGateway


def _make_gateway():
    """Return (gateway, client, collection) with every collection the same mock."""
    collection = MagicMock()
    database = MagicMock()
    database.__getitem__.return_value = collection
    client = MagicMock()
    client.__getitem__.return_value = database
    client.admin.command = AsyncMock(return_value={"ok": 1})
    client.close = AsyncMock()
    return MongoGateway(client, "webstore"), client, collection


def test_uses_configured_database():
    gateway, client, _ = _make_gateway()
    client.__getitem__.assert_called_with("webstore")


@pytest.mark.asyncio
async def test_list_stringifies_ids():
    gateway, _, collection = _make_gateway()
    oid = ObjectId()
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=[{"_id": oid, "name": "Guitar"}])
    collection.find.return_value.sort.return_value = cursor

    docs = await gateway.list(LESSONS)

    assert docs == [{"_id": str(oid), "name": "Guitar"}]
    collection.find.assert_called_once_with({})
    collection.find.return_value.sort.assert_called_once_with("_id", 1)


@pytest.mark.asyncio
async def test_get_by_id():
    gateway, _, collection = _make_gateway()
    oid = ObjectId()
    collection.find_one = AsyncMock(return_value={"_id": oid, "name": "Guitar"})

    doc = await gateway.get_by_id(LESSONS, str(oid))

    assert doc == {"_id": str(oid), "name": "Guitar"}
    collection.find_one.assert_awaited_once_with({"_id": oid})


@pytest.mark.asyncio
async def test_get_by_id_not_found():
    gateway, _, collection = _make_gateway()
    collection.find_one = AsyncMock(return_value=None)
    assert await gateway.get_by_id(LESSONS, str(ObjectId())) is None


@pytest.mark.asyncio
async def test_get_by_id_malformed():
    gateway, _, collection = _make_gateway()
    collection.find_one = AsyncMock()
    with pytest.raises(InvalidIdError):
        await gateway.get_by_id(LESSONS, "123")
    collection.find_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_insert_returns_generated_id():
    gateway, _, collection = _make_gateway()
    oid = ObjectId()
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=oid))
    record = {"lessonId": "x", "quantity": 1}

    stored = await gateway.insert(ORDERS, record)

    assert stored == {"lessonId": "x", "quantity": 1, "_id": str(oid)}
    assert "_id" not in record


@pytest.mark.asyncio
async def test_update_by_id_sets_fields():
    gateway, _, collection = _make_gateway()
    oid = ObjectId()
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))

    matched = await gateway.update_by_id(LESSONS, str(oid), {"availableInventory": 3})

    assert matched == 1
    collection.update_one.assert_awaited_once_with(
        {"_id": oid}, {"$set": {"availableInventory": 3}}
    )


@pytest.mark.asyncio
async def test_increment_field():
    gateway, _, collection = _make_gateway()
    oid = ObjectId()
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=0))

    matched = await gateway.increment_field(LESSONS, str(oid), "availableInventory", 4)

    assert matched == 0
    collection.update_one.assert_awaited_once_with(
        {"_id": oid}, {"$inc": {"availableInventory": 4}}
    )


@pytest.mark.asyncio
async def test_decrement_if_available_is_one_conditional_update():
    gateway, _, collection = _make_gateway()
    oid = ObjectId()
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))

    matched = await gateway.decrement_if_available(LESSONS, str(oid), "availableInventory", 3)

    assert matched == 1
    collection.update_one.assert_awaited_once_with(
        {"_id": oid, "availableInventory": {"$gte": 3}},
        {"$inc": {"availableInventory": -3}},
    )


@pytest.mark.asyncio
async def test_driver_errors_become_storage_errors():
    gateway, _, collection = _make_gateway()
    collection.find_one = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

    with pytest.raises(StorageError) as exc_info:
        await gateway.get_by_id(LESSONS, str(ObjectId()))
    assert isinstance(exc_info.value.__cause__, ServerSelectionTimeoutError)


@pytest.mark.asyncio
async def test_ping_and_close():
    gateway, client, _ = _make_gateway()
    await gateway.ping()
    client.admin.command.assert_awaited_once_with("ping")

    await gateway.close()
    client.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_ping_failure():
    gateway, client, _ = _make_gateway()
    client.admin.command = AsyncMock(side_effect=ServerSelectionTimeoutError("down"))
    with pytest.raises(StorageError):
        await gateway.ping()


def test_connect_builds_client_with_timeout(monkeypatch):
    created = {}

    def fake_client(uri, **kwargs):
        created["uri"] = uri
        created.update(kwargs)
        return MagicMock()

    monkeypatch.setattr("webstore.store.mongo.AsyncMongoClient", fake_client)
    MongoGateway.connect("mongodb://db:27017", "shop", timeout_seconds=2.5)

    assert created["uri"] == "mongodb://db:27017"
    assert created["timeoutMS"] == 2500


@pytest.mark.asyncio
async def test_bson_encoding_errors_become_storage_errors():
    gateway, _, collection = _make_gateway()
    collection.update_one = AsyncMock(
        side_effect=OverflowError("MongoDB can only handle up to 8-byte ints")
    )

    with pytest.raises(StorageError) as exc_info:
        await gateway.update_by_id(LESSONS, str(ObjectId()), {"availableInventory": 10**30})
    assert isinstance(exc_info.value.__cause__, OverflowError)
