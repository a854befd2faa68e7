"""MongoDB gateway using the pymongo async driver."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from bson import ObjectId
from bson.errors import InvalidDocument, InvalidId
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.errors import PyMongoError

from webstore.exceptions import InvalidIdError, StorageError
from webstore.store.base import Document, Gateway

logger = logging.getLogger(__name__)


def _object_id(record_id: str) -> ObjectId:
    try:
        return ObjectId(record_id)
    except (InvalidId, TypeError):
        raise InvalidIdError(record_id)


def _to_document(raw: dict) -> Document:
    doc = dict(raw)
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


@contextmanager
def _storage_errors(operation: str, collection: str) -> Iterator[None]:
    """Translate driver and BSON encoding errors into StorageError."""
    try:
        yield
    except (PyMongoError, InvalidDocument, OverflowError) as exc:
        logger.error("MongoDB %s on %s failed: %s", operation, collection, exc)
        raise StorageError(f"{operation} on {collection} failed") from exc


class MongoGateway(Gateway):
    """Gateway over one MongoDB database.

    The client is shared by every request; pymongo pools connections
    internally.
    """

    def __init__(self, client: AsyncMongoClient, database_name: str = "webstore") -> None:
        self._client = client
        self._db = client[database_name]

    @classmethod
    def connect(
        cls, uri: str, database_name: str = "webstore", timeout_seconds: float = 5.0
    ) -> MongoGateway:
        """Create a gateway from a connection string.

        The driver connects lazily; call :meth:`ping` to verify the server.
        """
        client: AsyncMongoClient = AsyncMongoClient(uri, timeoutMS=int(timeout_seconds * 1000))
        return cls(client, database_name)

    async def list(self, collection: str) -> List[Document]:
        with _storage_errors("find", collection):
            cursor = self._db[collection].find({}).sort("_id", ASCENDING)
            rows = await cursor.to_list(None)
        return [_to_document(r) for r in rows]

    async def get_by_id(self, collection: str, record_id: str) -> Optional[Document]:
        oid = _object_id(record_id)
        with _storage_errors("find_one", collection):
            row = await self._db[collection].find_one({"_id": oid})
        return _to_document(row) if row is not None else None

    async def insert(self, collection: str, record: Document) -> Document:
        doc = dict(record)
        doc.pop("_id", None)
        with _storage_errors("insert_one", collection):
            result = await self._db[collection].insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def update_by_id(self, collection: str, record_id: str, fields: Document) -> int:
        oid = _object_id(record_id)
        with _storage_errors("update_one", collection):
            result = await self._db[collection].update_one({"_id": oid}, {"$set": fields})
        return result.matched_count

    async def increment_field(
        self, collection: str, record_id: str, field: str, delta: int
    ) -> int:
        oid = _object_id(record_id)
        with _storage_errors("update_one", collection):
            result = await self._db[collection].update_one(
                {"_id": oid}, {"$inc": {field: delta}}
            )
        return result.matched_count

    async def decrement_if_available(
        self, collection: str, record_id: str, field: str, amount: int
    ) -> int:
        oid = _object_id(record_id)
        with _storage_errors("update_one", collection):
            result = await self._db[collection].update_one(
                {"_id": oid, field: {"$gte": amount}},
                {"$inc": {field: -amount}},
            )
        return result.matched_count

    async def ping(self) -> None:
        with _storage_errors("ping", "admin"):
            await self._client.admin.command("ping")

    async def close(self) -> None:
        await self._client.close()
        logger.info("MongoDB client closed")
