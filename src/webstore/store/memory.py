"""In-memory gateway implementation for testing and local runs."""

from __future__ import annotations

import copy
from collections import defaultdict
from typing import Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId

from webstore.exceptions import InvalidIdError
from webstore.store.base import Document, Gateway


def _object_id(record_id: str) -> ObjectId:
    try:
        return ObjectId(record_id)
    except (InvalidId, TypeError):
        raise InvalidIdError(record_id)


class MemoryGateway(Gateway):
    """In-memory gateway backed by dicts. Useful for testing.

    Each method runs without awaiting, so every operation is atomic with
    respect to other tasks on the event loop.
    """

    def __init__(self) -> None:
        # dicts keep insertion order
        self._collections: Dict[str, Dict[str, Document]] = defaultdict(dict)

    async def list(self, collection: str) -> List[Document]:
        return [copy.deepcopy(doc) for doc in self._collections[collection].values()]

    async def get_by_id(self, collection: str, record_id: str) -> Optional[Document]:
        key = str(_object_id(record_id))
        doc = self._collections[collection].get(key)
        return copy.deepcopy(doc) if doc is not None else None

    async def insert(self, collection: str, record: Document) -> Document:
        doc = copy.deepcopy(record)
        doc["_id"] = str(ObjectId())
        self._collections[collection][doc["_id"]] = doc
        return copy.deepcopy(doc)

    async def update_by_id(self, collection: str, record_id: str, fields: Document) -> int:
        doc = self._collections[collection].get(str(_object_id(record_id)))
        if doc is None:
            return 0
        doc.update(copy.deepcopy(fields))
        return 1

    async def increment_field(
        self, collection: str, record_id: str, field: str, delta: int
    ) -> int:
        doc = self._collections[collection].get(str(_object_id(record_id)))
        if doc is None:
            return 0
        doc[field] = doc.get(field, 0) + delta
        return 1

    async def decrement_if_available(
        self, collection: str, record_id: str, field: str, amount: int
    ) -> int:
        doc = self._collections[collection].get(str(_object_id(record_id)))
        current = doc.get(field) if doc is not None else None
        if not isinstance(current, (int, float)) or current < amount:
            return 0
        doc[field] = current - amount
        return 1

    async def ping(self) -> None:
        return None

    def clear(self) -> None:
        """Drop all collections (for testing)."""
        self._collections.clear()
