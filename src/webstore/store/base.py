"""Abstract storage gateway interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

LESSONS = "lessons"
ORDERS = "orders"

Document = Dict[str, Any]


class Gateway(ABC):
    """Abstract base class for document storage backends.

    Documents are plain dicts. Every document returned carries its ``_id``
    as a string; ids passed in must parse as ObjectIds or
    :class:`~webstore.exceptions.InvalidIdError` is raised.
    """

    @abstractmethod
    async def list(self, collection: str) -> List[Document]:
        """Return every document in the collection, in insertion order."""

    @abstractmethod
    async def get_by_id(self, collection: str, record_id: str) -> Optional[Document]:
        """Get a document by id, or None if not found."""

    @abstractmethod
    async def insert(self, collection: str, record: Document) -> Document:
        """Insert a document and return it with its generated ``_id``."""

    @abstractmethod
    async def update_by_id(self, collection: str, record_id: str, fields: Document) -> int:
        """Merge ``fields`` into the matching document. Returns the match count."""

    @abstractmethod
    async def increment_field(
        self, collection: str, record_id: str, field: str, delta: int
    ) -> int:
        """Atomically add ``delta`` to a numeric field. Returns the match count."""

    @abstractmethod
    async def decrement_if_available(
        self, collection: str, record_id: str, field: str, amount: int
    ) -> int:
        """Atomically subtract ``amount`` from ``field`` only if ``field >= amount``.

        Returns 1 when the decrement was applied, 0 when the document is
        missing or holds less than ``amount``.
        """

    @abstractmethod
    async def ping(self) -> None:
        """Raise StorageError if the backend is unreachable."""

    async def close(self) -> None:
        """Release backend resources."""
