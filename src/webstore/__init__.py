"""Webstore: lessons and orders API over a document store."""

from webstore.exceptions import (
    InvalidIdError,
    NotFoundError,
    StorageError,
    ValidationError,
    WebstoreError,
)

__version__ = "0.1.0"

__all__ = [
    "WebstoreError",
    "ValidationError",
    "InvalidIdError",
    "NotFoundError",
    "StorageError",
]
