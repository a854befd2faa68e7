"""Storage gateway lifecycle and per-call timeout."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from fastapi import Request

from webstore.exceptions import StorageError
from webstore.server.config import Settings, settings as _settings
from webstore.server.metrics import storage_errors_total
from webstore.store.base import Gateway
from webstore.store.memory import MemoryGateway
from webstore.store.mongo import MongoGateway

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def open_gateway(settings: Settings) -> Gateway:
    """Build the gateway for the configured backend.

    Without MONGO_URI the server falls back to an in-memory gateway. A
    Mongo server that is unreachable at startup is logged, not fatal;
    requests fail with 500 until it comes back.
    """
    if not settings.mongo_uri:
        logger.warning("MONGO_URI not set, using in-memory storage")
        return MemoryGateway()

    gateway = MongoGateway.connect(
        settings.mongo_uri,
        settings.database_name,
        timeout_seconds=settings.storage_timeout_seconds,
    )
    try:
        await gateway.ping()
        logger.info("Connected to MongoDB database %s", settings.database_name)
    except StorageError:
        logger.error("Failed to connect to MongoDB at startup")
    return gateway


def get_gateway(request: Request) -> Gateway:
    """FastAPI dependency returning the gateway held by the application."""
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise StorageError("Storage gateway not initialized")
    return gateway


async def storage_call(
    operation: str, awaitable: Awaitable[T], timeout: Optional[float] = None
) -> T:
    """Await a gateway call, bounded by ``timeout`` seconds.

    The bound defaults to STORAGE_TIMEOUT_SECONDS.

    Timeouts surface as StorageError. Failures are counted per operation.
    """
    if timeout is None:
        timeout = _settings.storage_timeout_seconds
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError as exc:
        storage_errors_total.inc(operation=operation)
        logger.error("Storage call %s timed out after %.1fs", operation, timeout)
        raise StorageError(f"{operation} timed out") from exc
    except StorageError:
        storage_errors_total.inc(operation=operation)
        raise
