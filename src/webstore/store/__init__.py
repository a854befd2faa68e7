"""Storage gateways for the webstore service."""

from webstore.store.base import LESSONS, ORDERS, Gateway
from webstore.store.memory import MemoryGateway
from webstore.store.mongo import MongoGateway

__all__ = ["Gateway", "MemoryGateway", "MongoGateway", "LESSONS", "ORDERS"]
