"""Order placement endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from webstore.exceptions import InvalidIdError, StorageError, ValidationError
from webstore.server.db import get_gateway, storage_call
from webstore.server.metrics import orders_placed_total, orders_rejected_total
from webstore.server.models import OrderCreateRequest, parse_body, read_json
from webstore.store.base import LESSONS, ORDERS, Gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

INVENTORY_FIELD = "availableInventory"


def _order_gateway(request: Request) -> Gateway:
    """Gateway dependency answering in this route's plain-text contract."""
    try:
        return get_gateway(request)
    except StorageError as exc:
        raise StorageError("Failed to place order", plain=True) from exc


async def _release_inventory(gateway: Gateway, order: OrderCreateRequest) -> None:
    """Give back inventory reserved for an order that was not stored."""
    try:
        await storage_call(
            "release_inventory",
            gateway.increment_field(LESSONS, order.lesson_id, INVENTORY_FIELD, order.quantity),
        )
    except StorageError:
        logger.error(
            "Could not restore %d units of inventory to lesson %s",
            order.quantity,
            order.lesson_id,
            extra={"lesson_id": order.lesson_id, "quantity": order.quantity},
        )


@router.post("", response_class=PlainTextResponse, status_code=201)
async def place_order(
    request: Request,
    gateway: Gateway = Depends(_order_gateway),
) -> str:
    """Place an order against a lesson's inventory.

    The inventory is reserved first with a single conditional decrement
    (``availableInventory >= quantity``), so concurrent orders can never
    drive it negative. The order is stored only after the reservation
    succeeds; if storing it fails the reservation is released.
    """
    body = parse_body(
        OrderCreateRequest,
        await read_json(request),
        missing="Missing required fields",
        invalid="Invalid field values",
        plain=True,
    )

    try:
        reserved = await storage_call(
            "reserve_inventory",
            gateway.decrement_if_available(
                LESSONS, body.lesson_id, INVENTORY_FIELD, body.quantity
            ),
        )
    except InvalidIdError:
        # a lesson that cannot exist has no inventory
        reserved = 0
    except StorageError as exc:
        raise StorageError("Failed to place order", plain=True) from exc

    if not reserved:
        orders_rejected_total.inc(reason="inventory")
        logger.info(
            "Order rejected: not enough inventory",
            extra={"lesson_id": body.lesson_id, "quantity": body.quantity},
        )
        raise ValidationError("Not enough inventory", plain=True)

    try:
        order = await storage_call(
            "insert_order", gateway.insert(ORDERS, body.model_dump(by_alias=True))
        )
    except StorageError as exc:
        await _release_inventory(gateway, body)
        raise StorageError("Failed to place order", plain=True) from exc

    orders_placed_total.inc()
    logger.info(
        "Order %s placed: %d x lesson %s",
        order["_id"],
        body.quantity,
        body.lesson_id,
        extra={"order_id": order["_id"], "lesson_id": body.lesson_id, "quantity": body.quantity},
    )
    return "Order placed successfully"
