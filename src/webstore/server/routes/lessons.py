"""Lesson endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Request

from webstore.exceptions import InvalidIdError, NotFoundError, StorageError, ValidationError
from webstore.server.db import get_gateway, storage_call
from webstore.server.metrics import lessons_created_total
from webstore.server.models import (
    InventoryUpdateRequest,
    LessonCreateRequest,
    LessonResponse,
    MessageResponse,
    parse_body,
    read_json,
)
from webstore.store.base import LESSONS, Gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lessons", tags=["lessons"])


@router.get("", response_model=List[LessonResponse])
async def list_lessons(gateway: Gateway = Depends(get_gateway)) -> List[LessonResponse]:
    try:
        docs = await storage_call("list_lessons", gateway.list(LESSONS))
    except StorageError as exc:
        raise StorageError("Error fetching lessons") from exc
    return [LessonResponse.model_validate(doc) for doc in docs]


@router.post("", response_model=LessonResponse, status_code=201)
async def create_lesson(
    request: Request,
    gateway: Gateway = Depends(get_gateway),
) -> LessonResponse:
    """Create a lesson.

    Zero is a valid price, inventory or rating; absent, null and empty
    string fields are rejected as missing.
    """
    body = parse_body(
        LessonCreateRequest,
        await read_json(request),
        missing="Missing required fields",
        invalid="Invalid field values",
        plain=True,
    )
    try:
        stored = await storage_call(
            "insert_lesson", gateway.insert(LESSONS, body.model_dump(by_alias=True))
        )
    except StorageError as exc:
        raise StorageError("Failed to add lesson") from exc

    lessons_created_total.inc()
    logger.info("Lesson %s created", stored["_id"], extra={"lesson_id": stored["_id"]})
    return LessonResponse.model_validate(stored)


@router.get("/{lesson_id}", response_model=LessonResponse)
async def get_lesson(
    lesson_id: str,
    gateway: Gateway = Depends(get_gateway),
) -> LessonResponse:
    try:
        doc = await storage_call("get_lesson", gateway.get_by_id(LESSONS, lesson_id))
    except InvalidIdError as exc:
        raise ValidationError("Invalid lesson id") from exc
    except StorageError as exc:
        raise StorageError("Error fetching lesson") from exc

    if doc is None:
        raise NotFoundError("Lesson not found")
    return LessonResponse.model_validate(doc)


@router.put("/{lesson_id}", response_model=MessageResponse)
async def update_lesson_inventory(
    lesson_id: str,
    request: Request,
    gateway: Gateway = Depends(get_gateway),
) -> MessageResponse:
    """Set a lesson's availableInventory. The value replaces, it is not a delta."""
    body = parse_body(
        InventoryUpdateRequest,
        await read_json(request),
        missing="Missing availableInventory",
        invalid="Invalid availableInventory",
    )
    try:
        matched = await storage_call(
            "update_lesson",
            gateway.update_by_id(
                LESSONS, lesson_id, {"availableInventory": body.available_inventory}
            ),
        )
    except InvalidIdError as exc:
        raise ValidationError("Invalid lesson id") from exc
    except StorageError as exc:
        raise StorageError("Error updating lesson") from exc

    if matched == 0:
        raise NotFoundError("Lesson not found")
    logger.info(
        "Lesson %s inventory set to %d",
        lesson_id,
        body.available_inventory,
        extra={"lesson_id": lesson_id},
    )
    return MessageResponse(message="Lesson updated successfully")
