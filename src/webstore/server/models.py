"""Pydantic request/response models for the webstore server.

Wire names are camelCase (``availableInventory``); attributes are
snake_case with aliases.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from webstore.exceptions import ValidationError

M = TypeVar("M", bound=BaseModel)


# Largest integer BSON can store
MAX_INT64 = 2**63 - 1


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class _RequestModel(_WireModel):
    """Incoming bodies: no NaN or Infinity, no string-to-number coercion."""

    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False, strict=True)


# ── Lessons ────────────────────────────────────────────────────────


class LessonCreateRequest(_RequestModel):
    """Request body for POST /lessons."""

    name: str
    image: str
    price: float = Field(..., ge=0)
    available_inventory: int = Field(..., alias="availableInventory", ge=0, le=MAX_INT64)
    location: str
    rating: float


class InventoryUpdateRequest(_RequestModel):
    """Request body for PUT /lessons/{id}. Sets, does not add."""

    available_inventory: int = Field(..., alias="availableInventory", ge=0, le=MAX_INT64)


class LessonResponse(_WireModel):
    """A stored lesson.

    Fields other than ``_id`` are optional so records written outside this
    service still list.
    """

    id: str = Field(..., alias="_id")
    name: Optional[str] = None
    image: Optional[str] = None
    price: Optional[float] = None
    available_inventory: Optional[int] = Field(default=None, alias="availableInventory")
    location: Optional[str] = None
    rating: Optional[float] = None


class MessageResponse(BaseModel):
    message: str


# ── Orders ─────────────────────────────────────────────────────────


class OrderCreateRequest(_RequestModel):
    """Request body for POST /orders."""

    lesson_id: str = Field(..., alias="lessonId")
    quantity: int = Field(..., gt=0, le=MAX_INT64)
    customer_name: str = Field(..., alias="customerName")
    customer_email: str = Field(..., alias="customerEmail")


# ── Parsing ────────────────────────────────────────────────────────


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_body(
    model: Type[M],
    data: Any,
    *,
    missing: str,
    invalid: str,
    plain: bool = False,
) -> M:
    """Validate a decoded JSON body against ``model``.

    A required field that is absent, null or an empty string counts as
    missing and raises ``ValidationError(missing)``. Zero and False are
    present. Anything that fails model validation afterwards raises
    ``ValidationError(invalid)``.
    """
    if not isinstance(data, dict):
        raise ValidationError(missing, plain=plain)

    for name, field in model.model_fields.items():
        if field.is_required() and _is_blank(data.get(field.alias or name)):
            raise ValidationError(missing, plain=plain)

    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(invalid, plain=plain) from exc


async def read_json(request: Request) -> Any:
    """Decode the request body. An empty body decodes to an empty dict."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ValidationError("Malformed JSON body") from exc
