"""Tests for log formatting, setup and the access log."""

from __future__ import annotations

import io
import json
import logging

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from webstore.server.app import app
from webstore.server.config import Settings
from webstore.server.logging_config import JsonFormatter, PrettyFormatter, setup_logging
from webstore.store.base import LESSONS
from webstore.store.memory import MemoryGateway


def _record(msg: str = "hello %s", args: tuple = ("world",), **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="webstore.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_logging():
    yield
    setup_logging()


@pytest_asyncio.fixture
async def client():
    app.state.gateway = MemoryGateway()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.state.gateway = None


# ── Formatters ─────────────────────────────────────────────────────


def test_json_formatter_order_context():
    record = _record(
        "Order %s placed", ("o1",),
        request_id="abc-123", order_id="o1", lesson_id="l1", quantity=3,
    )
    data = json.loads(JsonFormatter().format(record))

    assert data["level"] == "INFO"
    assert data["logger"] == "webstore.test"
    assert data["message"] == "Order o1 placed"
    assert data["request_id"] == "abc-123"
    assert data["order_id"] == "o1"
    assert data["lesson_id"] == "l1"
    assert data["quantity"] == 3
    assert "timestamp" in data


def test_json_formatter_no_context():
    data = json.loads(JsonFormatter().format(_record("warn", ())))
    assert data["message"] == "warn"
    assert "request_id" not in data
    assert "lesson_id" not in data


def test_pretty_formatter_appends_context():
    line = PrettyFormatter().format(_record("Lesson %s created", ("l1",), lesson_id="l1"))
    assert "INFO [webstore.test] Lesson l1 created lesson_id=l1" in line


def test_pretty_formatter_without_context():
    line = PrettyFormatter().format(_record())
    assert line.endswith("hello world")


# ── Setup ──────────────────────────────────────────────────────────


def test_setup_logging_json(restore_logging):
    stream = io.StringIO()
    setup_logging(Settings(log_format="json", log_level="DEBUG"), stream=stream)

    logging.getLogger("webstore.test").debug("lesson %s", "l9", extra={"lesson_id": "l9"})

    data = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert data["level"] == "DEBUG"
    assert data["lesson_id"] == "l9"
    assert logging.getLogger().level == logging.DEBUG


def test_setup_logging_replaces_own_handler(restore_logging):
    root = logging.getLogger()
    foreign = logging.NullHandler()
    root.addHandler(foreign)
    try:
        first = setup_logging(Settings(), stream=io.StringIO())
        second = setup_logging(Settings(log_format="json"), stream=io.StringIO())

        assert second in root.handlers
        assert first not in root.handlers
        assert foreign in root.handlers
        assert isinstance(second.formatter, JsonFormatter)
    finally:
        root.removeHandler(foreign)


def test_setup_logging_quiets_driver(restore_logging):
    setup_logging(Settings(log_level="DEBUG"), stream=io.StringIO())
    assert logging.getLogger("pymongo").level == logging.WARNING


# ── Request logging ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_access_log_records_request(client, caplog):
    """Each request/response pair is logged with method, path and status."""
    caplog.set_level(logging.INFO, logger="webstore.server.access")
    await client.get("/lessons/not-an-id")

    records = [r for r in caplog.records if r.name == "webstore.server.access"]
    assert records
    record = records[-1]
    assert record.getMessage() == "GET /lessons/not-an-id -> 400"
    assert record.method == "GET"
    assert record.path == "/lessons/not-an-id"
    assert record.status == 400
    assert record.latency_ms >= 0


@pytest.mark.asyncio
async def test_order_log_carries_order_context(client, caplog):
    caplog.set_level(logging.INFO, logger="webstore.server.routes.orders")
    lesson = await app.state.gateway.insert(
        LESSONS,
        {"name": "Guitar", "image": "g.png", "price": 20, "availableInventory": 5,
         "location": "Online", "rating": 4},
    )
    order = {"lessonId": lesson["_id"], "quantity": 2, "customerName": "A",
             "customerEmail": "a@x.com"}
    assert (await client.post("/orders", json=order)).status_code == 201

    records = [r for r in caplog.records if r.name == "webstore.server.routes.orders"]
    placed = records[-1]
    assert placed.lesson_id == lesson["_id"]
    assert placed.quantity == 2
    assert placed.order_id
