"""FastAPI application for the webstore API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from webstore.exceptions import StorageError
from webstore.server.config import settings
from webstore.server.db import open_gateway, storage_call
from webstore.server.logging_config import setup_logging
from webstore.server.middleware import install_middleware
from webstore.server.routes.lessons import router as lessons_router
from webstore.server.routes.orders import router as orders_router

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the storage gateway for the lifetime of the process."""
    gateway = await open_gateway(settings)
    app.state.gateway = gateway
    logger.info("webstore API started")
    yield
    await gateway.close()
    app.state.gateway = None


app = FastAPI(
    title="Webstore",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(lessons_router)
app.include_router(orders_router)

install_middleware(app)


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "API is running. Use /lessons or /orders."


# ── Health ─────────────────────────────────────────────────────────


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/ready")
async def ready(request: Request) -> JSONResponse:
    """Readiness probe: pings the storage backend."""
    checks: dict = {"storage": False}
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is not None:
        try:
            await storage_call("ping", gateway.ping())
            checks["storage"] = True
        except StorageError:
            logger.warning("Readiness check failed: storage unreachable")

    all_ok = all(checks.values())
    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={"status": "ok" if all_ok else "not_ready", "checks": checks},
    )


# ── Metrics ────────────────────────────────────────────────────────


@app.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    if not settings.metrics_enabled:
        return JSONResponse(status_code=404, content={"error": "metrics_disabled"})
    from webstore.server.metrics import collect_all

    return Response(content=collect_all(), media_type="text/plain; version=0.0.4; charset=utf-8")
