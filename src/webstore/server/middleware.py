"""CORS, request logging and error handling middleware for the webstore server."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

from webstore.exceptions import WebstoreError

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("webstore.server.access")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,HEAD,OPTIONS,POST,PUT",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Requested-With",
}

# Max request body size: 1MB
MAX_BODY_SIZE = 1_048_576


def apply_cors_headers(response: Response) -> Response:
    for name, value in CORS_HEADERS.items():
        response.headers[name] = value
    return response


def _route_path(request: Request) -> str:
    """Route template (``/lessons/{lesson_id}``) when matched, else the raw path."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


# ── Middleware ─────────────────────────────────────────────────────


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Add a request ID, log every request/response pair, collect HTTP metrics.

    Exceptions no handler claimed are logged and answered with a 500 here
    so that they are still logged and carry CORS headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        request.state.request_id = request_id

        start = time.monotonic()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled exception: %s", exc)
            response = apply_cors_headers(
                JSONResponse(status_code=500, content={"error": "Internal server error"})
            )
        duration = time.monotonic() - start

        response.headers["X-Request-Id"] = request_id

        path = _route_path(request)
        if path not in ("/metrics", "/health"):
            from webstore.server.config import settings as _s
            from webstore.server.metrics import http_request_duration, http_requests_total
            if _s.metrics_enabled:
                http_requests_total.inc(method=request.method, path=path, status=str(response.status_code))
                http_request_duration.observe(duration, method=request.method, path=path)

        access_logger.info(
            "%s %s -> %d",
            request.method,
            request.url.path,
            response.status_code,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "latency_ms": round(duration * 1000, 2),
            },
        )

        return response


class CorsHeadersMiddleware(BaseHTTPMiddleware):
    """Set the CORS headers on every response and answer preflights directly.

    Unlike starlette's CORSMiddleware the headers are sent whether or not
    the request carries an Origin header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.method == "OPTIONS":
            return apply_cors_headers(Response(status_code=204))
        response = await call_next(request)
        return apply_cors_headers(response)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests with bodies exceeding MAX_BODY_SIZE."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length is not None:
            try:
                if int(content_length) > MAX_BODY_SIZE:
                    return JSONResponse(
                        status_code=413,
                        content={"error": f"Request body exceeds {MAX_BODY_SIZE} bytes"},
                    )
            except ValueError:
                pass

        return await call_next(request)


# ── Error Handlers ─────────────────────────────────────────────────


def error_response(exc: WebstoreError) -> Response:
    if exc.plain:
        return PlainTextResponse(exc.message, status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def install_error_handlers(app: FastAPI) -> None:
    """Install exception handlers mapping errors to HTTP responses."""

    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    @app.exception_handler(WebstoreError)
    async def webstore_error_handler(request: Request, exc: WebstoreError) -> Response:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = str(exc.detail) if exc.detail else f"HTTP {exc.status_code}"
        return JSONResponse(status_code=exc.status_code, content={"error": message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = []
        for error in exc.errors():
            loc = " -> ".join(str(l) for l in error["loc"])
            messages.append(f"{loc}: {error['msg']}")
        return JSONResponse(status_code=400, content={"error": "; ".join(messages)})


def install_middleware(app: FastAPI) -> None:
    """Install all middleware on the app."""
    # Order matters: outermost runs first (added last)
    app.add_middleware(BodySizeLimitMiddleware)
    app.add_middleware(CorsHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)
    install_error_handlers(app)
