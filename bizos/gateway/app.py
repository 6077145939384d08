"""FastAPI application factory.

- System routes: /healthz, /metrics (Prometheus exposition)
- API routers (/api/v1/*) are mounted by the composition root
- Every error leaves as {error, message, ...}: BizosError subclasses
  carry their own status, request-body validation and Starlette's
  404/405 are reshaped to match
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from bizos.shared.errors import BizosError

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

_HTTP_CODES = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _origins_from_env() -> list[str]:
    return [o.strip() for o in os.environ.get("CORS_ORIGINS", "").split(",") if o.strip()]


def create_app(
    *,
    cors_origins: list[str] | None = None,
    metrics_registry: CollectorRegistry | None = None,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[None]] | None = None,
) -> FastAPI:
    """Create the BizOS application shell.

    Args:
        cors_origins: Origins allowed to call the API from a browser UI.
            Falls back to the comma-separated CORS_ORIGINS env var.
        metrics_registry: Registry exposed on /metrics (default: global).
        lifespan: Startup/shutdown hook, e.g. closing the Redis client.

    Returns:
        Application with system routes and error handling, no API routers.
    """
    origins = cors_origins or _origins_from_env()
    registry = metrics_registry or REGISTRY

    app = FastAPI(
        title="BizOS API",
        description="Intent routing and action execution for a business assistant",
        version="0.1.0",
        lifespan=lifespan,
    )

    if origins:
        # The chat UI reads state and sends PATCH edits; no auth headers.
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET", "POST", "PATCH"],
            allow_headers=["Content-Type"],
        )

    # -- Error handlers --

    @app.exception_handler(BizosError)
    async def _bizos_error(_: Request, exc: BizosError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def _request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        loc = [str(part) for part in first.get("loc", ()) if part != "body"]
        return JSONResponse(
            status_code=422,
            content={
                "error": "VALIDATION",
                "message": first.get("msg", "Invalid request"),
                "field": ".".join(loc),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": _HTTP_CODES.get(exc.status_code, "HTTP_ERROR"),
                "message": exc.detail or f"HTTP {exc.status_code}",
            },
        )

    # -- System routes --

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics", tags=["system"], include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    return app
