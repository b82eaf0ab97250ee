"""Common FastAPI middleware for Cadence services."""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from .logging import get_logger

log = get_logger(__name__)


def add_common_middleware(app: FastAPI, allowed_origins: list[str] | None = None) -> None:
    """Add CORS plus request-id binding and access logging to a FastAPI app."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next) -> Response:
        """Propagate x-request-id into the structlog context for the request."""
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.monotonic()
        try:
            response: Response = await call_next(request)
            response.headers["x-request-id"] = request_id
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=int((time.monotonic() - start) * 1000),
            )
            return response
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
