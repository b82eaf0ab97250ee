"""Health endpoint factory for Cadence FastAPI services."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

CheckFn = Callable[[], bool | Coroutine[Any, Any, bool]]


async def _run_check(check: CheckFn) -> bool:
    try:
        outcome = check()
        if asyncio.iscoroutine(outcome):
            outcome = await outcome
        return bool(outcome)
    except Exception:
        return False


def create_health_router(
    service_name: str,
    version: str,
    checks: dict[str, CheckFn] | None = None,
) -> APIRouter:
    """Create a `/health` router that reports uptime and component checks.

    Each check is a sync or async callable returning True when the component
    is usable. Any failing (or raising) check turns the response into a 503
    with `status: "degraded"`.
    """
    router = APIRouter()
    start_time = time.time()
    checks = checks or {}

    @router.get("/health")
    async def health() -> JSONResponse:
        names = list(checks)
        outcomes = await asyncio.gather(*(_run_check(checks[n]) for n in names))
        components = dict(zip(names, outcomes))
        healthy = all(outcomes)
        body = {
            "status": "ok" if healthy else "degraded",
            "service": service_name,
            "version": version,
            "uptime_seconds": round(time.time() - start_time, 1),
            "components": components,
        }
        return JSONResponse(status_code=200 if healthy else 503, content=body)

    return router
