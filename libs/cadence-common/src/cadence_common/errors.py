"""Standard error envelope for Cadence services."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ErrorDetail(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    code: str
    message: str
    coming_from: str | None = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


def error_response(
    code: str,
    message: str,
    status_code: int = 500,
    coming_from: str | None = None,
) -> JSONResponse:
    """Create a standardized error JSON response."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=code, message=message, coming_from=coming_from)
        ).model_dump(by_alias=True),
    )


def make_error_handler(
    code: str, status_code: int
) -> Callable[[Request, Exception], Awaitable[JSONResponse]]:
    """Build an exception handler that renders `exc` in the standard envelope.

    Exceptions exposing a `coming_from` attribute have it copied into the
    envelope so callers can see which operation failed.
    """

    async def handler(request: Request, exc: Exception) -> JSONResponse:
        return error_response(
            code=code,
            message=str(exc),
            status_code=status_code,
            coming_from=getattr(exc, "coming_from", None),
        )

    return handler
