"""Shared-key authentication for Cadence admin endpoints.

The admin key is read from `CADENCE_ADMIN_API_KEY`. When it is unset the
check is skipped (dev mode).
"""

from __future__ import annotations

import hmac
import os
from typing import Annotated

from fastapi import Depends, HTTPException, Request


def _get_admin_key() -> str | None:
    return os.environ.get("CADENCE_ADMIN_API_KEY")


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extract token from an `Authorization: Bearer <token>` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return None


async def require_admin_key(request: Request) -> None:
    """FastAPI dependency that validates the admin API key."""
    admin_key = _get_admin_key()
    if not admin_key:
        return

    token = _extract_bearer_token(request.headers.get("authorization")) or ""
    if not hmac.compare_digest(token, admin_key):
        raise HTTPException(status_code=401, detail="Invalid admin API key")


AdminAPIKey = Annotated[None, Depends(require_admin_key)]
