"""Middleware: optional bearer API key authentication."""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

if TYPE_CHECKING:
    from visionhelper.config import Settings

_bearer_scheme = HTTPBearer(auto_error=False)


def _key_matches(credentials: HTTPAuthorizationCredentials | None, expected: str) -> bool:
    if credentials is None:
        return False
    return secrets.compare_digest(credentials.credentials.encode(), expected.encode())


async def verify_api_key(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> None:
    """Reject requests without the configured bearer key.

    With VISIONHELPER_API_KEY unset every request passes; otherwise requests
    must send 'Authorization: Bearer <key>'.
    """
    settings: Settings = request.app.state.settings
    if settings.api_key is None or _key_matches(credentials, settings.api_key):
        return

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing API key",
        headers={"WWW-Authenticate": "Bearer"},
    )
