from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from .settings import Settings, get_settings

# The key is sent as the raw value of the Authorization header.
_api_key_header = APIKeyHeader(name="Authorization", auto_error=False)

_CHALLENGE = {"WWW-Authenticate": "ApiKey"}


# PUBLIC_INTERFACE
async def require_api_key(
    api_key: Optional[str] = Security(_api_key_header),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Enforce API-key authentication only when ENABLE_API_KEY_AUTH is enabled in settings.

    Behavior:
    - If settings.enable_api_key_auth is False (default): does nothing.
    - If True: compares the Authorization header with API_KEY.
      If the key is missing or wrong, raises 401 with WWW-Authenticate: ApiKey.

    Usage:
        router = APIRouter(dependencies=[Depends(require_api_key)])
    """
    if not settings.enable_api_key_auth:
        return None

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
            headers=_CHALLENGE,
        )

    if not settings.api_key:
        # Misconfiguration: auth enabled but no key provided to the server
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Server authentication not configured",
            headers=_CHALLENGE,
        )

    if not secrets.compare_digest(api_key, settings.api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers=_CHALLENGE,
        )
    return None
