# (c) Copyright Datacraft, 2026
import hmac

from fastapi import Request, HTTPException, status
from fastapi.security.utils import get_authorization_scheme_param

from .config import Settings
from .pdp import PolicyDecisionPoint


def from_header(request: Request) -> str | None:
    authorization = request.headers.get("Authorization")
    scheme, token = get_authorization_scheme_param(authorization)

    if not authorization or scheme.lower() != "bearer":
        return None

    return token


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pdp(request: Request) -> PolicyDecisionPoint:
    return request.app.state.pdp


async def require_api_key(request: Request) -> None:
    """Reject requests that do not carry the configured bearer API key."""
    settings = get_app_settings(request)
    token = from_header(request)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not settings.api_key or not hmac.compare_digest(token, settings.api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
