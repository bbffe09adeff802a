"""FastAPI dependency injection for the engine, relay host, and admin auth."""

from __future__ import annotations

import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from marquee.config import Settings
from marquee.core.engine import AdvertEngine
from marquee.core.relay import RelayHost


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_engine(request: Request) -> AdvertEngine:
    """Get the advert engine from app state."""
    return request.app.state.engine


def get_relay(request: Request) -> RelayHost:
    """Get the relay host from app state."""
    return request.app.state.relay


async def require_admin(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Check the bearer token when one is configured. Open in dev when unset."""
    expected = settings.marquee_admin_token
    if not expected:
        return
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not secrets.compare_digest(token, expected):
        raise HTTPException(status_code=401, detail="Invalid or missing admin token")


EngineDep = Annotated[AdvertEngine, Depends(get_engine)]
RelayDep = Annotated[RelayHost, Depends(get_relay)]
AdminDep = Annotated[None, Depends(require_admin)]
