"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from src.analytics.config_loader import AnalyticsConfig, get_analytics_config
from src.config import Settings, get_settings


@dataclass(frozen=True)
class AuthContext:
    """Authenticated user context.

    The authenticating gateway in front of this service resolves the session
    and sets ``request.state.auth`` before routes run.
    """

    user_id: uuid.UUID
    email: str | None = None
    session_id: str | None = None


async def get_current_user(request: Request) -> AuthContext:
    """Extract the authenticated user from the request state."""
    auth: AuthContext | None = getattr(request.state, "auth", None)
    if auth is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return auth


# Annotated shortcuts for route signatures
CurrentUser = Annotated[AuthContext, Depends(get_current_user)]
AppSettings = Annotated[Settings, Depends(get_settings)]
EngineConfig = Annotated[AnalyticsConfig, Depends(get_analytics_config)]
