"""Sperm health score and trend endpoints."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from src.analytics.health_score import HealthScoreEngine, months_before
from src.analytics.records import InvalidRecordError
from src.dependencies import AppSettings, CurrentUser, EngineConfig
from src.models.analytics import (
    LatestPanelResponse,
    SpermHealthScoreRead,
    SpermTrendResponse,
)
from src.models.base import ErrorDetail
from src.services import records

router = APIRouter(prefix="/health/sperm", tags=["male health"])
logger = logging.getLogger("ovulink.routers.sperm_health")


@router.get(
    "/score",
    response_model=SpermHealthScoreRead,
    responses={404: {"model": ErrorDetail}},
)
async def score_panel(
    user: CurrentUser,
    config: EngineConfig,
    panel_id: uuid.UUID | None = Query(default=None),
) -> Any:
    """Score one panel; the most recent one when ``panel_id`` is omitted."""
    if panel_id is not None:
        panel = await records.load_sperm_panel(user.user_id, panel_id)
    else:
        latest = await records.load_sperm_panels(user.user_id, limit=1)
        panel = latest[0] if latest else None
    if panel is None:
        raise HTTPException(status_code=404, detail="Sperm health record not found")
    return HealthScoreEngine(config).score(panel)


@router.get("/latest", response_model=LatestPanelResponse)
async def latest_panel(user: CurrentUser, config: EngineConfig) -> Any:
    panels = await records.load_sperm_panels(user.user_id, limit=1)
    return HealthScoreEngine(config).latest(panels)


@router.get("/trends", response_model=SpermTrendResponse)
async def panel_trends(
    user: CurrentUser,
    config: EngineConfig,
    settings: AppSettings,
    months: int | None = Query(default=None, ge=1),
) -> Any:
    """Trend every parameter and the composite score over the last N months."""
    months = months or config.sperm_health.trend_months
    if months > settings.max_trend_months:
        raise HTTPException(
            status_code=400,
            detail=f"months must be <= {settings.max_trend_months}",
        )
    today = date.today()
    panels = await records.load_sperm_panels(
        user.user_id,
        since=months_before(today, months),
        limit=settings.sperm_trend_record_limit,
    )
    try:
        return HealthScoreEngine(config).trends(panels, months=months, as_of=today)
    except InvalidRecordError as exc:
        logger.error("Bad sperm health rows for %s: %s", user.user_id, exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc
