"""Cycle prediction endpoint."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from src.analytics.cycle_predictor import CyclePredictor
from src.analytics.records import InvalidRecordError
from src.dependencies import CurrentUser, EngineConfig
from src.models.analytics import PredictionResponse
from src.services import records

router = APIRouter(prefix="/predictions", tags=["predictions"])
logger = logging.getLogger("ovulink.routers.predictions")


@router.get("/ovulation", response_model=PredictionResponse)
async def predict_ovulation(user: CurrentUser, config: EngineConfig) -> Any:
    """Predict next period, ovulation and fertile window from recent cycles."""
    predictor = CyclePredictor(config)
    cycles = await records.load_recent_cycles(user.user_id, predictor.window)
    try:
        return predictor.report(cycles)
    except InvalidRecordError as exc:
        logger.error("Bad cycle rows for %s: %s", user.user_id, exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc
