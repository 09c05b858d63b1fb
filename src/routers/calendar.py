"""Upcoming-events timeline endpoint."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from src.analytics.event_aggregator import EventAggregator, UserNotFoundError
from src.analytics.records import InvalidRecordError
from src.dependencies import AppSettings, CurrentUser, EngineConfig
from src.models.analytics import UpcomingEventsResponse
from src.models.base import ErrorDetail
from src.services import records

router = APIRouter(prefix="/calendar", tags=["calendar"])
logger = logging.getLogger("ovulink.routers.calendar")


@router.get(
    "/upcoming",
    response_model=UpcomingEventsResponse,
    responses={404: {"model": ErrorDetail}, 422: {"model": ErrorDetail}},
)
async def upcoming_events(
    user: CurrentUser,
    config: EngineConfig,
    settings: AppSettings,
    days: int | None = Query(default=None, ge=0),
) -> Any:
    """Appointments, partner appointments and cycle predictions for the next N days."""
    days = config.calendar.lookahead_days if days is None else days
    if days > settings.max_lookahead_days:
        raise HTTPException(
            status_code=400,
            detail=f"days must be <= {settings.max_lookahead_days}",
        )

    today = date.today()
    end = today + timedelta(days=days)
    uid = user.user_id

    account = await records.load_user(uid)
    appointments, cycles, links, partner_appointments = [], [], [], []
    if account is not None:
        appointments = await records.load_appointments([uid], today, end)
        cycles = await records.load_recent_cycles(uid, config.cycle.rolling_window_cycles)
        links = await records.load_partner_links(uid)
        partner_ids = [link.partner_id for link in links if link.is_accepted]
        partner_appointments = await records.load_appointments(
            partner_ids, today, end, shared_only=True
        )

    try:
        upcoming = EventAggregator(config).upcoming(
            user=account,
            appointments=appointments,
            cycles=cycles,
            partner_links=links,
            partner_appointments=partner_appointments,
            today=today,
            days=days,
        )
    except UserNotFoundError as exc:
        raise HTTPException(status_code=404, detail="User not found") from exc
    except InvalidRecordError as exc:
        logger.error("Bad cycle rows for %s: %s", uid, exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return {
        "events": upcoming.events,
        "date_range": {"start": upcoming.start, "end": upcoming.end},
    }
