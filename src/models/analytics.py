"""Response schemas for the analytics endpoints."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import Any

from pydantic import Field

from src.analytics.event_aggregator import EventType
from src.analytics.health_score import ScoreCategory
from src.analytics.trend import TrendDirection
from src.models.base import OvulinkBase


# ---------- Trends ----------

class TrendRead(OvulinkBase):
    direction: TrendDirection
    percentage_change: int
    message: str


# ---------- Cycle prediction ----------

class CyclePredictionRead(OvulinkBase):
    average_cycle_length: int
    cycle_lengths: list[int]
    last_period_start: dt.date
    next_period_date: dt.date
    ovulation_date: dt.date
    fertile_window_start: dt.date
    fertile_window_end: dt.date


class PredictionResponse(OvulinkBase):
    message: str
    prediction: CyclePredictionRead | None = None


# ---------- Sperm health ----------

class ParameterScoreRead(OvulinkBase):
    value: float | None = None
    score: int | None = None
    min_reference: float
    optimal_reference: float


class SpermHealthScoreRead(OvulinkBase):
    overall_score: int = Field(ge=0, le=100)
    category: ScoreCategory
    analysis: str
    per_parameter_scores: dict[str, ParameterScoreRead]
    recommendations: list[str]


class SpermHealthPanelRead(OvulinkBase):
    panel_id: uuid.UUID | None = None
    date: dt.date
    count: float | None = None
    motility: float | None = None
    morphology: float | None = None
    volume: float | None = None
    notes: str | None = None


class LatestPanelResponse(OvulinkBase):
    message: str
    latest_record: SpermHealthPanelRead | None = None
    score: SpermHealthScoreRead | None = None


class SpermTrendsRead(OvulinkBase):
    count: TrendRead
    motility: TrendRead
    morphology: TrendRead
    volume: TrendRead
    overall_score: TrendRead


class PanelScorePointRead(OvulinkBase):
    date: dt.date
    score: int


class SpermTrendResponse(OvulinkBase):
    message: str
    trends: SpermTrendsRead | None = None
    records: list[PanelScorePointRead]


# ---------- Content ----------

class ContentItemRead(OvulinkBase):
    id: uuid.UUID
    title: str
    category: str
    tags: list[str]
    author: str | None = None
    published_at: dt.datetime


# ---------- Calendar ----------

class CalendarEventRead(OvulinkBase):
    type: EventType
    title: str
    date: dt.date
    time: dt.time | None = None
    data: dict[str, Any]


class DateRange(OvulinkBase):
    start: dt.date
    end: dt.date


class UpcomingEventsResponse(OvulinkBase):
    events: list[CalendarEventRead]
    date_range: DateRange
