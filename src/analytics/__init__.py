"""Ovulink Fertility & Health Analytics Engine.

Turns logged observations (cycles, temperatures, semen-analysis panels,
content interactions, appointments) into predictions, scores, trends and a
merged event timeline.  Every component is a pure function of already-loaded
records plus a reference date; nothing here performs I/O.

Core modules:
    records          — Canonical record types and input validation
    config_loader    — Load/validate/hot-reload analytics_config.yaml
    trend            — First-vs-last trend analysis
    cycle_predictor  — Next period, ovulation and fertile window
    health_score     — Sperm health score, category and trends
    content_affinity — Personalized content ranking with recency backfill
    event_aggregator — Upcoming-events timeline
    usage_tracker    — Cost budget for an external prediction service
"""

from src.analytics.config_loader import AnalyticsConfig, get_analytics_config
from src.analytics.content_affinity import ContentAffinityScorer
from src.analytics.cycle_predictor import CyclePrediction, CyclePredictor, PredictionReport
from src.analytics.event_aggregator import EventAggregator, UpcomingEvents, UserNotFoundError
from src.analytics.health_score import HealthScoreEngine, SpermHealthScore
from src.analytics.records import InvalidRecordError
from src.analytics.trend import TrendDirection, TrendPoint, TrendResult, calculate_trend
from src.analytics.usage_tracker import CostLimitExceededError, UsageTracker

__all__ = [
    "AnalyticsConfig",
    "get_analytics_config",
    "calculate_trend",
    "TrendDirection",
    "TrendPoint",
    "TrendResult",
    "CyclePredictor",
    "CyclePrediction",
    "PredictionReport",
    "HealthScoreEngine",
    "SpermHealthScore",
    "ContentAffinityScorer",
    "EventAggregator",
    "UpcomingEvents",
    "UserNotFoundError",
    "InvalidRecordError",
    "UsageTracker",
    "CostLimitExceededError",
]
