"""Sperm health score: normalize a semen-analysis panel to 0–100.

Each parameter present on the panel is scored against its reference range
(``{min, optimal}`` from analytics_config.yaml):

    x >= optimal        → 100
    min <= x < optimal  → 50 + (x - min) / (optimal - min) * 50
    0 < x < min         → x / min * 50
    x == 0 or missing   → excluded from the composite

The composite is the half-up rounded mean of the included parameter scores.
Scoring is total: every panel, including an empty one, yields a result.

The trend report runs the same scorer over every panel in a lookback window
and feeds each metric series into the trend calculator.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable

from src.analytics.config_loader import (
    SPERM_PARAMETERS,
    AnalyticsConfig,
    ReferenceRange,
    SpermHealthConfig,
    get_analytics_config,
)
from src.analytics.numeric import round_half_up
from src.analytics.records import SpermHealthPanel, ensure_unique_dates
from src.analytics.trend import TrendPoint, TrendResult, calculate_trend, series_from

logger = logging.getLogger("ovulink.analytics.health_score")


class ScoreCategory(str, Enum):
    excellent = "Excellent"
    good = "Good"
    fair = "Fair"
    poor = "Poor"
    unknown = "Unknown"


_CATEGORY_ANALYSIS: dict[ScoreCategory, str] = {
    ScoreCategory.excellent: (
        "Your sperm health parameters are excellent, indicating optimal fertility potential."
    ),
    ScoreCategory.good: (
        "Your sperm health parameters are good, indicating favorable fertility potential."
    ),
    ScoreCategory.fair: (
        "Your sperm health parameters are fair, indicating moderate fertility potential."
    ),
    ScoreCategory.poor: (
        "Your sperm health parameters are below optimal levels, "
        "which may affect fertility potential."
    ),
    ScoreCategory.unknown: "Not enough data to provide an accurate analysis.",
}

_RECOMMENDATIONS: dict[str, str] = {
    "count": (
        "Sperm count is below the recommended range. Consider lifestyle changes such as "
        "reducing alcohol consumption, quitting smoking, and maintaining a healthy weight."
    ),
    "motility": (
        "Sperm motility is below the recommended range. Regular exercise, a balanced diet "
        "rich in antioxidants, and reducing stress may help improve motility."
    ),
    "morphology": (
        "Sperm morphology is below the recommended range. Avoiding excessive heat exposure "
        "to the testicles, reducing alcohol intake, and increasing intake of fruits and "
        "vegetables may help improve morphology."
    ),
    "volume": (
        "Semen volume is below the recommended range. Staying well-hydrated, maintaining a "
        "balanced diet, and ensuring adequate zinc intake may help improve volume."
    ),
}

NOT_ENOUGH_TREND_DATA_MESSAGE = "Not enough data for trend analysis"
NO_RECORDS_MESSAGE = "No sperm health records found"


@dataclass
class ParameterScore:
    """Score detail for one semen parameter.

    Attributes:
        value:             Logged value, None if not measured.
        score:             Rounded 0–100 score, None if excluded (missing or zero).
        min_reference:     Lower reference limit.
        optimal_reference: Optimal target.
    """

    value: float | None
    score: int | None
    min_reference: float
    optimal_reference: float


@dataclass
class SpermHealthScore:
    """Composite score for one panel.

    Attributes:
        overall_score:        0–100 integer, 0 when nothing could be scored.
        category:             Excellent / Good / Fair / Poor / Unknown.
        analysis:             Fixed sentence explaining the category.
        per_parameter_scores: Detail per parameter, in canonical order.
        recommendations:      One advisory per parameter below its minimum.
    """

    overall_score: int
    category: ScoreCategory
    analysis: str
    per_parameter_scores: dict[str, ParameterScore] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class PanelScorePoint:
    date: date
    score: int


@dataclass
class SpermTrends:
    count: TrendResult
    motility: TrendResult
    morphology: TrendResult
    volume: TrendResult
    overall_score: TrendResult


@dataclass
class SpermTrendReport:
    """``{message, trends, records}`` for the trends screen.

    ``trends`` is None with fewer than two panels in the window.
    """

    message: str
    trends: SpermTrends | None = None
    records: list[PanelScorePoint] = field(default_factory=list)


@dataclass
class LatestPanelReport:
    message: str
    latest_record: SpermHealthPanel | None = None
    score: SpermHealthScore | None = None


# ---------------------------------------------------------------------------
# Pure scorers
# ---------------------------------------------------------------------------


def score_parameter(value: float | None, reference: ReferenceRange) -> float | None:
    """Map one parameter value onto 0–100 against its reference range.

    Returns:
        Unrounded score, or None when the value is missing or not positive
        (excluded from the composite rather than scored as 0).
    """
    if value is None or value <= 0:
        return None
    if value >= reference.optimal:
        return 100.0
    if value >= reference.min:
        return 50.0 + (value - reference.min) / (reference.optimal - reference.min) * 50.0
    return value / reference.min * 50.0


def categorize(overall_score: int, config: SpermHealthConfig) -> ScoreCategory:
    if overall_score >= config.excellent_threshold:
        return ScoreCategory.excellent
    if overall_score >= config.good_threshold:
        return ScoreCategory.good
    if overall_score >= config.fair_threshold:
        return ScoreCategory.fair
    if overall_score > 0:
        return ScoreCategory.poor
    return ScoreCategory.unknown


def months_before(anchor: date, months: int) -> date:
    """Same day-of-month ``months`` earlier, clamped to the month's last day."""
    month_index = anchor.year * 12 + (anchor.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class HealthScoreEngine:
    """Score semen-analysis panels and their trends.

    Usage::

        engine = HealthScoreEngine()
        result = engine.score(panel)
        print(result.overall_score, result.category.value)
    """

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config = config or get_analytics_config()

    @property
    def _sh_config(self) -> SpermHealthConfig:
        return self._config.sperm_health

    def score(self, panel: SpermHealthPanel) -> SpermHealthScore:
        """Compute the composite score, category and recommendations for a panel."""
        sh = self._sh_config
        details: dict[str, ParameterScore] = {}
        included: list[float] = []
        recommendations: list[str] = []

        for name in SPERM_PARAMETERS:
            reference = sh.range_for(name)
            value = getattr(panel, name)
            raw = score_parameter(value, reference)
            if raw is not None:
                included.append(raw)
            details[name] = ParameterScore(
                value=value,
                score=round_half_up(raw) if raw is not None else None,
                min_reference=reference.min,
                optimal_reference=reference.optimal,
            )
            if value is not None and value < reference.min:
                recommendations.append(_RECOMMENDATIONS[name])

        overall = round_half_up(sum(included) / len(included)) if included else 0
        category = categorize(overall, sh)

        logger.debug(
            "Panel %s scored %d (%s) from %d parameter(s)",
            panel.date, overall, category.value, len(included),
        )
        return SpermHealthScore(
            overall_score=overall,
            category=category,
            analysis=_CATEGORY_ANALYSIS[category],
            per_parameter_scores=details,
            recommendations=recommendations,
        )

    def latest(self, panels: Iterable[SpermHealthPanel]) -> LatestPanelReport:
        """Score the most recent panel, if any."""
        ordered = sorted(panels, key=lambda p: p.date)
        if not ordered:
            return LatestPanelReport(message=NO_RECORDS_MESSAGE)
        newest = ordered[-1]
        return LatestPanelReport(
            message=f"Latest sperm health record from {newest.date.isoformat()}",
            latest_record=newest,
            score=self.score(newest),
        )

    def trends(
        self,
        panels: Iterable[SpermHealthPanel],
        months: int | None = None,
        as_of: date | None = None,
    ) -> SpermTrendReport:
        """Trend each parameter and the composite score over a lookback window.

        Args:
            panels: The user's panels, any order.  One per date.
            months: Lookback in calendar months (config default: 6).
            as_of:  Reference date (defaults to today).

        Raises:
            InvalidRecordError: If two panels share a date.
        """
        months = months or self._sh_config.trend_months
        today = as_of or date.today()
        since = months_before(today, months)

        window = sorted(
            (p for p in panels if since <= p.date <= today),
            key=lambda p: p.date,
        )
        ensure_unique_dates(window, "sperm health")

        records = [PanelScorePoint(date=p.date, score=self.score(p).overall_score) for p in window]

        if len(window) < 2:
            return SpermTrendReport(message=NOT_ENOUGH_TREND_DATA_MESSAGE, records=records)

        threshold = self._config.trend.significance_pct
        score_series = [TrendPoint(date=r.date, value=r.score) for r in records]
        trends = SpermTrends(
            count=calculate_trend(series_from(window, "count"), threshold),
            motility=calculate_trend(series_from(window, "motility"), threshold),
            morphology=calculate_trend(series_from(window, "morphology"), threshold),
            volume=calculate_trend(series_from(window, "volume"), threshold),
            overall_score=calculate_trend(score_series, threshold),
        )
        return SpermTrendReport(
            message=(
                f"Trend analysis based on {len(window)} records over the past {months} months"
            ),
            trends=trends,
            records=records,
        )
