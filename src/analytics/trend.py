"""First-vs-last trend analysis over a dated numeric series.

Used for every logged metric that gets a trend badge in the app: semen
parameters, the composite sperm health score, basal temperature.

The comparison is deliberately simple: sort by date, compare the oldest
value with the newest.  A change larger than the significance threshold
(5 % by default) is reported as improving or declining.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Iterable, Sequence

from src.analytics.numeric import round_half_up

logger = logging.getLogger("ovulink.analytics.trend")

DEFAULT_SIGNIFICANCE_PCT = 5.0

NOT_ENOUGH_DATA_MESSAGE = "Not enough data"
NO_CHANGE_MESSAGE = "No significant change"


class TrendDirection(str, Enum):
    improving = "improving"
    declining = "declining"
    stable = "stable"
    unknown = "unknown"


@dataclass(frozen=True)
class TrendPoint:
    date: date
    value: float


@dataclass(frozen=True)
class TrendResult:
    """Outcome of a trend comparison.

    Attributes:
        direction:         improving / declining / stable / unknown.
        percentage_change: Rounded first-vs-last change in percent.  0 when
                           the baseline is zero or data is insufficient.
        message:           Display sentence.
    """

    direction: TrendDirection
    percentage_change: int
    message: str

    @classmethod
    def insufficient(cls) -> "TrendResult":
        return cls(TrendDirection.unknown, 0, NOT_ENOUGH_DATA_MESSAGE)


def series_from(records: Iterable[Any], attribute: str) -> list[TrendPoint]:
    """Build trend points from dated records, skipping null values.

    Args:
        records:   Objects with a ``date`` attribute and ``attribute``.
        attribute: Name of the numeric attribute to chart.
    """
    points = []
    for record in records:
        value = getattr(record, attribute)
        if value is None:
            continue
        points.append(TrendPoint(date=record.date, value=float(value)))
    return points


def calculate_trend(
    points: Sequence[TrendPoint],
    significance_pct: float = DEFAULT_SIGNIFICANCE_PCT,
) -> TrendResult:
    """Compare the oldest and newest value of a series.

    The input does not need to be sorted.  Fewer than two points is a normal
    outcome (``unknown``), not an error.

    Args:
        points:           Dated values in any order.
        significance_pct: Absolute change (percent) that counts as a trend.

    Returns:
        TrendResult.
    """
    if len(points) < 2:
        return TrendResult.insufficient()

    ordered = sorted(points, key=lambda p: p.date)
    first = ordered[0].value
    last = ordered[-1].value

    if first == 0:
        if last > 0:
            return TrendResult(
                TrendDirection.improving, 0, "Improving from zero baseline"
            )
        return TrendResult(TrendDirection.stable, 0, "No change from zero baseline")

    # abs() keeps the sign of the change meaningful for negative baselines
    change = (last - first) / abs(first) * 100
    pct = round_half_up(change)

    # Direction is decided on the unrounded change
    if change > significance_pct:
        result = TrendResult(TrendDirection.improving, pct, f"Improving by {abs(pct)}%")
    elif change < -significance_pct:
        result = TrendResult(TrendDirection.declining, pct, f"Declining by {abs(pct)}%")
    else:
        result = TrendResult(TrendDirection.stable, pct, NO_CHANGE_MESSAGE)

    logger.debug(
        "Trend over %d points (%s → %s): %.2f%% %s",
        len(ordered), ordered[0].date, ordered[-1].date, change, result.direction.value,
    )
    return result
