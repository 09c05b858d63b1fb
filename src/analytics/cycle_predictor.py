"""Calendar-method cycle prediction.

Predicts the next period, ovulation, and the fertile window from the start
dates of the user's most recent logged cycles:

1. Take the newest N cycles (N = rolling window, 6 by default).
2. Cycle lengths = day gaps between consecutive start dates, oldest first.
3. Average length = half-up rounded mean of those gaps.
4. Next period = newest start + average length.
5. Ovulation = next period - luteal phase (fixed 14 days).
6. Fertile window = ovulation - 5 days .. ovulation + 1 day.

The luteal phase and fertile-window offsets are fixed assumptions, not
learned from the individual's data.  End dates and flow never affect the
result; only start-date deltas do.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

from src.analytics.config_loader import (
    AnalyticsConfig,
    CyclePredictionConfig,
    get_analytics_config,
)
from src.analytics.numeric import round_half_up
from src.analytics.records import CycleRecord, require_start_dates

logger = logging.getLogger("ovulink.analytics.cycle_predictor")

NOT_ENOUGH_CYCLES_MESSAGE = "Not enough cycle data for prediction"


@dataclass
class CyclePrediction:
    """Prediction for the user's next cycle.

    Attributes:
        average_cycle_length: Rounded mean of ``cycle_lengths`` (days).
        cycle_lengths:        Gaps between consecutive period starts, oldest first.
        last_period_start:    Start date of the newest cycle used.
        next_period_date:     Predicted start of the next period.
        ovulation_date:       next_period_date minus the luteal phase.
        fertile_window_start: Ovulation minus 5 days.
        fertile_window_end:   Ovulation plus 1 day.
    """

    average_cycle_length: int
    last_period_start: date
    next_period_date: date
    ovulation_date: date
    fertile_window_start: date
    fertile_window_end: date
    cycle_lengths: list[int] = field(default_factory=list)


@dataclass
class PredictionReport:
    """``{message, prediction}`` wrapper served to the app.

    ``prediction`` is None when there is not enough history.
    """

    message: str
    prediction: CyclePrediction | None = None


class CyclePredictor:
    """Predict the next period and fertile window from cycle start dates.

    Usage::

        predictor = CyclePredictor()
        prediction = predictor.predict(recent_cycles)
        if prediction is not None:
            print(prediction.ovulation_date)
    """

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config = config or get_analytics_config()

    @property
    def _cp_config(self) -> CyclePredictionConfig:
        return self._config.cycle

    @property
    def window(self) -> int:
        """How many of the newest cycles a prediction uses."""
        return self._cp_config.rolling_window_cycles

    def recent_window(self, cycles: Iterable[CycleRecord]) -> list[CycleRecord]:
        """Return the newest cycles inside the rolling window, oldest first.

        Raises:
            InvalidRecordError: If a cycle is missing its start date.
        """
        checked = require_start_dates(cycles)
        newest_first = sorted(checked, key=lambda c: c.start_date, reverse=True)
        return list(reversed(newest_first[: self.window]))

    @staticmethod
    def cycle_lengths(cycles: list[CycleRecord]) -> list[int]:
        """Day gaps between consecutive cycle starts (input oldest first)."""
        return [
            abs((later.start_date - earlier.start_date).days)
            for earlier, later in zip(cycles, cycles[1:])
        ]

    def predict(self, cycles: Iterable[CycleRecord]) -> CyclePrediction | None:
        """Predict the next cycle from historical records.

        Args:
            cycles: Cycle records in any order.  Only the newest
                    ``rolling_window_cycles`` are used.

        Returns:
            CyclePrediction, or None when fewer than ``min_cycles`` cycles exist.

        Raises:
            InvalidRecordError: If a cycle is missing its start date.
        """
        cp = self._cp_config
        recent = self.recent_window(cycles)

        if len(recent) < cp.min_cycles:
            logger.debug("Only %d cycle(s) logged; no prediction", len(recent))
            return None

        lengths = self.cycle_lengths(recent)
        if 0 in lengths:
            logger.warning("Two cycles share a start date; zero-day gap kept in average")
        average = round_half_up(sum(lengths) / len(lengths))

        last_start = recent[-1].start_date
        next_period = last_start + timedelta(days=average)
        ovulation = next_period - timedelta(days=cp.luteal_phase_days)

        prediction = CyclePrediction(
            average_cycle_length=average,
            cycle_lengths=lengths,
            last_period_start=last_start,
            next_period_date=next_period,
            ovulation_date=ovulation,
            fertile_window_start=ovulation - timedelta(days=cp.fertile_days_before_ovulation),
            fertile_window_end=ovulation + timedelta(days=cp.fertile_days_after_ovulation),
        )

        logger.debug(
            "Predicted from %d cycles: avg=%d next=%s ovulation=%s",
            len(recent), average, next_period, ovulation,
        )
        return prediction

    def report(self, cycles: Iterable[CycleRecord]) -> PredictionReport:
        """Predict and wrap the result with the message shown to the user."""
        recent = self.recent_window(cycles)
        prediction = self.predict(recent)
        if prediction is None:
            return PredictionReport(message=NOT_ENOUGH_CYCLES_MESSAGE, prediction=None)
        return PredictionReport(
            message=f"Prediction based on your last {len(recent)} cycles",
            prediction=prediction,
        )
