"""Tests for calendar-method cycle prediction."""

from __future__ import annotations

import logging
from datetime import date, timedelta

import pytest

from src.analytics.config_loader import AnalyticsConfig, build_analytics_config
from src.analytics.cycle_predictor import (
    NOT_ENOUGH_CYCLES_MESSAGE,
    CyclePredictor,
)
from src.analytics.records import CycleRecord, FlowIntensity, InvalidRecordError
from src.analytics.tests.conftest import make_cycles, regular_cycles


@pytest.fixture
def predictor(analytics_config: AnalyticsConfig) -> CyclePredictor:
    return CyclePredictor(analytics_config)


class TestPredict:
    def test_two_cycles_28_days(self, predictor: CyclePredictor) -> None:
        prediction = predictor.predict(make_cycles([date(2025, 1, 1), date(2025, 1, 29)]))
        assert prediction is not None
        assert prediction.average_cycle_length == 28
        assert prediction.cycle_lengths == [28]
        assert prediction.last_period_start == date(2025, 1, 29)
        assert prediction.next_period_date == date(2025, 2, 26)
        assert prediction.ovulation_date == date(2025, 2, 12)
        assert prediction.fertile_window_start == date(2025, 2, 7)
        assert prediction.fertile_window_end == date(2025, 2, 13)
        assert prediction.fertile_window_end - prediction.fertile_window_start == timedelta(days=6)

    def test_single_cycle_returns_none(self, predictor: CyclePredictor) -> None:
        assert predictor.predict(make_cycles([date(2025, 1, 1)])) is None

    def test_no_cycles_returns_none(self, predictor: CyclePredictor) -> None:
        assert predictor.predict([]) is None

    def test_input_order_does_not_matter(self, predictor: CyclePredictor) -> None:
        cycles = regular_cycles(4, 30, date(2025, 5, 1))
        forward = predictor.predict(cycles)
        backward = predictor.predict(list(reversed(cycles)))
        assert forward == backward
        assert forward is not None and forward.average_cycle_length == 30

    def test_only_newest_six_cycles_used(self, predictor: CyclePredictor) -> None:
        last = date(2025, 6, 1)
        recent = regular_cycles(6, 28, last)
        oldest_recent = last - timedelta(days=28 * 5)
        ancient = make_cycles([
            oldest_recent - timedelta(days=90),
            oldest_recent - timedelta(days=200),
        ])
        prediction = predictor.predict(ancient + recent)
        assert prediction is not None
        assert prediction.cycle_lengths == [28, 28, 28, 28, 28]
        assert prediction.average_cycle_length == 28

    def test_average_rounds_half_up(self, predictor: CyclePredictor) -> None:
        start = date(2025, 1, 1)
        cycles = make_cycles([start, start + timedelta(days=28), start + timedelta(days=57)])
        prediction = predictor.predict(cycles)
        assert prediction is not None
        assert prediction.cycle_lengths == [28, 29]
        assert prediction.average_cycle_length == 29

    def test_fertile_window_brackets_ovulation(self, predictor: CyclePredictor) -> None:
        prediction = predictor.predict(regular_cycles(5, 31, date(2025, 8, 3)))
        assert prediction is not None
        assert (
            prediction.fertile_window_start
            < prediction.ovulation_date
            < prediction.fertile_window_end
            < prediction.next_period_date
        )
        assert prediction.next_period_date - prediction.ovulation_date == timedelta(days=14)

    def test_end_date_and_flow_ignored(self, predictor: CyclePredictor) -> None:
        plain = make_cycles([date(2025, 1, 1), date(2025, 1, 29)])
        detailed = [
            CycleRecord(start_date=date(2025, 1, 1), end_date=date(2025, 1, 6), flow=FlowIntensity.heavy),
            CycleRecord(start_date=date(2025, 1, 29), end_date=date(2025, 2, 2), flow=FlowIntensity.light),
        ]
        assert predictor.predict(plain) == predictor.predict(detailed)

    def test_shared_start_date_logs_warning(
        self, predictor: CyclePredictor, caplog: pytest.LogCaptureFixture
    ) -> None:
        cycles = make_cycles([date(2025, 1, 1), date(2025, 1, 1), date(2025, 1, 29)])
        with caplog.at_level(logging.WARNING, logger="ovulink.analytics.cycle_predictor"):
            prediction = predictor.predict(cycles)
        assert prediction is not None
        assert prediction.cycle_lengths == [0, 28]
        assert prediction.average_cycle_length == 14
        assert "share a start date" in caplog.text

    def test_missing_start_date_raises(self, predictor: CyclePredictor) -> None:
        cycles = [CycleRecord(start_date=date(2025, 1, 1)), CycleRecord(start_date=None)]
        with pytest.raises(InvalidRecordError, match="start_date"):
            predictor.predict(cycles)

    def test_configured_luteal_phase(self) -> None:
        config = build_analytics_config({"cycle_prediction": {"luteal_phase_days": 12}})
        prediction = CyclePredictor(config).predict(
            make_cycles([date(2025, 1, 1), date(2025, 1, 29)])
        )
        assert prediction is not None
        assert prediction.ovulation_date == date(2025, 2, 14)


class TestRecentWindow:
    def test_returns_oldest_first(self, predictor: CyclePredictor) -> None:
        cycles = make_cycles([date(2025, 3, 1), date(2025, 1, 1), date(2025, 2, 1)])
        window = predictor.recent_window(cycles)
        assert [c.start_date for c in window] == [
            date(2025, 1, 1), date(2025, 2, 1), date(2025, 3, 1),
        ]

    def test_window_size(self, predictor: CyclePredictor) -> None:
        assert predictor.window == 6
        assert len(predictor.recent_window(regular_cycles(9, 28, date(2025, 9, 1)))) == 6


class TestReport:
    def test_message_names_cycle_count(self, predictor: CyclePredictor) -> None:
        report = predictor.report(regular_cycles(4, 28, date(2025, 4, 1)))
        assert report.message == "Prediction based on your last 4 cycles"
        assert report.prediction is not None

    def test_message_caps_at_window(self, predictor: CyclePredictor) -> None:
        report = predictor.report(regular_cycles(10, 28, date(2025, 10, 1)))
        assert report.message == "Prediction based on your last 6 cycles"

    def test_not_enough_data(self, predictor: CyclePredictor) -> None:
        report = predictor.report(make_cycles([date(2025, 1, 1)]))
        assert report.message == NOT_ENOUGH_CYCLES_MESSAGE
        assert report.prediction is None
