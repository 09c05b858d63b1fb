"""Tests for the upcoming-events timeline."""

from __future__ import annotations

from datetime import date, time, timedelta

import pytest

from src.analytics.config_loader import AnalyticsConfig
from src.analytics.cycle_predictor import CyclePredictor
from src.analytics.event_aggregator import (
    EventAggregator,
    EventType,
    UserNotFoundError,
    in_window,
)
from src.analytics.records import PartnerLink, PartnerLinkStatus, UserRecord
from src.analytics.tests.conftest import (
    OTHER_USER_ID,
    PARTNER_ID,
    TEST_TODAY,
    make_appointment,
    make_cycles,
)

# Two 28-day cycles put the next period on 2026-03-17, ovulation on 03-03,
# and the fertile window on 02-26..03-04: all inside a 30-day window.
CYCLES = make_cycles([date(2026, 1, 20), date(2026, 2, 17)])
NEXT_PERIOD = date(2026, 3, 17)


@pytest.fixture
def aggregator(analytics_config: AnalyticsConfig) -> EventAggregator:
    return EventAggregator(analytics_config)


class TestWindow:
    def test_window_is_inclusive(self, aggregator: EventAggregator, test_user: UserRecord) -> None:
        appointments = [
            make_appointment("Yesterday", TEST_TODAY - timedelta(days=1)),
            make_appointment("Today", TEST_TODAY),
            make_appointment("Last day", TEST_TODAY + timedelta(days=30)),
            make_appointment("Too late", TEST_TODAY + timedelta(days=31)),
        ]
        upcoming = aggregator.upcoming(test_user, appointments=appointments, today=TEST_TODAY, days=30)
        assert [e.title for e in upcoming.events] == ["Today", "Last day"]
        assert upcoming.start == TEST_TODAY
        assert upcoming.end == date(2026, 3, 25)

    def test_default_lookahead(self, aggregator: EventAggregator, test_user: UserRecord) -> None:
        upcoming = aggregator.upcoming(test_user, today=TEST_TODAY)
        assert upcoming.end == TEST_TODAY + timedelta(days=30)
        assert upcoming.events == []

    def test_zero_days_keeps_today_only(
        self, aggregator: EventAggregator, test_user: UserRecord
    ) -> None:
        appointments = [
            make_appointment("Today", TEST_TODAY),
            make_appointment("Tomorrow", TEST_TODAY + timedelta(days=1)),
        ]
        upcoming = aggregator.upcoming(test_user, appointments=appointments, today=TEST_TODAY, days=0)
        assert [e.title for e in upcoming.events] == ["Today"]

    def test_every_event_inside_range(
        self,
        aggregator: EventAggregator,
        test_user: UserRecord,
        accepted_partner: PartnerLink,
    ) -> None:
        upcoming = aggregator.upcoming(
            test_user,
            appointments=[make_appointment(f"Visit {i}", TEST_TODAY + timedelta(days=i * 7)) for i in range(8)],
            cycles=CYCLES,
            partner_links=[accepted_partner],
            partner_appointments=[
                make_appointment("Scan", TEST_TODAY + timedelta(days=i * 11), owner_id=PARTNER_ID, is_shared=True)
                for i in range(5)
            ],
            today=TEST_TODAY,
            days=21,
        )
        assert upcoming.events
        assert all(in_window(e.date, upcoming.start, upcoming.end) for e in upcoming.events)


class TestPredictions:
    def test_prediction_events(self, aggregator: EventAggregator, test_user: UserRecord) -> None:
        upcoming = aggregator.upcoming(test_user, cycles=CYCLES, today=TEST_TODAY, days=30)
        assert [(e.type, e.date) for e in upcoming.events] == [
            (EventType.fertile_window_start, date(2026, 2, 26)),
            (EventType.ovulation, date(2026, 3, 3)),
            (EventType.fertile_window_end, date(2026, 3, 4)),
            (EventType.period, NEXT_PERIOD),
        ]

    def test_prediction_titles_and_data(
        self, aggregator: EventAggregator, test_user: UserRecord
    ) -> None:
        upcoming = aggregator.upcoming(test_user, cycles=CYCLES, today=TEST_TODAY, days=30)
        period = next(e for e in upcoming.events if e.type == EventType.period)
        assert period.title == "Predicted Period Start"
        assert period.data == {"predicted_date": "2026-03-17", "average_cycle_length": 28}
        ovulation = next(e for e in upcoming.events if e.type == EventType.ovulation)
        assert ovulation.title == "Predicted Ovulation"

    def test_predictions_outside_window_dropped(
        self, aggregator: EventAggregator, test_user: UserRecord
    ) -> None:
        upcoming = aggregator.upcoming(test_user, cycles=CYCLES, today=TEST_TODAY, days=5)
        assert [e.type for e in upcoming.events] == [EventType.fertile_window_start]

    def test_single_cycle_gives_no_predictions(
        self, aggregator: EventAggregator, test_user: UserRecord
    ) -> None:
        upcoming = aggregator.upcoming(test_user, cycles=CYCLES[:1], today=TEST_TODAY)
        assert upcoming.events == []

    @pytest.mark.parametrize("days", [0, 3, 8, 9, 21, 22, 30])
    def test_matches_independent_window_check(
        self,
        aggregator: EventAggregator,
        analytics_config: AnalyticsConfig,
        test_user: UserRecord,
        days: int,
    ) -> None:
        prediction = CyclePredictor(analytics_config).predict(CYCLES)
        assert prediction is not None
        end = TEST_TODAY + timedelta(days=days)
        expected = {
            d
            for d in (
                prediction.next_period_date,
                prediction.ovulation_date,
                prediction.fertile_window_start,
                prediction.fertile_window_end,
            )
            if TEST_TODAY <= d <= end
        }
        upcoming = aggregator.upcoming(test_user, cycles=CYCLES, today=TEST_TODAY, days=days)
        assert {e.date for e in upcoming.events} == expected


class TestPartnerAppointments:
    def test_shared_partner_appointment_titled(
        self,
        aggregator: EventAggregator,
        test_user: UserRecord,
        accepted_partner: PartnerLink,
    ) -> None:
        appt = make_appointment(
            "Ultrasound", date(2026, 3, 2), at=time(10, 30), owner_id=PARTNER_ID, is_shared=True
        )
        upcoming = aggregator.upcoming(
            test_user,
            partner_links=[accepted_partner],
            partner_appointments=[appt],
            today=TEST_TODAY,
        )
        (event,) = upcoming.events
        assert event.type == EventType.partner_appointment
        assert event.title == "Sam: Ultrasound"
        assert event.time == time(10, 30)
        assert event.data["partner_name"] == "Sam"
        assert event.data["title"] == "Ultrasound"

    def test_unshared_partner_appointment_hidden(
        self,
        aggregator: EventAggregator,
        test_user: UserRecord,
        accepted_partner: PartnerLink,
    ) -> None:
        appt = make_appointment("Private", date(2026, 3, 2), owner_id=PARTNER_ID, is_shared=False)
        upcoming = aggregator.upcoming(
            test_user,
            partner_links=[accepted_partner],
            partner_appointments=[appt],
            today=TEST_TODAY,
        )
        assert upcoming.events == []

    def test_pending_link_hidden(self, aggregator: EventAggregator, test_user: UserRecord) -> None:
        link = PartnerLink(
            user_id=test_user.id,
            partner_id=PARTNER_ID,
            partner_display_name="Sam",
            status=PartnerLinkStatus.pending,
        )
        appt = make_appointment("Scan", date(2026, 3, 2), owner_id=PARTNER_ID, is_shared=True)
        upcoming = aggregator.upcoming(
            test_user, partner_links=[link], partner_appointments=[appt], today=TEST_TODAY
        )
        assert upcoming.events == []

    def test_non_partner_appointments_hidden(
        self,
        aggregator: EventAggregator,
        test_user: UserRecord,
        accepted_partner: PartnerLink,
    ) -> None:
        appt = make_appointment("Scan", date(2026, 3, 2), owner_id=OTHER_USER_ID, is_shared=True)
        upcoming = aggregator.upcoming(
            test_user,
            partner_links=[accepted_partner],
            partner_appointments=[appt],
            appointments=[make_appointment("Not mine", date(2026, 3, 2), owner_id=OTHER_USER_ID)],
            today=TEST_TODAY,
        )
        assert upcoming.events == []


class TestOrdering:
    def test_sorted_by_date_then_time(
        self, aggregator: EventAggregator, test_user: UserRecord
    ) -> None:
        appointments = [
            make_appointment("Afternoon", date(2026, 3, 1), at=time(15, 0)),
            make_appointment("Morning", date(2026, 3, 1), at=time(8, 0)),
            make_appointment("Earlier day", date(2026, 2, 27), at=time(18, 0)),
            make_appointment("All day", date(2026, 3, 1)),
        ]
        upcoming = aggregator.upcoming(test_user, appointments=appointments, today=TEST_TODAY)
        assert [e.title for e in upcoming.events] == [
            "Earlier day", "All day", "Morning", "Afternoon",
        ]

    def test_same_timestamp_keeps_source_order(
        self,
        aggregator: EventAggregator,
        test_user: UserRecord,
        accepted_partner: PartnerLink,
    ) -> None:
        upcoming = aggregator.upcoming(
            test_user,
            appointments=[make_appointment("Check-up", NEXT_PERIOD)],
            cycles=CYCLES,
            partner_links=[accepted_partner],
            partner_appointments=[
                make_appointment("Semen analysis", NEXT_PERIOD, owner_id=PARTNER_ID, is_shared=True)
            ],
            today=TEST_TODAY,
        )
        same_day = [e for e in upcoming.events if e.date == NEXT_PERIOD]
        assert [e.type for e in same_day] == [
            EventType.appointment,
            EventType.period,
            EventType.partner_appointment,
        ]


class TestErrors:
    def test_missing_user_raises(self, aggregator: EventAggregator) -> None:
        with pytest.raises(UserNotFoundError):
            aggregator.upcoming(None, today=TEST_TODAY)
