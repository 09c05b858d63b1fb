"""Merge appointments and cycle predictions into one upcoming-events timeline.

Sources, in construction order:

1. The user's own appointments dated inside the window.
2. Cycle predictions (next period, ovulation, fertile window start/end)
   that land inside the window.  Omitted when the user has fewer than two
   logged cycles.
3. Shared appointments of accepted partners, titled ``"<partner>: <title>"``.

The window is ``[today, today + days]``, inclusive on both ends.  Events
are sorted by ``(date, time or 00:00)``; Python's sort is stable, so events
with the same timestamp keep the construction order above.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, time, timedelta
from enum import Enum
from typing import Any, Iterable

from src.analytics.config_loader import AnalyticsConfig, get_analytics_config
from src.analytics.cycle_predictor import CyclePrediction, CyclePredictor
from src.analytics.records import Appointment, CycleRecord, PartnerLink, UserRecord

logger = logging.getLogger("ovulink.analytics.event_aggregator")

_MIDNIGHT = time(0, 0, 0)


class UserNotFoundError(LookupError):
    """Raised when the timeline is requested for a user that does not exist."""


class EventType(str, Enum):
    appointment = "appointment"
    period = "period"
    ovulation = "ovulation"
    fertile_window_start = "fertile_window_start"
    fertile_window_end = "fertile_window_end"
    partner_appointment = "partner_appointment"


@dataclass
class CalendarEvent:
    type: EventType
    title: str
    date: date
    time: time | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def sort_key(self) -> tuple[date, time]:
        return (self.date, self.time or _MIDNIGHT)


@dataclass
class UpcomingEvents:
    """Timeline plus the inclusive date range it covers."""

    events: list[CalendarEvent]
    start: date
    end: date


def in_window(day: date, start: date, end: date) -> bool:
    """True when ``day`` falls inside ``[start, end]``."""
    return start <= day <= end


def prediction_events(
    prediction: CyclePrediction,
    start: date,
    end: date,
) -> list[CalendarEvent]:
    """Turn a cycle prediction into the events that fall inside the window."""
    candidates = [
        CalendarEvent(
            type=EventType.period,
            title="Predicted Period Start",
            date=prediction.next_period_date,
            data={
                "predicted_date": prediction.next_period_date.isoformat(),
                "average_cycle_length": prediction.average_cycle_length,
            },
        ),
        CalendarEvent(
            type=EventType.ovulation,
            title="Predicted Ovulation",
            date=prediction.ovulation_date,
            data={"predicted_date": prediction.ovulation_date.isoformat()},
        ),
        CalendarEvent(
            type=EventType.fertile_window_start,
            title="Fertile Window Start",
            date=prediction.fertile_window_start,
            data={"predicted_date": prediction.fertile_window_start.isoformat()},
        ),
        CalendarEvent(
            type=EventType.fertile_window_end,
            title="Fertile Window End",
            date=prediction.fertile_window_end,
            data={"predicted_date": prediction.fertile_window_end.isoformat()},
        ),
    ]
    return [e for e in candidates if in_window(e.date, start, end)]


class EventAggregator:
    """Build the upcoming-events timeline for a user.

    Usage::

        aggregator = EventAggregator()
        upcoming = aggregator.upcoming(
            user=user,
            appointments=own_appointments,
            cycles=recent_cycles,
            partner_links=links,
            partner_appointments=partner_rows,
            days=30,
        )
    """

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config = config or get_analytics_config()
        self._predictor = CyclePredictor(self._config)

    def upcoming(
        self,
        user: UserRecord | None,
        appointments: Iterable[Appointment] = (),
        cycles: Iterable[CycleRecord] = (),
        partner_links: Iterable[PartnerLink] = (),
        partner_appointments: Iterable[Appointment] = (),
        today: date | None = None,
        days: int | None = None,
    ) -> UpcomingEvents:
        """Merge every source into one sorted timeline.

        Args:
            user:                 The requesting user (None if the lookup failed).
            appointments:         The user's appointments; out-of-window rows are dropped.
            cycles:               The user's cycle records, any order.
            partner_links:        Partner links seen from this user.
            partner_appointments: Appointments owned by the user's partners.
            today:                Window start (defaults to today).
            days:                 Window length (config default: 30).

        Raises:
            UserNotFoundError: If ``user`` is None.
        """
        if user is None:
            raise UserNotFoundError("User not found")

        start = today or date.today()
        days = self._config.calendar.lookahead_days if days is None else days
        end = start + timedelta(days=days)

        events: list[CalendarEvent] = []

        for appt in appointments:
            if appt.owner_id != user.id or not in_window(appt.date, start, end):
                continue
            events.append(
                CalendarEvent(
                    type=EventType.appointment,
                    title=appt.title,
                    date=appt.date,
                    time=appt.time,
                    data=asdict(appt),
                )
            )

        prediction = self._predictor.predict(cycles)
        if prediction is not None:
            events.extend(prediction_events(prediction, start, end))

        partners = {
            link.partner_id: link.partner_display_name
            for link in partner_links
            if link.is_accepted
        }
        for appt in partner_appointments:
            name = partners.get(appt.owner_id)
            if name is None or not appt.is_shared or not in_window(appt.date, start, end):
                continue
            data = asdict(appt)
            data["partner_name"] = name
            events.append(
                CalendarEvent(
                    type=EventType.partner_appointment,
                    title=f"{name}: {appt.title}",
                    date=appt.date,
                    time=appt.time,
                    data=data,
                )
            )

        events.sort(key=lambda e: e.sort_key)

        logger.debug(
            "Upcoming events for %s %s..%s: %d (prediction=%s, partners=%d)",
            user.id, start, end, len(events), prediction is not None, len(partners),
        )
        return UpcomingEvents(events=events, start=start, end=end)
