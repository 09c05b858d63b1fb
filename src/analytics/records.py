"""Canonical record types consumed by the Ovulink analytics engine.

These are the already-validated, already-loaded rows the service layer hands
to the engine.  The engine never persists or mutates them; every derived
result (predictions, scores, trends, timelines) is recomputed on demand.

String values of every enum match the stored column values and the JSON the
mobile client reads, so they must not change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Iterable, Protocol
from uuid import UUID

logger = logging.getLogger("ovulink.analytics.records")


class InvalidRecordError(ValueError):
    """Raised when a caller hands the engine a malformed record."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class FlowIntensity(str, Enum):
    light = "light"
    medium = "medium"
    heavy = "heavy"


class MucusType(str, Enum):
    dry = "dry"
    sticky = "sticky"
    creamy = "creamy"
    egg_white = "egg-white"


class MucusAmount(str, Enum):
    light = "light"
    medium = "medium"
    abundant = "abundant"


class InteractionType(str, Enum):
    view = "view"
    like = "like"
    bookmark = "bookmark"


class PartnerLinkStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


# ---------------------------------------------------------------------------
# Female health
# ---------------------------------------------------------------------------


@dataclass
class CycleRecord:
    """One logged menstrual cycle.

    Attributes:
        start_date: First day of the period.  Required.
        end_date:   Last day of the period, None while the period is ongoing.
        flow:       Logged flow intensity.
        notes:      Free text.
        cycle_id:   Row id, when loaded from storage.
    """

    start_date: date
    end_date: date | None = None
    flow: FlowIntensity | None = None
    notes: str | None = None
    cycle_id: UUID | None = None


@dataclass
class TemperatureRecord:
    """Basal body temperature reading (°C, 35.0–42.0), one per date."""

    date: date
    value: float
    time: time | None = None
    notes: str | None = None


@dataclass
class CervicalMucusRecord:
    """Cervical mucus observation, one per date."""

    date: date
    type: MucusType
    amount: MucusAmount | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Male health
# ---------------------------------------------------------------------------


@dataclass
class SpermHealthPanel:
    """One semen-analysis result.  Any parameter may be missing.

    Attributes:
        date:       Test date.  At most one panel per date per user.
        count:      Concentration in million/mL.
        motility:   Progressive motility, percent.
        morphology: Normal forms, percent.
        volume:     Ejaculate volume in mL.
    """

    date: date
    count: float | None = None
    motility: float | None = None
    morphology: float | None = None
    volume: float | None = None
    notes: str | None = None
    panel_id: UUID | None = None


# ---------------------------------------------------------------------------
# Education content
# ---------------------------------------------------------------------------


@dataclass
class ContentItem:
    id: UUID
    title: str
    category: str
    published_at: datetime
    tags: frozenset[str] = field(default_factory=frozenset)
    author: str | None = None


@dataclass
class Interaction:
    """A user's live interaction with a content item.

    Re-interacting refreshes ``timestamp``; there is never more than one
    live interaction per (user, content, type).
    """

    user_id: UUID
    content_id: UUID
    type: InteractionType
    timestamp: datetime | None = None


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------


@dataclass
class UserRecord:
    id: UUID
    display_name: str
    gender: str | None = None


@dataclass
class PartnerLink:
    """An accepted or pending partner relationship, seen from ``user_id``."""

    user_id: UUID
    partner_id: UUID
    partner_display_name: str
    status: PartnerLinkStatus = PartnerLinkStatus.pending

    @property
    def is_accepted(self) -> bool:
        return self.status == PartnerLinkStatus.accepted


@dataclass
class Appointment:
    id: UUID
    owner_id: UUID
    title: str
    date: date
    time: time | None = None
    location: str | None = None
    notes: str | None = None
    is_shared: bool = False
    attendee_ids: list[UUID] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


class _Dated(Protocol):
    date: date


def require_start_dates(cycles: Iterable[CycleRecord]) -> list[CycleRecord]:
    """Return ``cycles`` as a list, rejecting any without a usable start date.

    Raises:
        InvalidRecordError: If a cycle has no ``start_date`` or it is not a date.
    """
    checked = list(cycles)
    for idx, cycle in enumerate(checked):
        start = getattr(cycle, "start_date", None)
        if not isinstance(start, date):
            raise InvalidRecordError(
                f"Cycle record #{idx} has no valid start_date (got {start!r})"
            )
    return checked


def ensure_unique_dates(records: Iterable[_Dated], kind: str) -> None:
    """Reject record sets holding more than one entry for the same date.

    Temperature, cervical mucus and sperm panel records are one-per-date per
    user; a duplicate means the caller loaded the wrong rows.

    Args:
        records: Records carrying a ``date`` attribute.
        kind:    Record kind used in the error message.

    Raises:
        InvalidRecordError: On the first duplicated date.
    """
    seen: set[date] = set()
    for record in records:
        if record.date in seen:
            raise InvalidRecordError(
                f"Duplicate {kind} record for {record.date.isoformat()}"
            )
        seen.add(record.date)
