"""Read-only loaders that turn database rows into analytics records.

These are the only place SQL meets the engine.  Each loader returns plain
engine dataclasses; no loader computes anything.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Mapping

from src.analytics.records import (
    Appointment,
    ContentItem,
    CycleRecord,
    FlowIntensity,
    Interaction,
    InteractionType,
    PartnerLink,
    PartnerLinkStatus,
    SpermHealthPanel,
    UserRecord,
)
from src.services.database import fetch, fetchrow


def _float(value: Any) -> float | None:
    # NUMERIC columns come back as Decimal
    return float(value) if value is not None else None


def _cycle(row: Mapping[str, Any]) -> CycleRecord:
    return CycleRecord(
        cycle_id=row["id"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        flow=FlowIntensity(row["flow"]) if row["flow"] else None,
        notes=row["notes"],
    )


def _panel(row: Mapping[str, Any]) -> SpermHealthPanel:
    return SpermHealthPanel(
        panel_id=row["id"],
        date=row["date"],
        count=_float(row["count"]),
        motility=_float(row["motility"]),
        morphology=_float(row["morphology"]),
        volume=_float(row["volume"]),
        notes=row["notes"],
    )


def _content(row: Mapping[str, Any]) -> ContentItem:
    return ContentItem(
        id=row["id"],
        title=row["title"],
        category=row["category"],
        tags=frozenset(row["tags"] or ()),
        author=row["author"],
        published_at=row["published_at"],
    )


def _appointment(row: Mapping[str, Any]) -> Appointment:
    return Appointment(
        id=row["id"],
        owner_id=row["user_id"],
        title=row["title"],
        date=row["date"],
        time=row["time"],
        location=row["location"],
        notes=row["notes"],
        is_shared=bool(row["is_shared"]),
    )


# ---------- Users / partners ----------

async def load_user(user_id: uuid.UUID) -> UserRecord | None:
    row = await fetchrow(
        "SELECT id, display_name, gender FROM users WHERE id = $1",
        user_id,
    )
    if row is None:
        return None
    return UserRecord(id=row["id"], display_name=row["display_name"], gender=row["gender"])


async def load_partner_links(user_id: uuid.UUID) -> list[PartnerLink]:
    """Partner links in either direction, normalized so ``user_id`` is the caller."""
    rows = await fetch(
        """
        SELECT pl.status,
               CASE WHEN pl.user_id = $1 THEN pl.partner_id ELSE pl.user_id END AS other_id,
               u.display_name AS other_name
        FROM partner_links pl
        JOIN users u
          ON u.id = CASE WHEN pl.user_id = $1 THEN pl.partner_id ELSE pl.user_id END
        WHERE pl.user_id = $1 OR pl.partner_id = $1
        """,
        user_id,
    )
    return [
        PartnerLink(
            user_id=user_id,
            partner_id=r["other_id"],
            partner_display_name=r["other_name"],
            status=PartnerLinkStatus(r["status"]),
        )
        for r in rows
    ]


# ---------- Female health ----------

async def load_recent_cycles(user_id: uuid.UUID, limit: int) -> list[CycleRecord]:
    """Newest ``limit`` cycles, newest first."""
    rows = await fetch(
        "SELECT * FROM menstrual_cycles WHERE user_id = $1 ORDER BY start_date DESC LIMIT $2",
        user_id, limit,
    )
    return [_cycle(r) for r in rows]


# ---------- Male health ----------

async def load_sperm_panels(
    user_id: uuid.UUID,
    since: date | None = None,
    limit: int = 100,
) -> list[SpermHealthPanel]:
    """Panels newest first, optionally only those on or after ``since``."""
    if since is None:
        rows = await fetch(
            "SELECT * FROM sperm_health WHERE user_id = $1 ORDER BY date DESC LIMIT $2",
            user_id, limit,
        )
    else:
        rows = await fetch(
            """
            SELECT * FROM sperm_health
            WHERE user_id = $1 AND date >= $2
            ORDER BY date DESC LIMIT $3
            """,
            user_id, since, limit,
        )
    return [_panel(r) for r in rows]


async def load_sperm_panel(user_id: uuid.UUID, panel_id: uuid.UUID) -> SpermHealthPanel | None:
    row = await fetchrow(
        "SELECT * FROM sperm_health WHERE id = $1 AND user_id = $2",
        panel_id, user_id,
    )
    return _panel(row) if row else None


# ---------- Education ----------

async def load_catalog() -> list[ContentItem]:
    rows = await fetch("SELECT * FROM educational_content ORDER BY published_at DESC")
    return [_content(r) for r in rows]


async def load_interactions(user_id: uuid.UUID) -> list[Interaction]:
    rows = await fetch(
        """
        SELECT user_id, content_id, interaction_type, created_at
        FROM content_interactions WHERE user_id = $1
        """,
        user_id,
    )
    return [
        Interaction(
            user_id=r["user_id"],
            content_id=r["content_id"],
            type=InteractionType(r["interaction_type"]),
            timestamp=r["created_at"],
        )
        for r in rows
    ]


async def load_interaction_counts() -> dict[uuid.UUID, int]:
    rows = await fetch(
        "SELECT content_id, COUNT(*) AS n FROM content_interactions GROUP BY content_id"
    )
    return {r["content_id"]: int(r["n"]) for r in rows}


# ---------- Calendar ----------

async def load_appointments(
    owner_ids: list[uuid.UUID],
    start: date,
    end: date,
    shared_only: bool = False,
) -> list[Appointment]:
    """Appointments of ``owner_ids`` dated inside ``[start, end]``."""
    if not owner_ids:
        return []
    shared_clause = " AND is_shared = true" if shared_only else ""
    rows = await fetch(
        f"""
        SELECT * FROM appointments
        WHERE user_id = ANY($1::uuid[]) AND date >= $2 AND date <= $3{shared_clause}
        """,
        owner_ids, start, end,
    )
    return [_appointment(r) for r in rows]
