"""Shared fixtures and record builders for analytics engine tests."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

import pytest

from src.analytics.config_loader import AnalyticsConfig, load_analytics_config
from src.analytics.records import (
    Appointment,
    ContentItem,
    CycleRecord,
    Interaction,
    InteractionType,
    PartnerLink,
    PartnerLinkStatus,
    SpermHealthPanel,
    UserRecord,
)

# Canonical test identities
TEST_USER_ID = UUID("12345678-1234-5678-1234-567812345678")
PARTNER_ID = UUID("87654321-4321-8765-4321-876543218765")
OTHER_USER_ID = UUID("00000000-0000-0000-0000-0000000000ff")
TEST_TODAY = date(2026, 2, 23)


def content_id(n: int) -> UUID:
    return UUID(int=n)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def analytics_config() -> AnalyticsConfig:
    """Load the real bundled config for tests."""
    return load_analytics_config()


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------


def make_cycles(starts: list[date]) -> list[CycleRecord]:
    return [CycleRecord(start_date=s) for s in starts]


def regular_cycles(n: int, length: int, last_start: date) -> list[CycleRecord]:
    """n cycles ``length`` days apart, newest starting on ``last_start``."""
    return make_cycles([last_start - timedelta(days=length * i) for i in range(n)])


def make_item(
    n: int,
    category: str = "Fertility",
    tags: tuple[str, ...] = (),
    published_day: int = 1,
) -> ContentItem:
    return ContentItem(
        id=content_id(n),
        title=f"Article {n}",
        category=category,
        tags=frozenset(tags),
        published_at=datetime(2026, 1, published_day, 9, 0, tzinfo=timezone.utc),
    )


def interact(n: int, kind: InteractionType, user_id: UUID = TEST_USER_ID) -> Interaction:
    return Interaction(user_id=user_id, content_id=content_id(n), type=kind)


def make_appointment(
    title: str,
    day: date,
    at: time | None = None,
    owner_id: UUID = TEST_USER_ID,
    is_shared: bool = False,
) -> Appointment:
    return Appointment(
        id=UUID(int=abs(hash((title, day, owner_id))) % (1 << 64)),
        owner_id=owner_id,
        title=title,
        date=day,
        time=at,
        is_shared=is_shared,
    )


# ---------------------------------------------------------------------------
# Record fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_user() -> UserRecord:
    return UserRecord(id=TEST_USER_ID, display_name="Maya", gender="female")


@pytest.fixture
def accepted_partner() -> PartnerLink:
    return PartnerLink(
        user_id=TEST_USER_ID,
        partner_id=PARTNER_ID,
        partner_display_name="Sam",
        status=PartnerLinkStatus.accepted,
    )


@pytest.fixture
def catalog() -> list[ContentItem]:
    """Eight articles published on Jan 1..8; article n is published on day n."""
    return [
        make_item(1, "Fertility", ("ovulation", "tracking"), published_day=1),
        make_item(2, "Fertility", ("bbt",), published_day=2),
        make_item(3, "Nutrition", ("diet",), published_day=3),
        make_item(4, "Nutrition", ("tracking",), published_day=4),
        make_item(5, "Male Health", ("sperm",), published_day=5),
        make_item(6, "Male Health", ("lifestyle",), published_day=6),
        make_item(7, "Wellness", ("sleep",), published_day=7),
        make_item(8, "Wellness", ("stress",), published_day=8),
    ]


@pytest.fixture
def optimal_panel() -> SpermHealthPanel:
    return SpermHealthPanel(date=TEST_TODAY, count=50, motility=70, morphology=20, volume=5)
