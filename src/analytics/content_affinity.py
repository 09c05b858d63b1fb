"""Personalized ranking of educational content.

Affinity score for a catalog item the user has not viewed::

    3 × bookmarked + 2 × liked + 1 × viewed
      + 2 × (category in user's categories)
      + 1 × (shares a tag with user's tags)

User categories and tags come from every item the user has touched in any
way.  Items are ranked by score (desc) then publish date (desc).  Items with
a positive score are "personalized"; if fewer than ``limit`` qualify, the
list is backfilled with the newest unviewed items purely by recency.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Mapping
from uuid import UUID

from src.analytics.config_loader import AnalyticsConfig, ContentConfig, get_analytics_config
from src.analytics.records import ContentItem, Interaction, InteractionType

logger = logging.getLogger("ovulink.analytics.content_affinity")


@dataclass
class InteractionProfile:
    """A user's interaction history, partitioned by type."""

    viewed: set[UUID] = field(default_factory=set)
    liked: set[UUID] = field(default_factory=set)
    bookmarked: set[UUID] = field(default_factory=set)
    categories: set[str] = field(default_factory=set)
    tags: set[str] = field(default_factory=set)

    @property
    def touched(self) -> set[UUID]:
        return self.viewed | self.liked | self.bookmarked

    @property
    def is_empty(self) -> bool:
        return not self.touched


@dataclass(frozen=True)
class ScoredContent:
    item: ContentItem
    score: float


def build_profile(
    interactions: Iterable[Interaction],
    catalog: Iterable[ContentItem],
    user_id: UUID | None = None,
) -> InteractionProfile:
    """Partition interactions and collect the categories/tags they touch.

    Args:
        interactions: Interaction rows.  Rows for other users are ignored when
                      ``user_id`` is given.
        catalog:      Full content catalog (for category/tag lookup).
        user_id:      Owner of the profile.
    """
    profile = InteractionProfile()
    buckets = {
        InteractionType.view: profile.viewed,
        InteractionType.like: profile.liked,
        InteractionType.bookmark: profile.bookmarked,
    }
    for interaction in interactions:
        if user_id is not None and interaction.user_id != user_id:
            continue
        buckets[InteractionType(interaction.type)].add(interaction.content_id)

    touched = profile.touched
    for item in catalog:
        if item.id in touched:
            profile.categories.add(item.category)
            profile.tags.update(item.tags)
    return profile


def affinity_score(
    item: ContentItem,
    profile: InteractionProfile,
    weights: Mapping[str, float],
) -> float:
    """Weighted affinity of one item for a profile.  Each signal counts once."""
    score = 0.0
    if item.id in profile.bookmarked:
        score += weights.get("bookmarked", 0.0)
    if item.id in profile.liked:
        score += weights.get("liked", 0.0)
    if item.id in profile.viewed:
        score += weights.get("viewed", 0.0)
    if item.category in profile.categories:
        score += weights.get("category_match", 0.0)
    if profile.tags.intersection(item.tags):
        score += weights.get("tag_match", 0.0)
    return score


def list_categories(catalog: Iterable[ContentItem]) -> list[str]:
    return sorted({item.category for item in catalog})


def list_tags(catalog: Iterable[ContentItem]) -> list[str]:
    return sorted({tag for item in catalog for tag in item.tags})


class ContentAffinityScorer:
    """Rank educational content for a user.

    Usage::

        scorer = ContentAffinityScorer()
        items = scorer.recommend(user_id, interactions, catalog, limit=10)
    """

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config = config or get_analytics_config()

    @property
    def _cn_config(self) -> ContentConfig:
        return self._config.content

    def rank(
        self,
        profile: InteractionProfile,
        catalog: Iterable[ContentItem],
    ) -> list[ScoredContent]:
        """Score every unviewed item, best first (ties: newest first)."""
        weights = self._cn_config.weights
        scored = [
            ScoredContent(item=item, score=affinity_score(item, profile, weights))
            for item in catalog
            if item.id not in profile.viewed
        ]
        scored.sort(key=lambda s: s.item.published_at, reverse=True)
        scored.sort(key=lambda s: s.score, reverse=True)
        return scored

    def recommend(
        self,
        user_id: UUID,
        interactions: Iterable[Interaction],
        catalog: Iterable[ContentItem],
        limit: int | None = None,
    ) -> list[ContentItem]:
        """Return up to ``limit`` unviewed items for the user.

        Args:
            user_id:      The user being served.
            interactions: The user's interaction rows.
            catalog:      Full content catalog.
            limit:        Maximum items (config default: 10).
        """
        limit = limit or self._cn_config.default_limit
        items = list(catalog)
        profile = build_profile(interactions, items, user_id=user_id)

        personalized = [s.item for s in self.rank(profile, items) if s.score > 0][:limit]

        if len(personalized) < limit:
            chosen = {item.id for item in personalized}
            newest = sorted(items, key=lambda i: i.published_at, reverse=True)
            for item in newest:
                if len(personalized) >= limit:
                    break
                if item.id in profile.viewed or item.id in chosen:
                    continue
                personalized.append(item)
                chosen.add(item.id)

        logger.debug(
            "Recommended %d item(s) for %s (%d touched, limit %d)",
            len(personalized), user_id, len(profile.touched), limit,
        )
        return personalized

    def popular(
        self,
        catalog: Iterable[ContentItem],
        interactions: Iterable[Interaction],
        limit: int | None = None,
    ) -> list[ContentItem]:
        """Most-interacted items across all users (ties: newest first)."""
        limit = limit or self._cn_config.default_limit
        counts = Counter(i.content_id for i in interactions)
        return rank_by_interaction_count(catalog, counts, limit)


def rank_by_interaction_count(
    catalog: Iterable[ContentItem],
    counts: Mapping[UUID, int],
    limit: int,
) -> list[ContentItem]:
    ordered = sorted(catalog, key=lambda i: i.published_at, reverse=True)
    ordered.sort(key=lambda i: counts.get(i.id, 0), reverse=True)
    return ordered[:limit]
