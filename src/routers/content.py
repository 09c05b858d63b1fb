"""Educational content ranking endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query

from src.analytics.content_affinity import (
    ContentAffinityScorer,
    list_categories,
    list_tags,
    rank_by_interaction_count,
)
from src.analytics.records import ContentItem
from src.dependencies import AppSettings, CurrentUser, EngineConfig
from src.models.analytics import ContentItemRead
from src.services import records

router = APIRouter(prefix="/content", tags=["education"])


def _read(item: ContentItem) -> ContentItemRead:
    return ContentItemRead(
        id=item.id,
        title=item.title,
        category=item.category,
        tags=sorted(item.tags),
        author=item.author,
        published_at=item.published_at,
    )


def _check_limit(limit: int | None, settings: AppSettings) -> None:
    if limit is not None and limit > settings.max_recommendations:
        raise HTTPException(
            status_code=400,
            detail=f"limit must be <= {settings.max_recommendations}",
        )


@router.get("/recommended", response_model=list[ContentItemRead])
async def recommended_content(
    user: CurrentUser,
    config: EngineConfig,
    settings: AppSettings,
    limit: int | None = Query(default=None, ge=1),
) -> Any:
    """Unviewed content ranked by the user's interaction affinity."""
    _check_limit(limit, settings)
    catalog = await records.load_catalog()
    interactions = await records.load_interactions(user.user_id)
    items = ContentAffinityScorer(config).recommend(
        user.user_id, interactions, catalog, limit=limit
    )
    return [_read(i) for i in items]


@router.get("/popular", response_model=list[ContentItemRead])
async def popular_content(
    user: CurrentUser,
    config: EngineConfig,
    settings: AppSettings,
    limit: int | None = Query(default=None, ge=1),
) -> Any:
    _check_limit(limit, settings)
    catalog = await records.load_catalog()
    counts = await records.load_interaction_counts()
    items = rank_by_interaction_count(
        catalog, counts, limit or config.content.default_limit
    )
    return [_read(i) for i in items]


@router.get("/categories", response_model=list[str])
async def content_categories(user: CurrentUser) -> Any:
    return list_categories(await records.load_catalog())


@router.get("/tags", response_model=list[str])
async def content_tags(user: CurrentUser) -> Any:
    return list_tags(await records.load_catalog())
