"""Fixtures for HTTP route tests.

Routes run against the real app with authentication overridden and every
database loader replaced by an ``AsyncMock``; no pool is opened.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.analytics.tests.conftest import TEST_USER_ID
from src.dependencies import AuthContext, get_current_user
from src.main import create_app
from src.services import records

_LOADER_DEFAULTS = {
    "load_user": None,
    "load_partner_links": [],
    "load_recent_cycles": [],
    "load_sperm_panels": [],
    "load_sperm_panel": None,
    "load_catalog": [],
    "load_interactions": [],
    "load_interaction_counts": {},
    "load_appointments": [],
}


@pytest.fixture
def app() -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_current_user] = lambda: AuthContext(
        user_id=TEST_USER_ID, email="maya@example.com"
    )
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    # Not used as a context manager, so the lifespan (DB pool) never runs
    return TestClient(app)


@pytest.fixture
def loaders(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    """Patch every record loader with an AsyncMock returning empty data."""
    mocks = {}
    for name, value in _LOADER_DEFAULTS.items():
        mock = AsyncMock(return_value=value)
        monkeypatch.setattr(records, name, mock)
        mocks[name] = mock
    return SimpleNamespace(**mocks)
