"""Shared pytest fixtures for the Larder test suite."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from larder.config import get_settings
from larder.db.repository import reset_repository_state
from larder.models.scan import ScanAction, ScanEvent
from larder.server.app import create_app

BASE_TIME = datetime(2025, 3, 1, 9, 0, 0)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses an isolated SQLite database location."""

    db_path = tmp_path / "test_larder.db"
    monkeypatch.setenv("LARDER_DATABASE_PATH", str(db_path))
    get_settings.cache_clear()
    reset_repository_state()
    yield
    reset_repository_state()
    monkeypatch.delenv("LARDER_DATABASE_PATH", raising=False)
    get_settings.cache_clear()


@pytest.fixture()
def app() -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app instance for each test and reset overrides."""

    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)


@pytest.fixture()
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture()
def make_event() -> Callable[..., ScanEvent]:
    """Build in-memory scan events at a day offset from BASE_TIME."""

    counter = {"next_id": 1}

    def _make(
        day: float,
        action: ScanAction = ScanAction.SCAN_IN,
        identity: str = "4011",
        name: str | None = "Eggs",
        category: str | None = "dairy",
    ) -> ScanEvent:
        event = ScanEvent(
            id=counter["next_id"],
            user_id="alice",
            item_identity=identity,
            item_name=name,
            category=category,
            action=action,
            quantity=1,
            occurred_at=BASE_TIME + timedelta(days=day),
        )
        counter["next_id"] += 1
        return event

    return _make
