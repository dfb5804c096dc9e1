"""Security-related integration tests."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from larder.config import get_settings
from larder.db.repository import reset_repository_state
from larder.server.app import create_app


@pytest.fixture()
def secure_client(tmp_path, monkeypatch) -> TestClient:
    db_path = tmp_path / "secure.db"
    monkeypatch.setenv("LARDER_DATABASE_PATH", str(db_path))
    monkeypatch.setenv("LARDER_API_TOKEN", "secret-token")
    get_settings.cache_clear()
    reset_repository_state()
    app = create_app()
    client = TestClient(app)
    yield client
    monkeypatch.delenv("LARDER_API_TOKEN", raising=False)
    reset_repository_state()
    get_settings.cache_clear()


def test_writes_require_api_token(secure_client):
    user = {"X-User-ID": "alice"}
    response = secure_client.post("/scan-in", json={"identity": "4011", "name": "Eggs"}, headers=user)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    headers = {**user, "Authorization": "Bearer secret-token"}
    response = secure_client.post("/scan-in", json={"identity": "4011", "name": "Eggs"}, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED


def test_shopping_list_accepts_api_key_header(secure_client):
    user = {"X-User-ID": "alice"}
    response = secure_client.post("/shopping-list", json={"name": "Milk"}, headers=user)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    headers = {**user, "X-API-Key": "secret-token"}
    response = secure_client.post("/shopping-list", json={"name": "Milk"}, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED


def test_requests_without_user_context_are_rejected(client):
    response = client.get("/shopping-list")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = client.get("/shopping-list", headers={"X-User-ID": "   "})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
