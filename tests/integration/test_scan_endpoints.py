"""Integration tests for scan-in/scan-out endpoints."""

from __future__ import annotations

import pytest
from fastapi import status

from tests.integration.utils import user_headers


def test_scan_in_then_out_by_identity(client):
    headers = user_headers()
    response = client.post(
        "/scan-in",
        json={"identity": "4011", "name": "Eggs", "category": "dairy", "quantity": 12},
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    item = response.json()
    assert item["is_active"] is True
    assert item["quantity"] == pytest.approx(12)

    response = client.post("/scan-out", json={"identity": "4011"}, headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == item["id"]
    assert response.json()["is_active"] is False

    response = client.get("/scan-events", params={"identity": "4011"}, headers=headers)
    assert [event["action"] for event in response.json()] == ["scan_in", "scan_out"]


def test_scan_out_twice_conflicts(client):
    headers = user_headers()
    item_id = client.post("/scan-in", json={"identity": "4011", "name": "Eggs"}, headers=headers).json()["id"]

    assert client.post("/scan-out", json={"item_id": item_id}, headers=headers).status_code == 200
    response = client.post("/scan-out", json={"item_id": item_id}, headers=headers)
    assert response.status_code == status.HTTP_409_CONFLICT


def test_scan_out_with_list_flag_adds_definite_entry(client):
    headers = user_headers()
    client.post("/scan-in", json={"identity": "2001", "name": "Milk"}, headers=headers)

    response = client.post("/scan-out", json={"identity": "2001", "add_to_list": True}, headers=headers)
    assert response.status_code == status.HTTP_200_OK

    entries = client.get("/shopping-list", params={"refresh": False}, headers=headers).json()
    assert [(entry["item_name"], entry["quantity"], entry["is_suggested"]) for entry in entries] == [
        ("Milk", 1, False)
    ]


def test_scan_out_requires_a_target(client):
    response = client.post("/scan-out", json={"add_to_list": True}, headers=user_headers())
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_scan_out_unknown_identity_is_not_found(client):
    response = client.post("/scan-out", json={"identity": "9999"}, headers=user_headers())
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_scan_in_unknown_item_without_name_is_rejected(client):
    response = client.post("/scan-in", json={"identity": "0000"}, headers=user_headers())
    assert response.status_code == status.HTTP_400_BAD_REQUEST
