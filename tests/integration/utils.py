"""Shared helpers for integration tests."""

from __future__ import annotations

from larder.config import get_settings


def auth_headers() -> dict[str, str]:
    token = get_settings().api_token
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


def user_headers(user_id: str = "alice") -> dict[str, str]:
    return {"X-User-ID": user_id, **auth_headers()}
