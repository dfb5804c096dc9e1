"""Exceptions raised by the Larder core."""

from __future__ import annotations


class LarderError(Exception):
    """Base class for Larder failures."""


class NotAuthenticated(LarderError):
    """Raised when an operation is attempted without a user context."""


class StoreUnavailable(LarderError):
    """Raised when the backing store cannot be reached or fails mid-operation."""


class EntryNotFound(LarderError, ValueError):
    """Raised when a record is missing, owned by another user, or already closed."""


class ItemNotActive(LarderError):
    """Raised when a scanned-out inventory item is scanned out or edited again."""


def require_user(user_id: str | None) -> str:
    """Return a normalized user id or raise ``NotAuthenticated``."""

    normalized = (user_id or "").strip()
    if not normalized:
        raise NotAuthenticated("A user id is required for this operation")
    return normalized


__all__ = [
    "LarderError",
    "NotAuthenticated",
    "StoreUnavailable",
    "EntryNotFound",
    "ItemNotActive",
    "require_user",
]
