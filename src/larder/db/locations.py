"""Storage location helpers."""

from __future__ import annotations

from typing import List

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from larder.errors import require_user
from larder.models.inventory import StorageLocation

from .models import StorageLocationORM
from .repository import session_scope


def _to_model(row: StorageLocationORM) -> StorageLocation:
    return StorageLocation.model_validate(
        {"id": row.id, "name": row.name, "created_at": row.created_at}
    )


def get_user_locations(user_id: str) -> List[StorageLocation]:
    """Return the user's locations in the order they were added."""

    user_id = require_user(user_id)
    with session_scope() as session:
        rows = (
            session.execute(
                select(StorageLocationORM)
                .where(StorageLocationORM.user_id == user_id)
                .order_by(StorageLocationORM.created_at.asc(), StorageLocationORM.id.asc())
            )
            .scalars()
            .all()
        )
        return [_to_model(row) for row in rows]


def add_user_location(user_id: str, name: str) -> StorageLocation:
    """Add a location (no-op when the user already has one with that name)."""

    user_id = require_user(user_id)
    location_name = name.strip()
    if not location_name:
        raise ValueError("Location name is required")

    with session_scope() as session:
        session.execute(
            sqlite_insert(StorageLocationORM)
            .values(user_id=user_id, name=location_name)
            .on_conflict_do_nothing(index_elements=["user_id", "name"])
        )
        row = (
            session.execute(
                select(StorageLocationORM).where(
                    StorageLocationORM.user_id == user_id,
                    StorageLocationORM.name == location_name,
                )
            )
            .scalars()
            .one()
        )
        return _to_model(row)


__all__ = ["get_user_locations", "add_user_location"]
