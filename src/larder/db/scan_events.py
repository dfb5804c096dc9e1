"""Scan event log access helpers (append-only)."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from larder import metrics
from larder.errors import require_user
from larder.models.scan import ScanAction, ScanEvent
from larder.timeutils import as_naive_utc, utcnow

from .models import ScanEventORM
from .repository import session_scope


def _to_model(row: ScanEventORM) -> ScanEvent:
    return ScanEvent.model_validate(
        {
            "id": row.id,
            "user_id": row.user_id,
            "item_identity": row.item_identity,
            "item_name": row.item_name,
            "category": row.category,
            "location": row.location,
            "action": row.action,
            "quantity": row.quantity,
            "occurred_at": row.occurred_at,
        }
    )


def _append(
    session: Session,
    *,
    user_id: str,
    item_identity: str,
    action: ScanAction,
    quantity: int = 1,
    item_name: Optional[str] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
    occurred_at: Optional[datetime] = None,
) -> ScanEventORM:
    if quantity < 1:
        raise ValueError("Scan quantity must be a positive integer")
    identity = item_identity.strip()
    if not identity:
        raise ValueError("Item identity is required")

    record = ScanEventORM(
        user_id=user_id,
        item_identity=identity,
        item_name=item_name,
        category=category,
        location=location,
        action=ScanAction(action).value,
        quantity=int(quantity),
        occurred_at=as_naive_utc(occurred_at) if occurred_at is not None else utcnow(),
    )
    session.add(record)
    session.flush()
    metrics.SCAN_EVENTS.labels(action=record.action).inc()
    return record


def append_scan_event(
    user_id: str,
    *,
    item_identity: str,
    action: ScanAction,
    quantity: int = 1,
    item_name: Optional[str] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
    occurred_at: Optional[datetime] = None,
) -> ScanEvent:
    """Append one event to the user's log.

    ``occurred_at`` defaults to the store clock; an explicit value is accepted for
    imports and backfills.
    """

    user_id = require_user(user_id)
    with session_scope() as session:
        record = _append(
            session,
            user_id=user_id,
            item_identity=item_identity,
            action=action,
            quantity=quantity,
            item_name=item_name,
            category=category,
            location=location,
            occurred_at=occurred_at,
        )
        return _to_model(record)


def query_scan_events(user_id: str, identity: Optional[str] = None) -> List[ScanEvent]:
    """Return the user's events (optionally for one identity) oldest first."""

    user_id = require_user(user_id)
    with session_scope() as session:
        statement = select(ScanEventORM).where(ScanEventORM.user_id == user_id)
        if identity is not None:
            statement = statement.where(ScanEventORM.item_identity == identity)
        rows = (
            session.execute(
                statement.order_by(ScanEventORM.occurred_at.asc(), ScanEventORM.id.asc())
            )
            .scalars()
            .all()
        )
        return [_to_model(row) for row in rows]


def latest_event_for_identity(session: Session, user_id: str, identity: str) -> Optional[ScanEventORM]:
    """Return the most recent event carrying display metadata for an identity."""

    return (
        session.execute(
            select(ScanEventORM)
            .where(
                ScanEventORM.user_id == user_id,
                ScanEventORM.item_identity == identity,
                ScanEventORM.item_name.is_not(None),
            )
            .order_by(ScanEventORM.occurred_at.desc(), ScanEventORM.id.desc())
            .limit(1)
        )
        .scalars()
        .first()
    )


__all__ = ["append_scan_event", "query_scan_events", "latest_event_for_identity"]
