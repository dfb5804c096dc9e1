"""Inventory data access helpers.

Scan-in creates an inventory row and appends a ``scan_in`` event; scan-out stamps
``scan_out_at`` on the row and appends a ``scan_out`` event. Both happen in one
transaction, together with the optional shopping list merge on scan-out.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from larder.config import get_settings
from larder.errors import EntryNotFound, ItemNotActive, require_user
from larder.models.inventory import InventoryItem
from larder.models.scan import ScanAction
from larder.models.shopping import DefiniteState, ShoppingListDraft
from larder.timeutils import as_naive_utc, utcnow

from .models import InventoryItemORM
from .repository import session_scope
from .scan_events import _append, latest_event_for_identity
from .shopping_list import _upsert

logger = logging.getLogger(__name__)

_UNSET = object()


def _to_model(row: InventoryItemORM) -> InventoryItem:
    return InventoryItem.model_validate(
        {
            "id": row.id,
            "user_id": row.user_id,
            "identity": row.identity,
            "name": row.name,
            "category": row.category,
            "location": row.location,
            "quantity": row.quantity,
            "unit": row.unit,
            "low_stock_threshold": row.low_stock_threshold,
            "scan_in_at": row.scan_in_at,
            "scan_out_at": row.scan_out_at,
        }
    )


def _get_owned_item(session: Session, user_id: str, item_id: int) -> InventoryItemORM:
    row = session.get(InventoryItemORM, item_id)
    if row is None or row.user_id != user_id:
        raise EntryNotFound(f"Inventory item {item_id} not found")
    return row


def _active_rows_for_identity(session: Session, user_id: str, identity: str) -> List[InventoryItemORM]:
    return list(
        session.execute(
            select(InventoryItemORM)
            .where(
                InventoryItemORM.user_id == user_id,
                InventoryItemORM.identity == identity,
                InventoryItemORM.scan_out_at.is_(None),
            )
            .order_by(InventoryItemORM.scan_in_at.asc(), InventoryItemORM.id.asc())
        )
        .scalars()
        .all()
    )


def get_active_inventory(
    user_id: str,
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
) -> List[InventoryItem]:
    """Return active items, newest scan-in first, optionally filtered by text or category."""

    user_id = require_user(user_id)
    with session_scope() as session:
        statement = select(InventoryItemORM).where(
            InventoryItemORM.user_id == user_id,
            InventoryItemORM.scan_out_at.is_(None),
        )
        if search and search.strip():
            pattern = f"%{search.strip().lower()}%"
            statement = statement.where(
                or_(
                    func.lower(InventoryItemORM.name).like(pattern),
                    func.lower(InventoryItemORM.identity).like(pattern),
                )
            )
        if category:
            statement = statement.where(InventoryItemORM.category == category)
        rows = (
            session.execute(
                statement.order_by(InventoryItemORM.scan_in_at.desc(), InventoryItemORM.id.desc())
            )
            .scalars()
            .all()
        )
        return [_to_model(row) for row in rows]


def list_categories(user_id: str) -> List[str]:
    """Return the distinct categories present in the user's active inventory."""

    user_id = require_user(user_id)
    with session_scope() as session:
        rows = session.execute(
            select(InventoryItemORM.category)
            .where(
                InventoryItemORM.user_id == user_id,
                InventoryItemORM.scan_out_at.is_(None),
                InventoryItemORM.category.is_not(None),
            )
            .distinct()
            .order_by(InventoryItemORM.category)
        ).all()
        return [row[0] for row in rows]


def get_inventory_item(user_id: str, item_id: int) -> Optional[InventoryItem]:
    user_id = require_user(user_id)
    with session_scope() as session:
        row = session.get(InventoryItemORM, item_id)
        if row is None or row.user_id != user_id:
            return None
        return _to_model(row)


def find_active_by_identity(user_id: str, identity: str) -> Optional[InventoryItem]:
    """Barcode lookup: the oldest active row for ``identity``, if any."""

    user_id = require_user(user_id)
    with session_scope() as session:
        rows = _active_rows_for_identity(session, user_id, identity.strip())
        return _to_model(rows[0]) if rows else None


def scan_in_item(
    user_id: str,
    *,
    identity: str,
    name: Optional[str] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
    quantity: int = 1,
    unit: str = "count",
    low_stock_threshold: Optional[int] = None,
    scanned_at: Optional[datetime] = None,
) -> InventoryItem:
    """Record a new product instance and its ``scan_in`` event.

    Name and category default to the most recent values seen for the identity, so a
    re-purchase only needs the barcode.
    """

    user_id = require_user(user_id)
    identity = identity.strip()
    if not identity:
        raise ValueError("Item identity is required")
    if quantity < 1:
        raise ValueError("Quantity must be a positive integer")
    occurred_at = as_naive_utc(scanned_at) if scanned_at is not None else utcnow()
    threshold = (
        low_stock_threshold
        if low_stock_threshold is not None
        else get_settings().default_low_stock_threshold
    )

    with session_scope() as session:
        final_name = (name or "").strip() or None
        final_category = (category or "").strip() or None
        if final_name is None or final_category is None:
            previous = latest_event_for_identity(session, user_id, identity)
            if previous is not None:
                final_name = final_name or previous.item_name
                final_category = final_category or previous.category
        if not final_name:
            raise ValueError(f"A name is required for unknown item {identity!r}")
        final_location = (location or "").strip() or None

        db_item = InventoryItemORM(
            user_id=user_id,
            identity=identity,
            name=final_name,
            category=final_category,
            location=final_location,
            quantity=float(quantity),
            unit=unit,
            low_stock_threshold=threshold,
            scan_in_at=occurred_at,
        )
        session.add(db_item)
        _append(
            session,
            user_id=user_id,
            item_identity=identity,
            action=ScanAction.SCAN_IN,
            quantity=quantity,
            item_name=final_name,
            category=final_category,
            location=final_location,
            occurred_at=occurred_at,
        )
        session.flush()
        logger.info("Scan-in user=%s identity=%s name=%s quantity=%s", user_id, identity, final_name, quantity)
        return _to_model(db_item)


def _scan_out_row(
    session: Session,
    row: InventoryItemORM,
    *,
    add_to_list: bool,
    scanned_at: Optional[datetime],
) -> InventoryItemORM:
    if row.scan_out_at is not None:
        raise ItemNotActive(f"Inventory item {row.id} was already scanned out")

    occurred_at = as_naive_utc(scanned_at) if scanned_at is not None else utcnow()
    row.scan_out_at = occurred_at
    _append(
        session,
        user_id=row.user_id,
        item_identity=row.identity,
        action=ScanAction.SCAN_OUT,
        quantity=max(1, int(row.quantity)),
        item_name=row.name,
        category=row.category,
        location=row.location,
        occurred_at=occurred_at,
    )
    if add_to_list:
        _upsert(
            session,
            row.user_id,
            ShoppingListDraft(
                item_name=row.name,
                item_identity=row.identity,
                category=row.category,
                quantity=1,
                state=DefiniteState(),
            ),
        )
    session.flush()
    logger.info(
        "Scan-out user=%s identity=%s item_id=%s add_to_list=%s",
        row.user_id,
        row.identity,
        row.id,
        add_to_list,
    )
    return row


def scan_out_item(
    user_id: str,
    item_id: int,
    *,
    add_to_list: bool = False,
    scanned_at: Optional[datetime] = None,
) -> InventoryItem:
    """Soft-remove an item; with ``add_to_list`` the item is also merged onto the shopping list."""

    user_id = require_user(user_id)
    with session_scope() as session:
        row = _get_owned_item(session, user_id, item_id)
        return _to_model(_scan_out_row(session, row, add_to_list=add_to_list, scanned_at=scanned_at))


def scan_out_by_identity(
    user_id: str,
    identity: str,
    *,
    add_to_list: bool = False,
    scanned_at: Optional[datetime] = None,
) -> InventoryItem:
    """Scan out the oldest active row for ``identity``."""

    user_id = require_user(user_id)
    with session_scope() as session:
        rows = _active_rows_for_identity(session, user_id, identity.strip())
        if not rows:
            raise EntryNotFound(f"No active inventory item for {identity!r}")
        return _to_model(_scan_out_row(session, rows[0], add_to_list=add_to_list, scanned_at=scanned_at))


def update_inventory_item(
    user_id: str,
    item_id: int,
    *,
    name: Optional[str] = None,
    quantity: Optional[float] = None,
    unit: Optional[str] = None,
    low_stock_threshold: Optional[int] = None,
    category: Optional[str] | object = _UNSET,
    location: Optional[str] | object = _UNSET,
) -> InventoryItem:
    user_id = require_user(user_id)
    with session_scope() as session:
        db_item = _get_owned_item(session, user_id, item_id)
        if db_item.scan_out_at is not None:
            raise ItemNotActive(f"Inventory item {item_id} was scanned out and can no longer be edited")

        if name is not None:
            if not name.strip():
                raise ValueError("Item name cannot be blank")
            db_item.name = name.strip()
        if quantity is not None:
            db_item.quantity = float(quantity)
        if unit is not None:
            db_item.unit = unit
        if low_stock_threshold is not None:
            db_item.low_stock_threshold = int(low_stock_threshold)
        if category is not _UNSET:
            db_item.category = category  # type: ignore[assignment]
        if location is not _UNSET:
            db_item.location = location  # type: ignore[assignment]

        session.flush()
        return _to_model(db_item)


__all__ = [
    "get_active_inventory",
    "list_categories",
    "get_inventory_item",
    "find_active_by_identity",
    "scan_in_item",
    "scan_out_item",
    "scan_out_by_identity",
    "update_inventory_item",
]
