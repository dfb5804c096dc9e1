"""Shopping list persistence helpers.

Every write that can merge into an existing entry goes through a single
``INSERT ... ON CONFLICT`` statement against the partial unique index on
``(user_id, normalized_name) WHERE purchased = 0``, so two racing requests for the
same item accumulate onto one row instead of creating duplicates.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select, text
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from larder.errors import EntryNotFound, require_user
from larder.models.shopping import (
    DefiniteState,
    ShoppingListDraft,
    ShoppingListEntry,
    SuggestedState,
)
from larder.timeutils import normalize_name, utcnow

from .models import OPEN_ENTRY_PREDICATE, ShoppingListEntryORM
from .repository import session_scope

logger = logging.getLogger(__name__)


def _to_model(row: ShoppingListEntryORM) -> ShoppingListEntry:
    if row.is_suggested:
        state: SuggestedState | DefiniteState = SuggestedState(
            prediction_confidence=row.prediction_confidence or 0.0,
            last_scan_out_at=row.last_scan_out_at or row.created_at,
            average_interval_days=row.average_interval_days or 0.0,
        )
    else:
        state = DefiniteState()
    return ShoppingListEntry.model_validate(
        {
            "id": row.id,
            "user_id": row.user_id,
            "item_name": row.item_name,
            "item_identity": row.item_identity,
            "category": row.category,
            "quantity": row.quantity,
            "state": state,
            "purchased": row.purchased,
            "purchased_at": row.purchased_at,
            "created_at": row.created_at,
            "updated_at": row.updated_at,
        }
    )


def _open_entries(session: Session, user_id: str) -> List[ShoppingListEntryORM]:
    return list(
        session.execute(
            select(ShoppingListEntryORM)
            .where(
                ShoppingListEntryORM.user_id == user_id,
                ShoppingListEntryORM.purchased.is_(False),
            )
            .order_by(ShoppingListEntryORM.created_at.asc(), ShoppingListEntryORM.id.asc())
            .execution_options(populate_existing=True)
        )
        .scalars()
        .all()
    )


def _get_open_entry(session: Session, user_id: str, entry_id: int) -> ShoppingListEntryORM:
    row = session.get(ShoppingListEntryORM, entry_id)
    if row is None or row.user_id != user_id or row.purchased:
        raise EntryNotFound(f"Shopping list entry {entry_id} not found")
    return row


def _upsert(session: Session, user_id: str, draft: ShoppingListDraft) -> Tuple[ShoppingListEntryORM, bool]:
    """Write ``draft`` atomically and return the open row plus whether the statement changed a row.

    Definite drafts merge into an existing open entry (quantity added, state forced to
    definite); suggested drafts never touch an existing entry, so for them the flag
    distinguishes a fresh insert from a skipped one.
    """

    item_name = draft.item_name.strip()
    if not item_name:
        raise ValueError("Item name is required")
    normalized = normalize_name(item_name)
    now = utcnow()
    table = ShoppingListEntryORM.__table__
    suggested = isinstance(draft.state, SuggestedState)

    values: dict[str, object] = {
        "user_id": user_id,
        "item_name": item_name,
        "normalized_name": normalized,
        "item_identity": draft.item_identity,
        "category": draft.category,
        "quantity": draft.quantity,
        "is_suggested": suggested,
        "prediction_confidence": draft.state.prediction_confidence if suggested else None,
        "last_scan_out_at": draft.state.last_scan_out_at if suggested else None,
        "average_interval_days": draft.state.average_interval_days if suggested else None,
        "purchased": False,
        "created_at": now,
        "updated_at": now,
    }
    statement = sqlite_insert(table).values(**values)
    conflict_target = {
        "index_elements": [table.c.user_id, table.c.normalized_name],
        "index_where": text(OPEN_ENTRY_PREDICATE),
    }
    if suggested:
        statement = statement.on_conflict_do_nothing(**conflict_target)
    else:
        statement = statement.on_conflict_do_update(
            **conflict_target,
            set_={
                "quantity": table.c.quantity + statement.excluded.quantity,
                "is_suggested": False,
                "prediction_confidence": None,
                "last_scan_out_at": None,
                "average_interval_days": None,
                "item_identity": func.coalesce(table.c.item_identity, statement.excluded.item_identity),
                "category": func.coalesce(table.c.category, statement.excluded.category),
                "updated_at": now,
            },
        )
    result = session.execute(statement)
    # DO NOTHING reports zero affected rows when an open entry already exists.
    inserted = bool(result.rowcount)

    row = (
        session.execute(
            select(ShoppingListEntryORM)
            .where(
                ShoppingListEntryORM.user_id == user_id,
                ShoppingListEntryORM.normalized_name == normalized,
                ShoppingListEntryORM.purchased.is_(False),
            )
            .execution_options(populate_existing=True)
        )
        .scalars()
        .one()
    )
    return row, inserted


def query_shopping_list(user_id: str, purchased: bool = False) -> List[ShoppingListEntry]:
    """Return the user's entries in insertion order (open entries by default)."""

    user_id = require_user(user_id)
    with session_scope() as session:
        if not purchased:
            return [_to_model(row) for row in _open_entries(session, user_id)]
        rows = (
            session.execute(
                select(ShoppingListEntryORM)
                .where(
                    ShoppingListEntryORM.user_id == user_id,
                    ShoppingListEntryORM.purchased.is_(True),
                )
                .order_by(ShoppingListEntryORM.purchased_at.desc(), ShoppingListEntryORM.id.desc())
            )
            .scalars()
            .all()
        )
        return [_to_model(row) for row in rows]


def get_shopping_entry(user_id: str, entry_id: int) -> Optional[ShoppingListEntry]:
    user_id = require_user(user_id)
    with session_scope() as session:
        row = session.get(ShoppingListEntryORM, entry_id)
        if row is None or row.user_id != user_id or row.purchased:
            return None
        return _to_model(row)


def upsert_shopping_list_entry(user_id: str, draft: ShoppingListDraft) -> ShoppingListEntry:
    """Insert ``draft`` or merge it into the user's open entry with the same name."""

    user_id = require_user(user_id)
    with session_scope() as session:
        row, _ = _upsert(session, user_id, draft)
        return _to_model(row)


def insert_suggestions(
    user_id: str, drafts: List[ShoppingListDraft]
) -> List[Tuple[ShoppingListEntry, bool]]:
    """Insert suggestion drafts in one transaction, skipping names that already have an open entry."""

    user_id = require_user(user_id)
    results: List[Tuple[ShoppingListEntry, bool]] = []
    with session_scope() as session:
        for draft in drafts:
            if not isinstance(draft.state, SuggestedState):
                raise ValueError(f"Draft for {draft.item_name!r} is not a suggestion")
            row, inserted = _upsert(session, user_id, draft)
            results.append((_to_model(row), inserted))
    return results


def add_definite(
    user_id: str,
    name: str,
    *,
    identity: Optional[str] = None,
    category: Optional[str] = None,
    quantity: int = 1,
) -> ShoppingListEntry:
    """Add a confirmed entry, accumulating quantity onto an open entry of the same name."""

    draft = ShoppingListDraft(
        item_name=name,
        item_identity=identity,
        category=category,
        quantity=quantity,
        state=DefiniteState(),
    )
    entry = upsert_shopping_list_entry(user_id, draft)
    logger.info(
        "Shopping list definite add user=%s name=%s quantity=%s total=%s",
        entry.user_id,
        entry.item_name,
        quantity,
        entry.quantity,
    )
    return entry


def convert_suggestion_to_definite(user_id: str, entry_id: int) -> ShoppingListEntry:
    """Promote a suggestion to a definite entry; already-definite entries are left as-is."""

    user_id = require_user(user_id)
    with session_scope() as session:
        row = _get_open_entry(session, user_id, entry_id)
        if row.is_suggested:
            row.is_suggested = False
            row.prediction_confidence = None
            row.last_scan_out_at = None
            row.average_interval_days = None
            session.flush()
        return _to_model(row)


def mark_purchased(user_id: str, entry_id: int) -> ShoppingListEntry:
    user_id = require_user(user_id)
    with session_scope() as session:
        row = _get_open_entry(session, user_id, entry_id)
        row.purchased = True
        row.purchased_at = utcnow()
        session.flush()
        return _to_model(row)


def remove_entry(user_id: str, entry_id: int) -> None:
    user_id = require_user(user_id)
    with session_scope() as session:
        row = _get_open_entry(session, user_id, entry_id)
        session.delete(row)


__all__ = [
    "query_shopping_list",
    "get_shopping_entry",
    "upsert_shopping_list_entry",
    "insert_suggestions",
    "add_definite",
    "convert_suggestion_to_definite",
    "mark_purchased",
    "remove_entry",
]
