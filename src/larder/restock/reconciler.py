"""Shopping list reconciliation against fresh predictions."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Sequence

from larder.models.prediction import PredictionRecord
from larder.models.shopping import ShoppingListDraft, ShoppingListEntry, SuggestedState
from larder.timeutils import days_between, normalize_name

from .policy import DEFAULT_POLICY, RestockPolicy
from .predictor import should_suggest_restock


def _matches(entry: ShoppingListEntry, record: PredictionRecord, record_name: str) -> bool:
    if entry.purchased:
        return False
    if entry.item_identity is not None and entry.item_identity == record.item_identity:
        return True
    # Manual entries may lack an identity; names are unique per user among open entries.
    return normalize_name(entry.item_name) == record_name


def reconcile(
    records: Iterable[PredictionRecord],
    current_entries: Sequence[ShoppingListEntry],
    policy: RestockPolicy = DEFAULT_POLICY,
) -> List[ShoppingListDraft]:
    """Return the suggestion drafts that should be added to ``current_entries``.

    Existing open entries for a predicted item are never modified: a definite entry is
    not downgraded and a second suggestion is never produced.
    """

    drafts: List[ShoppingListDraft] = []
    planned_names: set[str] = set()
    for record in records:
        if not should_suggest_restock(record, policy):
            continue
        item_name = (record.item_name or record.item_identity).strip()
        record_name = normalize_name(item_name)
        if record_name in planned_names:
            continue
        if any(_matches(entry, record, record_name) for entry in current_entries):
            continue
        drafts.append(
            ShoppingListDraft(
                item_name=item_name,
                item_identity=record.item_identity,
                category=record.category,
                quantity=1,
                state=SuggestedState(
                    prediction_confidence=record.confidence,
                    last_scan_out_at=record.last_scan_out_at,
                    average_interval_days=record.average_interval_days,
                ),
            )
        )
        planned_names.add(record_name)
    return drafts


def suggested_days_until_restock(entry: ShoppingListEntry, now: datetime) -> float:
    """Predicted days left for a suggested entry, from the metadata stored on it."""

    if not isinstance(entry.state, SuggestedState):
        raise ValueError(f"Entry {entry.id} is not a suggestion")
    elapsed = days_between(entry.state.last_scan_out_at, now)
    return entry.state.average_interval_days - elapsed


def order_for_display(entries: Iterable[ShoppingListEntry], now: datetime) -> List[ShoppingListEntry]:
    """Definite entries first in insertion order, then suggestions soonest-needed first."""

    open_entries = [entry for entry in entries if not entry.purchased]
    definite = sorted(
        (entry for entry in open_entries if not entry.is_suggested),
        key=lambda entry: (entry.created_at, entry.id),
    )
    suggested = sorted(
        (entry for entry in open_entries if entry.is_suggested),
        key=lambda entry: (
            suggested_days_until_restock(entry, now),
            entry.state.average_interval_days,  # type: ignore[union-attr]
            entry.id,
        ),
    )
    return definite + suggested


__all__ = ["reconcile", "order_for_display", "suggested_days_until_restock"]
