from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from functools import partial

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from larder.db.inventory import scan_in_item, scan_out_item
from larder.db.repository import get_engine
from larder.db.shopping_list import (
    add_definite,
    convert_suggestion_to_definite,
    get_shopping_entry,
    insert_suggestions,
    mark_purchased,
    query_shopping_list,
    remove_entry,
    upsert_shopping_list_entry,
)
from larder.errors import EntryNotFound, NotAuthenticated, StoreUnavailable
from larder.models.shopping import DefiniteState, ShoppingListDraft, SuggestedState


def _suggestion(name: str, identity: str | None = None) -> ShoppingListDraft:
    return ShoppingListDraft(
        item_name=name,
        item_identity=identity,
        category="dairy",
        state=SuggestedState(
            prediction_confidence=0.6,
            last_scan_out_at=datetime(2025, 3, 1, 9, 0, 0),
            average_interval_days=7.5,
        ),
    )


def test_two_definite_adds_merge_quantities():
    first = add_definite("alice", "Milk")
    second = add_definite("alice", "Milk")

    assert second.id == first.id
    assert second.quantity == 2
    assert not second.is_suggested
    assert len(query_shopping_list("alice")) == 1


def test_merge_matches_names_case_insensitively():
    add_definite("alice", "Greek Yogurt", quantity=2)
    merged = add_definite("alice", "  greek   yogurt ", identity="5050", category="dairy")

    assert merged.quantity == 3
    assert merged.item_name == "Greek Yogurt"
    assert merged.item_identity == "5050"
    assert merged.category == "dairy"


def test_definite_add_upgrades_a_suggestion():
    [(suggestion, inserted)] = insert_suggestions("alice", [_suggestion("Eggs", "4011")])
    assert inserted

    merged = add_definite("alice", "eggs")

    assert merged.id == suggestion.id
    assert merged.quantity == 2
    assert isinstance(merged.state, DefiniteState)


def test_suggestion_never_touches_existing_entry():
    manual = add_definite("alice", "Eggs", quantity=3)

    [(entry, inserted)] = insert_suggestions("alice", [_suggestion("Eggs", "4011")])

    assert not inserted
    assert entry.id == manual.id
    assert entry.quantity == 3
    assert not entry.is_suggested


def test_upsert_rejects_blank_names():
    with pytest.raises(ValueError):
        upsert_shopping_list_entry("alice", ShoppingListDraft(item_name="   "))


def test_insert_suggestions_rejects_definite_drafts():
    with pytest.raises(ValueError):
        insert_suggestions("alice", [ShoppingListDraft(item_name="Milk")])

    assert query_shopping_list("alice") == []


def test_promotion_is_idempotent():
    [(suggestion, _)] = insert_suggestions("alice", [_suggestion("Bread")])
    assert suggestion.is_suggested

    promoted = convert_suggestion_to_definite("alice", suggestion.id)
    again = convert_suggestion_to_definite("alice", suggestion.id)

    assert isinstance(promoted.state, DefiniteState)
    assert again.id == promoted.id
    assert isinstance(again.state, DefiniteState)
    assert again.quantity == 1
    assert len(query_shopping_list("alice")) == 1


def test_purchase_closes_entry_and_frees_the_name():
    entry = add_definite("alice", "Milk")

    purchased = mark_purchased("alice", entry.id)
    fresh = add_definite("alice", "Milk")

    assert purchased.purchased
    assert purchased.purchased_at is not None
    assert fresh.id != entry.id
    assert fresh.quantity == 1
    assert [row.id for row in query_shopping_list("alice")] == [fresh.id]
    assert [row.id for row in query_shopping_list("alice", purchased=True)] == [entry.id]
    assert get_shopping_entry("alice", entry.id) is None


def test_purchased_entry_cannot_be_purchased_again():
    entry = add_definite("alice", "Milk")
    mark_purchased("alice", entry.id)

    with pytest.raises(EntryNotFound):
        mark_purchased("alice", entry.id)


def test_remove_entry_deletes_row():
    entry = add_definite("alice", "Coffee")

    remove_entry("alice", entry.id)

    assert query_shopping_list("alice") == []
    with pytest.raises(EntryNotFound):
        remove_entry("alice", entry.id)


def test_entries_are_isolated_per_user():
    entry = add_definite("alice", "Milk")
    add_definite("bob", "Milk")

    assert len(query_shopping_list("alice")) == 1
    assert get_shopping_entry("bob", entry.id) is None
    with pytest.raises(EntryNotFound):
        convert_suggestion_to_definite("bob", entry.id)


def test_operations_require_a_user():
    with pytest.raises(NotAuthenticated):
        add_definite("", "Milk")
    with pytest.raises(NotAuthenticated):
        query_shopping_list(" ")


def test_driver_failure_surfaces_as_store_unavailable(monkeypatch):
    get_engine()

    def _boom(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(Session, "execute", _boom)

    with pytest.raises(StoreUnavailable):
        query_shopping_list("alice")


def test_concurrent_adds_and_scan_outs_accumulate_on_one_entry():
    item_ids = [scan_in_item("alice", identity="2001", name="Milk").id for _ in range(8)]
    calls = [partial(add_definite, "alice", "Milk") for _ in range(12)]
    calls += [partial(scan_out_item, "alice", item_id, add_to_list=True) for item_id in item_ids]

    with ThreadPoolExecutor(max_workers=4) as executor:
        futures = [executor.submit(call) for call in calls]
        for future in futures:
            future.result()

    [entry] = query_shopping_list("alice")
    assert entry.item_name == "Milk"
    assert entry.quantity == len(calls)
    assert not entry.is_suggested
