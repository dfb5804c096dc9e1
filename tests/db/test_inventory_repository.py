from __future__ import annotations

from datetime import datetime, timedelta

import pytest

import larder.db.inventory as inventory_module
from larder.db.inventory import (
    find_active_by_identity,
    get_active_inventory,
    get_inventory_item,
    list_categories,
    scan_in_item,
    scan_out_by_identity,
    scan_out_item,
    update_inventory_item,
)
from larder.db.scan_events import query_scan_events
from larder.db.shopping_list import query_shopping_list
from larder.errors import EntryNotFound, ItemNotActive
from larder.models.scan import ScanAction

BASE = datetime(2025, 3, 1, 9, 0, 0)


def test_scan_in_creates_item_and_event():
    item = scan_in_item("alice", identity="4011", name="Eggs", category="dairy", location="Fridge", quantity=12)

    assert item.is_active
    assert item.quantity == 12
    assert item.low_stock_threshold == 1
    events = query_scan_events("alice")
    assert [(event.action, event.quantity, event.location) for event in events] == [
        (ScanAction.SCAN_IN, 12, "Fridge")
    ]


def test_repeat_scan_in_reuses_known_name_and_category():
    scan_in_item("alice", identity="4011", name="Eggs", category="dairy")

    again = scan_in_item("alice", identity="4011")

    assert again.name == "Eggs"
    assert again.category == "dairy"


def test_scan_in_unknown_item_needs_a_name():
    with pytest.raises(ValueError):
        scan_in_item("alice", identity="0000")

    assert query_scan_events("alice") == []


def test_scan_out_marks_row_and_logs_event():
    item = scan_in_item("alice", identity="4011", name="Eggs", scanned_at=BASE)

    removed = scan_out_item("alice", item.id, scanned_at=BASE + timedelta(days=3))

    assert not removed.is_active
    assert removed.scan_out_at == BASE + timedelta(days=3)
    assert get_active_inventory("alice") == []
    assert [event.action for event in query_scan_events("alice", "4011")] == [
        ScanAction.SCAN_IN,
        ScanAction.SCAN_OUT,
    ]


def test_second_scan_out_is_rejected():
    item = scan_in_item("alice", identity="4011", name="Eggs")
    scan_out_item("alice", item.id)

    with pytest.raises(ItemNotActive):
        scan_out_item("alice", item.id)

    assert len(query_scan_events("alice")) == 2


def test_scan_out_with_list_flag_merges_onto_shopping_list():
    for _ in range(2):
        scan_in_item("alice", identity="2001", name="Milk", category="dairy")
    scan_out_by_identity("alice", "2001", add_to_list=True)
    scan_out_by_identity("alice", "2001", add_to_list=True)

    entries = query_shopping_list("alice")
    assert len(entries) == 1
    assert entries[0].item_name == "Milk"
    assert entries[0].item_identity == "2001"
    assert entries[0].quantity == 2
    assert not entries[0].is_suggested


def test_failed_list_merge_rolls_back_scan_out(monkeypatch):
    item = scan_in_item("alice", identity="2001", name="Milk")

    def _fail(*args, **kwargs):
        raise RuntimeError("merge failed")

    monkeypatch.setattr(inventory_module, "_upsert", _fail)

    with pytest.raises(RuntimeError):
        scan_out_item("alice", item.id, add_to_list=True)

    assert get_inventory_item("alice", item.id).is_active
    assert [event.action for event in query_scan_events("alice")] == [ScanAction.SCAN_IN]


def test_scan_out_by_identity_picks_oldest_active_row():
    first = scan_in_item("alice", identity="4011", name="Eggs", scanned_at=BASE)
    second = scan_in_item("alice", identity="4011", name="Eggs", scanned_at=BASE + timedelta(days=1))

    removed = scan_out_by_identity("alice", "4011")

    assert removed.id == first.id
    assert find_active_by_identity("alice", "4011").id == second.id


def test_scan_out_unknown_identity_raises():
    with pytest.raises(EntryNotFound):
        scan_out_by_identity("alice", "9999")


def test_active_inventory_filters_and_orders():
    scan_in_item("alice", identity="1", name="Cheddar", category="dairy", scanned_at=BASE)
    scan_in_item("alice", identity="2", name="Apples", category="produce", scanned_at=BASE + timedelta(hours=1))
    scan_in_item("bob", identity="3", name="Chard", category="produce")

    assert [item.name for item in get_active_inventory("alice")] == ["Apples", "Cheddar"]
    assert [item.name for item in get_active_inventory("alice", search="ched")] == ["Cheddar"]
    assert [item.name for item in get_active_inventory("alice", category="produce")] == ["Apples"]
    assert list_categories("alice") == ["dairy", "produce"]


def test_update_item_fields_and_clear_location():
    item = scan_in_item("alice", identity="4011", name="Eggs", location="Fridge")

    updated = update_inventory_item("alice", item.id, quantity=6, low_stock_threshold=2, location=None)

    assert updated.quantity == 6
    assert updated.low_stock_threshold == 2
    assert updated.location is None


def test_scanned_out_item_cannot_be_edited():
    item = scan_in_item("alice", identity="4011", name="Eggs")
    scan_out_item("alice", item.id)

    with pytest.raises(ItemNotActive):
        update_inventory_item("alice", item.id, quantity=3)


def test_items_of_other_users_are_not_found():
    item = scan_in_item("alice", identity="4011", name="Eggs")

    assert get_inventory_item("bob", item.id) is None
    with pytest.raises(EntryNotFound):
        scan_out_item("bob", item.id)


def test_blank_name_update_is_rejected_and_scan_out_still_merges():
    item = scan_in_item("alice", identity="2001", name="Milk")

    with pytest.raises(ValueError):
        update_inventory_item("alice", item.id, name="   ")

    assert get_inventory_item("alice", item.id).name == "Milk"
    scan_out_item("alice", item.id, add_to_list=True)
    assert [entry.item_name for entry in query_shopping_list("alice")] == ["Milk"]
