from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from larder.db import append_scan_event, query_scan_events
from larder.models.scan import ScanAction

BASE = datetime(2025, 3, 1, 9, 0, 0)


def test_events_are_returned_oldest_first():
    append_scan_event("alice", item_identity="4011", action=ScanAction.SCAN_OUT, occurred_at=BASE + timedelta(days=2))
    append_scan_event("alice", item_identity="4011", action=ScanAction.SCAN_IN, occurred_at=BASE)

    events = query_scan_events("alice")

    assert [event.action for event in events] == [ScanAction.SCAN_IN, ScanAction.SCAN_OUT]


def test_query_filters_by_identity_and_user():
    append_scan_event("alice", item_identity="4011", action=ScanAction.SCAN_IN, item_name="Eggs")
    append_scan_event("alice", item_identity="2001", action=ScanAction.SCAN_IN, item_name="Milk")
    append_scan_event("bob", item_identity="4011", action=ScanAction.SCAN_IN, item_name="Eggs")

    assert [event.item_name for event in query_scan_events("alice", "4011")] == ["Eggs"]
    assert len(query_scan_events("alice")) == 2
    assert len(query_scan_events("bob")) == 1


def test_aware_timestamps_are_stored_as_utc():
    occurred = datetime(2025, 3, 1, 11, 0, tzinfo=timezone(timedelta(hours=2)))

    event = append_scan_event("alice", item_identity="4011", action=ScanAction.SCAN_IN, occurred_at=occurred)

    assert event.occurred_at == datetime(2025, 3, 1, 9, 0)


@pytest.mark.parametrize("identity, quantity", [("  ", 1), ("4011", 0)])
def test_invalid_events_are_rejected(identity, quantity):
    with pytest.raises(ValueError):
        append_scan_event("alice", item_identity=identity, action=ScanAction.SCAN_IN, quantity=quantity)

    assert query_scan_events("alice") == []
