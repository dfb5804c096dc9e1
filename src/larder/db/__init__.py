"""Persistence layer: the scan event log, inventory, and shopping list store."""

from larder.db.inventory import get_active_inventory
from larder.db.scan_events import append_scan_event, query_scan_events
from larder.db.shopping_list import query_shopping_list, upsert_shopping_list_entry

__all__ = [
    "append_scan_event",
    "query_scan_events",
    "get_active_inventory",
    "upsert_shopping_list_entry",
    "query_shopping_list",
]
