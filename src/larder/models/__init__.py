"""Pydantic models defining shared data contracts."""

from larder.models.inventory import InventoryItem, StorageLocation
from larder.models.prediction import PredictionRecord, RestockPriority, RestockRecommendation
from larder.models.scan import ScanAction, ScanEvent
from larder.models.shopping import (
    DefiniteState,
    EntryState,
    ShoppingListDraft,
    ShoppingListEntry,
    SuggestedState,
)

__all__ = [
    "InventoryItem",
    "StorageLocation",
    "PredictionRecord",
    "RestockPriority",
    "RestockRecommendation",
    "ScanAction",
    "ScanEvent",
    "DefiniteState",
    "EntryState",
    "ShoppingListDraft",
    "ShoppingListEntry",
    "SuggestedState",
]
