"""Dependency definitions for the Larder API server."""

from __future__ import annotations

from typing import Callable, List, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from larder.config import get_settings
from larder.db.inventory import (
    find_active_by_identity,
    get_active_inventory,
    list_categories,
    scan_in_item,
    scan_out_by_identity,
    scan_out_item,
    update_inventory_item,
)
from larder.db.locations import add_user_location, get_user_locations
from larder.db.scan_events import query_scan_events
from larder.db.shopping_list import (
    add_definite,
    convert_suggestion_to_definite,
    mark_purchased,
    remove_entry,
)
from larder.models.inventory import InventoryItem, StorageLocation
from larder.models.prediction import PredictionRecord, RestockRecommendation
from larder.models.scan import ScanEvent
from larder.models.shopping import ShoppingListEntry
from larder.restock.service import (
    get_shopping_list,
    predict_for_user,
    recommendations_for_user,
    reconcile_shopping_list,
)

InventoryProvider = Callable[[str, Optional[str], Optional[str]], List[InventoryItem]]
CategoryProvider = Callable[[str], List[str]]
InventoryLookup = Callable[[str, str], Optional[InventoryItem]]
InventoryUpdater = Callable[[str, int, dict], InventoryItem]
ScanInRecorder = Callable[[str, dict], InventoryItem]
ScanOutRecorder = Callable[[str, Optional[int], Optional[str], bool], InventoryItem]
ScanEventProvider = Callable[[str, Optional[str]], List[ScanEvent]]
LocationProvider = Callable[[str], List[StorageLocation]]
LocationCreator = Callable[[str, str], StorageLocation]
PredictionProvider = Callable[[str], List[PredictionRecord]]
RecommendationProvider = Callable[[str], List[RestockRecommendation]]
ShoppingListProvider = Callable[[str, bool], List[ShoppingListEntry]]
ShoppingListReconciler = Callable[[str], List[ShoppingListEntry]]
ShoppingListCreator = Callable[[str, dict], ShoppingListEntry]
ShoppingListPromoter = Callable[[str, int], ShoppingListEntry]
ShoppingListPurchaser = Callable[[str, int], ShoppingListEntry]
ShoppingListDeleter = Callable[[str, int], None]


def get_inventory_provider() -> InventoryProvider:
    return lambda user_id, search=None, category=None: get_active_inventory(
        user_id, search=search, category=category
    )


def get_category_provider() -> CategoryProvider:
    return list_categories


def get_inventory_lookup() -> InventoryLookup:
    return find_active_by_identity


def get_inventory_updater() -> InventoryUpdater:
    return lambda user_id, item_id, payload: update_inventory_item(user_id, item_id, **payload)


def get_scan_in_recorder() -> ScanInRecorder:
    return lambda user_id, payload: scan_in_item(user_id, **payload)


def get_scan_out_recorder() -> ScanOutRecorder:
    def _record(
        user_id: str, item_id: Optional[int], identity: Optional[str], add_to_list: bool
    ) -> InventoryItem:
        if item_id is not None:
            return scan_out_item(user_id, item_id, add_to_list=add_to_list)
        return scan_out_by_identity(user_id, identity or "", add_to_list=add_to_list)

    return _record


def get_scan_event_provider() -> ScanEventProvider:
    return lambda user_id, identity=None: query_scan_events(user_id, identity)


def get_location_provider() -> LocationProvider:
    return get_user_locations


def get_location_creator() -> LocationCreator:
    return add_user_location


def get_prediction_provider() -> PredictionProvider:
    return lambda user_id: predict_for_user(user_id)


def get_recommendation_provider() -> RecommendationProvider:
    return lambda user_id: recommendations_for_user(user_id)


def get_shopping_list_provider() -> ShoppingListProvider:
    return lambda user_id, refresh=True: get_shopping_list(user_id, refresh=refresh)


def get_shopping_list_reconciler() -> ShoppingListReconciler:
    return lambda user_id: reconcile_shopping_list(user_id)


def get_shopping_list_creator() -> ShoppingListCreator:
    return lambda user_id, payload: add_definite(user_id, **payload)


def get_shopping_list_promoter() -> ShoppingListPromoter:
    return convert_suggestion_to_definite


def get_shopping_list_purchaser() -> ShoppingListPurchaser:
    return mark_purchased


def get_shopping_list_deleter() -> ShoppingListDeleter:
    return remove_entry


def get_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(default=None, alias="X-User-ID"),
) -> str:
    """Return the calling user's id; every data endpoint is scoped to it."""

    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing user context")
    request.state.user_id = user_id
    return user_id


def require_api_token(
    request: Request,
    settings=Depends(get_settings),
) -> None:
    """Ensure requests carry the configured API token when required."""

    token = settings.api_token
    if not token:
        return

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.split("Bearer ")[-1].strip() == token:
        return

    if request.headers.get("X-API-Key") == token:
        return

    if request.query_params.get("api_token") == token:
        return

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
