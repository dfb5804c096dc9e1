"""Run the prediction engine against a user's stored history."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from larder import metrics
from larder.db.inventory import get_active_inventory
from larder.db.scan_events import query_scan_events
from larder.db.shopping_list import insert_suggestions, query_shopping_list
from larder.errors import require_user
from larder.models.prediction import PredictionRecord, RestockRecommendation
from larder.models.shopping import ShoppingListEntry
from larder.timeutils import as_naive_utc, utcnow

from .estimator import estimate_all
from .policy import RestockPolicy
from .predictor import build_recommendations
from .reconciler import order_for_display, reconcile

logger = logging.getLogger(__name__)


def predict_for_user(
    user_id: str,
    *,
    now: Optional[datetime] = None,
    policy: Optional[RestockPolicy] = None,
) -> List[PredictionRecord]:
    """Return a prediction for every identity with enough history, soonest restock first."""

    user_id = require_user(user_id)
    policy = policy or RestockPolicy.from_settings()
    current = as_naive_utc(now) if now is not None else utcnow()
    records = estimate_all(query_scan_events(user_id), current, policy)
    return sorted(records, key=lambda record: (record.days_until_restock, record.average_interval_days))


def reconcile_shopping_list(
    user_id: str,
    *,
    now: Optional[datetime] = None,
    policy: Optional[RestockPolicy] = None,
) -> List[ShoppingListEntry]:
    """Add restock suggestions for due items and return the open list in display order."""

    user_id = require_user(user_id)
    policy = policy or RestockPolicy.from_settings()
    current = as_naive_utc(now) if now is not None else utcnow()

    records = predict_for_user(user_id, now=current, policy=policy)
    drafts = reconcile(records, query_shopping_list(user_id), policy)
    if drafts:
        created = 0
        for entry, inserted in insert_suggestions(user_id, drafts):
            result = "created" if inserted else "skipped"
            metrics.SHOPPING_SUGGESTIONS.labels(result=result).inc()
            created += int(inserted)
            logger.debug("Suggestion %s user=%s name=%s", result, user_id, entry.item_name)
        logger.info(
            "Reconciled shopping list user=%s predictions=%s suggestions_added=%s",
            user_id,
            len(records),
            created,
        )
    return order_for_display(query_shopping_list(user_id), current)


def get_shopping_list(
    user_id: str,
    *,
    refresh: bool = True,
    now: Optional[datetime] = None,
    policy: Optional[RestockPolicy] = None,
) -> List[ShoppingListEntry]:
    """Return the open list for display, reconciling first unless ``refresh`` is false."""

    if refresh:
        return reconcile_shopping_list(user_id, now=now, policy=policy)
    current = as_naive_utc(now) if now is not None else utcnow()
    return order_for_display(query_shopping_list(require_user(user_id)), current)


def recommendations_for_user(
    user_id: str,
    *,
    now: Optional[datetime] = None,
    policy: Optional[RestockPolicy] = None,
) -> List[RestockRecommendation]:
    """Return high and medium urgency items for the user's stock, most urgent first."""

    user_id = require_user(user_id)
    policy = policy or RestockPolicy.from_settings()
    records = predict_for_user(user_id, now=now, policy=policy)
    return build_recommendations(get_active_inventory(user_id), records, policy)


__all__ = [
    "predict_for_user",
    "reconcile_shopping_list",
    "get_shopping_list",
    "recommendations_for_user",
]
