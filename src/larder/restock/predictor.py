"""Restock decisions and display urgency."""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from larder.models.inventory import InventoryItem
from larder.models.prediction import PredictionRecord, RestockPriority, RestockRecommendation

from .policy import DEFAULT_POLICY, RestockPolicy

_PRIORITY_ORDER = {RestockPriority.HIGH: 0, RestockPriority.MEDIUM: 1, RestockPriority.LOW: 2}
# Items without a prediction sort after every predicted one within a tier.
_NO_PREDICTION_DAYS = float("inf")


def should_suggest_restock(record: PredictionRecord, policy: RestockPolicy = DEFAULT_POLICY) -> bool:
    """True once the time since the last scan-out reaches ``threshold_ratio`` of the interval."""

    return record.days_since_last_scan_out >= record.average_interval_days * policy.threshold_ratio


def classify_priority(
    quantity: float,
    low_stock_threshold: float,
    days_until_restock: Optional[float] = None,
    policy: RestockPolicy = DEFAULT_POLICY,
) -> RestockPriority:
    """Classify display urgency from stock level and (optionally) predicted days left."""

    if quantity == 0 or quantity <= low_stock_threshold:
        return RestockPriority.HIGH
    if days_until_restock is not None and days_until_restock <= policy.urgent_days:
        return RestockPriority.HIGH
    if days_until_restock is not None and days_until_restock <= policy.soon_days:
        return RestockPriority.MEDIUM
    if quantity <= 2 * low_stock_threshold:
        return RestockPriority.MEDIUM
    return RestockPriority.LOW


def build_recommendations(
    inventory: Iterable[InventoryItem],
    records: Iterable[PredictionRecord],
    policy: RestockPolicy = DEFAULT_POLICY,
) -> List[RestockRecommendation]:
    """Return high/medium urgency items, most urgent first.

    Active rows are aggregated per identity. Predicted identities with no active rows
    count as out of stock.
    """

    totals: Dict[str, dict] = OrderedDict()
    for item in inventory:
        if not item.is_active:
            continue
        bucket = totals.setdefault(
            item.identity,
            {
                "name": item.name,
                "category": item.category,
                "quantity": 0.0,
                "threshold": item.low_stock_threshold,
            },
        )
        bucket["quantity"] += item.quantity
        bucket["threshold"] = max(bucket["threshold"], item.low_stock_threshold)

    predictions = {record.item_identity: record for record in records}
    for identity, record in predictions.items():
        totals.setdefault(
            identity,
            {
                "name": record.item_name or identity,
                "category": record.category,
                "quantity": 0.0,
                "threshold": 0,
            },
        )

    recommendations: List[RestockRecommendation] = []
    for identity, bucket in totals.items():
        prediction = predictions.get(identity)
        priority = classify_priority(
            bucket["quantity"],
            bucket["threshold"],
            prediction.days_until_restock if prediction else None,
            policy,
        )
        if priority == RestockPriority.LOW:
            continue
        recommendations.append(
            RestockRecommendation(
                item_identity=identity,
                item_name=bucket["name"],
                category=bucket["category"],
                quantity=bucket["quantity"],
                low_stock_threshold=bucket["threshold"],
                priority=priority,
                prediction=prediction,
            )
        )

    recommendations.sort(
        key=lambda rec: (
            _PRIORITY_ORDER[rec.priority],
            rec.prediction.days_until_restock if rec.prediction else _NO_PREDICTION_DAYS,
        )
    )
    return recommendations


__all__ = ["should_suggest_restock", "classify_priority", "build_recommendations"]
