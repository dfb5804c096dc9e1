"""Consumption prediction engine: estimator, restock predictor and shopping list reconciler."""

from larder.restock.estimator import estimate, estimate_all
from larder.restock.policy import DEFAULT_POLICY, RestockPolicy
from larder.restock.predictor import build_recommendations, classify_priority, should_suggest_restock
from larder.restock.reconciler import order_for_display, reconcile

__all__ = [
    "estimate",
    "estimate_all",
    "DEFAULT_POLICY",
    "RestockPolicy",
    "build_recommendations",
    "classify_priority",
    "should_suggest_restock",
    "order_for_display",
    "reconcile",
]
