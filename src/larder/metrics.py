"""Prometheus metrics definitions for Larder."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "larder_http_requests_total",
    "Total number of HTTP requests processed by the Larder API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "larder_http_request_duration_seconds",
    "Latency of HTTP requests processed by the Larder API",
    ["method", "path"],
)

SCAN_EVENTS = Counter(
    "larder_scan_events_total",
    "Number of scan events appended to the event log",
    ["action"],
)

SHOPPING_SUGGESTIONS = Counter(
    "larder_shopping_suggestions_total",
    "Restock suggestions considered during shopping list reconciliation",
    ["result"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SCAN_EVENTS",
    "SHOPPING_SUGGESTIONS",
]
