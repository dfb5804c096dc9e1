"""
Larder grocery inventory tracker.

The package records scan-in/scan-out events, estimates how quickly each product is
consumed, and keeps a per-user shopping list topped up with restock suggestions.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
