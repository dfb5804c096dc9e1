"""Prediction and recommendation models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class PredictionRecord(BaseModel):
    """Consumption estimate for one item identity, derived from its scan history."""

    item_identity: str
    item_name: Optional[str] = Field(default=None)
    category: Optional[str] = Field(default=None)
    average_interval_days: float = Field(ge=0)
    confidence: float = Field(ge=0, le=1)
    days_since_last_scan_out: float
    last_scan_out_at: datetime
    scan_in_count: int = Field(ge=2)
    scan_out_count: int = Field(ge=2)

    model_config = ConfigDict(frozen=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def days_until_restock(self) -> float:
        """Days left before the average repurchase point; negative once overdue."""
        return self.average_interval_days - self.days_since_last_scan_out


class RestockPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RestockRecommendation(BaseModel):
    """Display urgency for one product, combining stock level and prediction."""

    item_identity: str
    item_name: str
    category: Optional[str] = Field(default=None)
    quantity: float
    low_stock_threshold: int
    priority: RestockPriority
    prediction: Optional[PredictionRecord] = Field(default=None)

    model_config = ConfigDict(frozen=True)


__all__ = ["PredictionRecord", "RestockPriority", "RestockRecommendation"]
