"""Inventory models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class InventoryItem(BaseModel):
    """Holdings of one scanned-in product instance."""

    id: int
    user_id: str
    identity: str
    name: str
    category: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None)
    quantity: float = Field(default=1.0, ge=0)
    unit: str = Field(default="count")
    low_stock_threshold: int = Field(default=1, ge=0)
    scan_in_at: datetime
    scan_out_at: Optional[datetime] = Field(default=None)

    model_config = ConfigDict(frozen=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_active(self) -> bool:
        return self.scan_out_at is None


class StorageLocation(BaseModel):
    """Named place a user keeps groceries (fridge, pantry, ...)."""

    id: int
    name: str
    created_at: datetime

    model_config = ConfigDict(frozen=True)


__all__ = ["InventoryItem", "StorageLocation"]
