"""Scan event models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ScanAction(str, Enum):
    """Inventory transition recorded by a scan."""

    SCAN_IN = "scan_in"
    SCAN_OUT = "scan_out"


class ScanEvent(BaseModel):
    """Immutable record of one scan-in or scan-out."""

    id: int
    user_id: str
    item_identity: str
    item_name: Optional[str] = Field(default=None)
    category: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None)
    action: ScanAction
    quantity: int = Field(default=1, ge=1)
    occurred_at: datetime

    model_config = ConfigDict(frozen=True)


__all__ = ["ScanAction", "ScanEvent"]
