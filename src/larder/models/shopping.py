"""Shopping list models."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field


class SuggestedState(BaseModel):
    """System-generated entry; always carries the prediction that produced it."""

    kind: Literal["suggested"] = "suggested"
    prediction_confidence: float = Field(ge=0, le=1)
    last_scan_out_at: datetime
    average_interval_days: float = Field(ge=0)

    model_config = ConfigDict(frozen=True)


class DefiniteState(BaseModel):
    """User-confirmed entry (manual add or promoted suggestion)."""

    kind: Literal["definite"] = "definite"

    model_config = ConfigDict(frozen=True)


EntryState = Annotated[Union[SuggestedState, DefiniteState], Field(discriminator="kind")]


class ShoppingListEntry(BaseModel):
    """Single entry on a user's shopping list."""

    id: int
    user_id: str
    item_name: str
    item_identity: Optional[str] = Field(default=None)
    category: Optional[str] = Field(default=None)
    quantity: int = Field(default=1, ge=1)
    state: EntryState = Field(default_factory=DefiniteState)
    purchased: bool = Field(default=False)
    purchased_at: Optional[datetime] = Field(default=None)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_suggested(self) -> bool:
        return isinstance(self.state, SuggestedState)


class ShoppingListDraft(BaseModel):
    """Entry to be written through the shopping list upsert."""

    item_name: str = Field(min_length=1, max_length=255)
    item_identity: Optional[str] = Field(default=None)
    category: Optional[str] = Field(default=None)
    quantity: int = Field(default=1, ge=1)
    state: EntryState = Field(default_factory=DefiniteState)

    model_config = ConfigDict(frozen=True)


__all__ = [
    "SuggestedState",
    "DefiniteState",
    "EntryState",
    "ShoppingListEntry",
    "ShoppingListDraft",
]
