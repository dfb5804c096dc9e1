"""Tunable constants for restock prediction."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from larder.config import Settings, get_settings


class RestockPolicy(BaseModel):
    """Thresholds used by the estimator and predictor.

    ``threshold_ratio`` is the fraction of the average purchase interval after which a
    restock is suggested; ``confidence_saturation`` is the scan-in count at which
    confidence reaches 1.0; ``urgent_days``/``soon_days`` bound the high/medium display
    tiers.
    """

    threshold_ratio: float = Field(default=0.7, gt=0)
    confidence_saturation: int = Field(default=5, ge=1)
    urgent_days: float = Field(default=3.0)
    soon_days: float = Field(default=7.0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RestockPolicy":
        settings = settings or get_settings()
        return cls(
            threshold_ratio=settings.restock_threshold_ratio,
            confidence_saturation=settings.confidence_saturation,
            urgent_days=settings.urgent_days,
            soon_days=settings.soon_days,
        )


DEFAULT_POLICY = RestockPolicy()

__all__ = ["RestockPolicy", "DEFAULT_POLICY"]
