"""Application configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    database_path: Path = Field(
        default=Path("./data/larder.db"),
        description="SQLite database location.",
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token required for write endpoints.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )
    restock_threshold_ratio: float = Field(
        default=0.7,
        gt=0,
        description="Fraction of the average purchase interval after which a restock is suggested.",
    )
    confidence_saturation: int = Field(
        default=5,
        ge=1,
        description="Number of scan-ins at which prediction confidence reaches 1.0.",
    )
    urgent_days: float = Field(
        default=3.0,
        description="Predicted days until restock at or below which an item is high priority.",
    )
    soon_days: float = Field(
        default=7.0,
        description="Predicted days until restock at or below which an item is medium priority.",
    )
    default_low_stock_threshold: int = Field(
        default=1,
        ge=0,
        description="Low-stock threshold applied to scanned-in items that do not set one.",
    )

    model_config = ConfigDict(frozen=True)


def _coerce_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_env_file(path: Path) -> dict[str, str]:
    payload: dict[str, str] = {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, raw_value = line.split("=", 1)
                payload[key.strip()] = raw_value.strip()
    except FileNotFoundError:
        return {}
    return payload


def _load_env_file_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        values.update(_parse_env_file(candidate))
    return values


def _load_from_env() -> dict[str, object]:
    """Load optional overrides from env vars (with .env fallbacks)."""

    file_values = _load_env_file_values()

    def _env(key: str) -> Optional[str]:
        return os.environ.get(key) or file_values.get(key)

    payload: dict[str, object] = {}
    if (db_path := _env("LARDER_DATABASE_PATH")):
        payload["database_path"] = Path(db_path)
    if (api_token := _env("LARDER_API_TOKEN")):
        payload["api_token"] = api_token
    if (log_level := _env("LARDER_LOG_LEVEL")):
        payload["log_level"] = log_level
    if (log_format := _env("LARDER_LOG_FORMAT")):
        payload["log_format"] = log_format
    if (log_requests := _env("LARDER_LOG_REQUESTS")):
        payload["log_requests"] = _coerce_bool(log_requests)
    if (threshold_ratio := _env("LARDER_RESTOCK_THRESHOLD_RATIO")):
        try:
            payload["restock_threshold_ratio"] = float(threshold_ratio)
        except ValueError:
            pass
    if (saturation := _env("LARDER_CONFIDENCE_SATURATION")):
        try:
            payload["confidence_saturation"] = int(saturation)
        except ValueError:
            pass
    if (urgent_days := _env("LARDER_URGENT_DAYS")):
        try:
            payload["urgent_days"] = float(urgent_days)
        except ValueError:
            pass
    if (soon_days := _env("LARDER_SOON_DAYS")):
        try:
            payload["soon_days"] = float(soon_days)
        except ValueError:
            pass
    if (low_stock := _env("LARDER_DEFAULT_LOW_STOCK_THRESHOLD")):
        try:
            payload["default_low_stock_threshold"] = int(low_stock)
        except ValueError:
            pass
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())
