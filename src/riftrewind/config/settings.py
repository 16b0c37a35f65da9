"""Runtime settings for the player cache and share-card endpoint."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)

_DB_PATH_ENV = "RIFTREWIND_DB_PATH"
_STALE_HOURS_ENV = "RIFTREWIND_STALE_HOURS"
_SENTINEL_EPOCH_ENV = "RIFTREWIND_SENTINEL_EPOCH"
_API_URL_ENV = "RIFTREWIND_API_URL"
_SHARE_CARD_BASE_URL_ENV = "RIFTREWIND_SHARE_CARD_BASE_URL"
_MAX_SHARE_CARD_BYTES_ENV = "RIFTREWIND_MAX_SHARE_CARD_BYTES"
_LANDING_BASE_URL_ENV = "RIFTREWIND_SHARE_CARD_LANDING_BASE_URL"
_PREVIEW_CACHE_SECONDS_ENV = "RIFTREWIND_SHARE_CARD_PREVIEW_CACHE_SECONDS"
_PREVIEW_FALLBACK_IMAGE_ENV = "RIFTREWIND_SHARE_CARD_PREVIEW_FALLBACK_IMAGE"

DEFAULT_STALE_HOURS = 48.0
# A century; anything longer cannot be subtracted from "now" safely.
MAX_STALE_HOURS = 100 * 365 * 24.0
DEFAULT_SENTINEL_EPOCH = datetime(2000, 1, 1, tzinfo=timezone.utc)
DEFAULT_API_URL = "http://localhost:3001"
DEFAULT_MAX_SHARE_CARD_BYTES = 12 * 1024 * 1024
DEFAULT_LANDING_BASE_URL = "https://rift-rewind-chronicle.vercel.app/share"
DEFAULT_PREVIEW_CACHE_SECONDS = 300
MIN_PREVIEW_CACHE_SECONDS = 60


def _env_float(name: str, default: float, *, clamp_min: float | None = None, clamp_max: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if not math.isfinite(value):
        logger.warning("Non-finite float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    if clamp_max is not None:
        value = min(clamp_max, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def _env_positive_int(name: str, default: int) -> int:
    value = _env_int(name, default)
    if value < 1:
        logger.warning("Non-positive int for %s: %d; using default %d", name, value, default)
        return default
    return value


def _env_datetime(name: str, default: datetime) -> datetime:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = datetime.fromisoformat(raw)
    except ValueError:
        logger.warning("Invalid timestamp for %s: %s; using default %s", name, raw, default.isoformat())
        return default
    return ensure_utc(value)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps and normalize aware ones to UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Settings:
    db_path: Path = Path("riftrewind.sqlite")
    staleness_threshold: timedelta = timedelta(hours=DEFAULT_STALE_HOURS)
    sentinel_epoch: datetime = DEFAULT_SENTINEL_EPOCH
    api_url: str = DEFAULT_API_URL
    share_card_base_url: str = ""
    max_share_card_bytes: int = DEFAULT_MAX_SHARE_CARD_BYTES
    landing_base_url: str = DEFAULT_LANDING_BASE_URL
    preview_cache_seconds: int = DEFAULT_PREVIEW_CACHE_SECONDS
    preview_fallback_image: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        db_path = os.getenv(_DB_PATH_ENV)
        stale_hours = _env_float(
            _STALE_HOURS_ENV,
            DEFAULT_STALE_HOURS,
            clamp_min=0.0,
            clamp_max=MAX_STALE_HOURS,
        )
        return cls(
            db_path=Path(db_path) if db_path else Path("riftrewind.sqlite"),
            staleness_threshold=timedelta(hours=stale_hours),
            sentinel_epoch=_env_datetime(_SENTINEL_EPOCH_ENV, DEFAULT_SENTINEL_EPOCH),
            api_url=os.getenv(_API_URL_ENV, DEFAULT_API_URL).rstrip("/"),
            share_card_base_url=os.getenv(_SHARE_CARD_BASE_URL_ENV, "").rstrip("/"),
            max_share_card_bytes=_env_positive_int(_MAX_SHARE_CARD_BYTES_ENV, DEFAULT_MAX_SHARE_CARD_BYTES),
            landing_base_url=(os.getenv(_LANDING_BASE_URL_ENV) or DEFAULT_LANDING_BASE_URL).rstrip("/"),
            preview_cache_seconds=_env_int(
                _PREVIEW_CACHE_SECONDS_ENV,
                DEFAULT_PREVIEW_CACHE_SECONDS,
                min_value=MIN_PREVIEW_CACHE_SECONDS,
            ),
            preview_fallback_image=os.getenv(_PREVIEW_FALLBACK_IMAGE_ENV) or None,
        )
