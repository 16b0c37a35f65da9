"""Configuration for the player cache and share-card publishing."""

from .settings import (
    DEFAULT_SENTINEL_EPOCH,
    DEFAULT_STALE_HOURS,
    MAX_STALE_HOURS,
    Settings,
    ensure_utc,
)

__all__ = [
    "DEFAULT_SENTINEL_EPOCH",
    "DEFAULT_STALE_HOURS",
    "MAX_STALE_HOURS",
    "Settings",
    "ensure_utc",
]
