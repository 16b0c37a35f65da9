"""Bulk invalidation of cached player analyses."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from riftrewind.config import Settings, ensure_utc
from riftrewind.models import CachedPlayer
from riftrewind.persistence import RecordFilter, RecordStore


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheInvalidator:
    """Marks analyzed players stale, or purges them, so they get recomputed.

    Only records whose recency marker is after the sentinel epoch are touched;
    players that were never analyzed are left alone by both operations. Store
    failures surface as ``StoreUnavailable`` and are never retried here.
    """

    def __init__(
        self,
        store: RecordStore,
        settings: Optional[Settings] = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.settings = settings or Settings()
        self._clock = clock

    @property
    def _analyzed(self) -> RecordFilter:
        return RecordFilter(generated_after=self.settings.sentinel_epoch)

    def list_cached_players(self) -> List[CachedPlayer]:
        players = self.store.list_cached()
        logger.info("Found %s cached players", len(players))
        return players

    def invalidate_all(self, stale_before: Optional[timedelta] = None) -> int:
        """Rewind ``generated_at`` of every analyzed record to ``now - stale_before``."""

        if stale_before is None:
            stale_before = self.settings.staleness_threshold
        if stale_before < timedelta(0):
            raise ValueError("stale_before must not be negative")
        try:
            marker = ensure_utc(self._clock()) - stale_before
        except OverflowError as exc:
            raise ValueError(f"stale_before is too large: {stale_before}") from exc
        count = self.store.update(self._analyzed, {"generated_at": marker})
        logger.info("Marked %s players stale (generated_at=%s)", count, marker.isoformat())
        return count

    def delete_all(self) -> int:
        """Irreversibly delete every analyzed player record."""

        count = self.store.delete(self._analyzed)
        logger.warning("Deleted %s cached player records", count)
        return count
