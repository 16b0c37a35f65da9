from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from riftrewind.config import DEFAULT_SENTINEL_EPOCH, Settings
from riftrewind.maintenance import CacheInvalidator
from riftrewind.persistence import PlayerStore, StoreUnavailable

from tests.factories import NOW, player_record


@pytest.fixture
def store(tmp_path: Path) -> PlayerStore:
    return PlayerStore(tmp_path / "players.sqlite")


def _invalidator(store, settings: Settings | None = None) -> CacheInvalidator:
    return CacheInvalidator(store, settings, clock=lambda: NOW)


def test_invalidate_all_rewinds_every_analyzed_record(store: PlayerStore):
    yesterday = NOW - timedelta(days=1)
    for riot_id in ("Ahri", "Zed", "Lux"):
        store.upsert_player(player_record(riot_id, generated_at=yesterday))
    before = {record.riot_id: record for record in store.select()}

    count = _invalidator(store).invalidate_all(timedelta(hours=48))

    assert count == 3
    for record in store.select():
        assert record.generated_at == NOW - timedelta(hours=48)
        assert record.model_dump(exclude={"generated_at"}) == before[record.riot_id].model_dump(
            exclude={"generated_at"}
        )
        assert record.freshness().is_stale(NOW, timedelta(hours=48))


def test_invalidate_all_defaults_to_configured_threshold(store: PlayerStore):
    store.upsert_player(player_record(generated_at=NOW))
    settings = Settings(staleness_threshold=timedelta(hours=6))

    assert _invalidator(store, settings).invalidate_all() == 1

    record = store.get_player("Faker", "KR1")
    assert record is not None
    assert record.generated_at == NOW - timedelta(hours=6)


def test_invalidate_all_skips_never_analyzed_records(store: PlayerStore):
    store.upsert_player(player_record("Analyzed", generated_at=NOW))
    store.upsert_player(player_record("Pending", generated_at=DEFAULT_SENTINEL_EPOCH))

    assert _invalidator(store).invalidate_all(timedelta(hours=48)) == 1

    pending = store.get_player("Pending", "KR1")
    assert pending is not None
    assert pending.generated_at == DEFAULT_SENTINEL_EPOCH


def test_invalidate_all_rejects_negative_duration(store: PlayerStore):
    with pytest.raises(ValueError):
        _invalidator(store).invalidate_all(timedelta(hours=-1))


def test_invalidate_all_includes_records_just_after_sentinel(store: PlayerStore):
    just_after = DEFAULT_SENTINEL_EPOCH + timedelta(microseconds=1)
    store.upsert_player(player_record("Barely", generated_at=just_after))
    assert store.get_player("Barely", "KR1").freshness().is_analyzed

    assert _invalidator(store).invalidate_all(timedelta(hours=48)) == 1

    record = store.get_player("Barely", "KR1")
    assert record.generated_at == NOW - timedelta(hours=48)
    assert _invalidator(store).delete_all() == 1


def test_invalidate_all_rejects_duration_beyond_calendar(store: PlayerStore):
    store.upsert_player(player_record(generated_at=NOW))

    with pytest.raises(ValueError, match="too large"):
        _invalidator(store).invalidate_all(timedelta(days=999_999_999))

    assert store.get_player("Faker", "KR1").generated_at == NOW


def test_delete_all_removes_only_analyzed_records(store: PlayerStore):
    store.upsert_player(player_record("Analyzed", generated_at=NOW))
    store.upsert_player(player_record("Old", generated_at=datetime(2001, 5, 1, tzinfo=timezone.utc)))
    store.upsert_player(player_record("AtSentinel", generated_at=DEFAULT_SENTINEL_EPOCH))
    store.upsert_player(player_record("BeforeSentinel", generated_at=datetime(1999, 12, 31, tzinfo=timezone.utc)))

    count = _invalidator(store).delete_all()

    assert count == 2
    assert sorted(record.riot_id for record in store.select()) == ["AtSentinel", "BeforeSentinel"]


def test_empty_store_reports_zero(store: PlayerStore):
    invalidator = _invalidator(store)

    assert invalidator.list_cached_players() == []
    assert invalidator.invalidate_all(timedelta(hours=48)) == 0
    assert invalidator.delete_all() == 0


def test_list_cached_players_returns_identity_projection(store: PlayerStore):
    store.upsert_player(player_record("Ahri", tag_line="NA1"))

    players = _invalidator(store).list_cached_players()

    assert [(p.riot_id, p.tag_line, p.archetype) for p in players] == [("Ahri", "NA1", "Calculated Assassin")]


class _UnavailableStore:
    def __init__(self):
        self.calls: list[str] = []

    def list_cached(self, record_filter=None):
        self.calls.append("list")
        raise StoreUnavailable("connection refused")

    def select(self, record_filter=None):
        self.calls.append("select")
        raise StoreUnavailable("connection refused")

    def update(self, record_filter, patch):
        self.calls.append("update")
        raise StoreUnavailable("connection refused")

    def delete(self, record_filter):
        self.calls.append("delete")
        raise StoreUnavailable("connection refused")


def test_store_failures_propagate_without_retry():
    store = _UnavailableStore()
    invalidator = _invalidator(store)

    with pytest.raises(StoreUnavailable):
        invalidator.list_cached_players()
    with pytest.raises(StoreUnavailable):
        invalidator.invalidate_all(timedelta(hours=48))
    with pytest.raises(StoreUnavailable):
        invalidator.delete_all()

    assert store.calls == ["list", "update", "delete"]
