import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from riftrewind.config import DEFAULT_SENTINEL_EPOCH
from riftrewind.persistence import PlayerStore, RecordFilter, ShareCardStore, StoreUnavailable

from tests.factories import NOW, player_record


@pytest.fixture
def store(tmp_path: Path) -> PlayerStore:
    return PlayerStore(tmp_path / "players.sqlite")


def test_upsert_and_get_player_round_trip(store: PlayerStore):
    record = player_record()
    store.upsert_player(record)

    assert store.get_player("Faker", "KR1") == record
    assert store.get_player("Faker", "EUW") is None
    assert store.count_players() == 1


def test_upsert_replaces_existing_analysis(store: PlayerStore):
    store.upsert_player(player_record(total_games=10))
    store.upsert_player(player_record(total_games=25, generated_at=NOW + timedelta(hours=1)))

    fetched = store.get_player("Faker", "KR1")
    assert fetched is not None
    assert fetched.total_games == 25
    assert fetched.generated_at == NOW + timedelta(hours=1)
    assert store.count_players() == 1


def test_select_filters_by_generated_after(store: PlayerStore):
    store.upsert_player(player_record("Analyzed", generated_at=NOW))
    store.upsert_player(player_record("Placeholder", generated_at=DEFAULT_SENTINEL_EPOCH))

    records = store.select(RecordFilter(generated_after=DEFAULT_SENTINEL_EPOCH))

    assert [record.riot_id for record in records] == ["Analyzed"]
    assert len(store.select()) == 2


def test_list_cached_projects_identity_and_archetype(store: PlayerStore):
    store.upsert_player(player_record("Zed", tag_line="EUW"))
    store.upsert_player(player_record("Ahri", tag_line="NA1"))

    cached = store.list_cached()

    assert [player.display_name for player in cached] == ["Ahri#NA1", "Zed#EUW"]
    assert cached[0].archetype == "Calculated Assassin"


def test_update_only_touches_generated_at(store: PlayerStore):
    before = player_record()
    store.upsert_player(before)
    marker = NOW - timedelta(hours=48)

    count = store.update(RecordFilter(riot_id="Faker"), {"generated_at": marker})

    after = store.get_player("Faker", "KR1")
    assert count == 1
    assert after is not None
    assert after.generated_at == marker
    assert after.model_dump(exclude={"generated_at"}) == before.model_dump(exclude={"generated_at"})


def test_update_rejects_derived_field_patches(store: PlayerStore):
    with pytest.raises(ValueError):
        store.update(RecordFilter(), {"archetype": "Rewritten"})


def test_get_fresh_player_hides_stale_records(store: PlayerStore):
    store.upsert_player(player_record("Fresh", generated_at=NOW - timedelta(hours=1)))
    store.upsert_player(player_record("Stale", generated_at=NOW - timedelta(hours=72)))

    threshold = timedelta(hours=48)
    assert store.get_fresh_player("Fresh", "KR1", threshold=threshold, now=NOW) is not None
    assert store.get_fresh_player("Stale", "KR1", threshold=threshold, now=NOW) is None
    assert store.get_fresh_player("Missing", "KR1", threshold=threshold, now=NOW) is None


def test_sqlite_errors_surface_as_store_unavailable(store: PlayerStore, monkeypatch: pytest.MonkeyPatch):
    def _broken_connect():
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(store, "_connect", _broken_connect)

    with pytest.raises(StoreUnavailable, match="database is locked"):
        store.list_cached()
    with pytest.raises(StoreUnavailable):
        store.delete(RecordFilter(generated_after=DEFAULT_SENTINEL_EPOCH))


def test_unopenable_database_raises_store_unavailable(tmp_path: Path):
    with pytest.raises(StoreUnavailable):
        PlayerStore(tmp_path)


def test_share_card_store_persists_image_and_metadata(tmp_path: Path):
    cards = ShareCardStore(tmp_path / "cards.sqlite")
    created_at = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)

    card = cards.create_share_card(
        slug="faker-abc123",
        player_puuid="puuid-faker",
        player_riot_id="Faker",
        player_tag_line="KR1",
        caption="Check my stats!",
        mime_type="image/png",
        image=b"\x89PNG-bytes",
        player_snapshot={"riotId": "Faker"},
        created_at=created_at,
    )

    assert card.slug == "faker-abc123"
    assert card.created_at == created_at
    assert card.player_snapshot == {"riotId": "Faker"}
    assert cards.get_share_card_image("faker-abc123") == (b"\x89PNG-bytes", "image/png")
    assert cards.get_share_card("missing") is None
    assert cards.get_share_card_image("missing") is None
