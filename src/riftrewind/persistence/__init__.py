"""Persistence layer for cached player analyses and published share cards."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional, Protocol

from riftrewind.config import DEFAULT_SENTINEL_EPOCH, ensure_utc
from riftrewind.models import CachedPlayer, PlayerRecord


class StoreUnavailable(RuntimeError):
    """Raised when the record store cannot complete a query or write."""


@dataclass(frozen=True)
class RecordFilter:
    """Selection of player rows; unset attributes match everything."""

    generated_after: Optional[datetime] = None
    riot_id: Optional[str] = None
    tag_line: Optional[str] = None


@dataclass
class ShareCardRecord:
    slug: str
    created_at: datetime
    player_puuid: Optional[str]
    player_riot_id: Optional[str]
    player_tag_line: Optional[str]
    caption: str
    mime_type: str
    player_snapshot: dict


class RecordStore(Protocol):
    """Operations the maintenance tooling needs from a player store."""

    def list_cached(self, record_filter: RecordFilter | None = None) -> List[CachedPlayer]: ...

    def select(self, record_filter: RecordFilter | None = None) -> List[PlayerRecord]: ...

    def update(self, record_filter: RecordFilter, patch: Mapping[str, Any]) -> int: ...

    def delete(self, record_filter: RecordFilter) -> int: ...


_PATCHABLE_COLUMNS = {"generated_at"}


def _format_ts(value: datetime) -> str:
    # Fixed-width UTC text: string order matches time order.
    return ensure_utc(value).isoformat(timespec="microseconds")


def _where(record_filter: RecordFilter | None) -> tuple[str, tuple[Any, ...]]:
    if record_filter is None:
        return "", ()
    conditions: list[str] = []
    params: list[Any] = []
    if record_filter.generated_after is not None:
        conditions.append("generated_at > ?")
        params.append(_format_ts(record_filter.generated_after))
    if record_filter.riot_id is not None:
        conditions.append("riot_id = ?")
        params.append(record_filter.riot_id)
    if record_filter.tag_line is not None:
        conditions.append("tag_line = ?")
        params.append(record_filter.tag_line)
    if not conditions:
        return "", ()
    return " WHERE " + " AND ".join(conditions), tuple(params)


class _SqliteStore:
    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _session(self, action: str) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
        except (OSError, sqlite3.Error) as exc:
            raise StoreUnavailable(f"Unable to {action}: {exc}") from exc
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"Unable to {action}: {exc}") from exc
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._session("create schema") as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        raise NotImplementedError


class PlayerStore(_SqliteStore):
    """SQLite-backed cache of analyzed players."""

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS players (
                riot_id TEXT NOT NULL,
                tag_line TEXT NOT NULL,
                puuid TEXT,
                archetype TEXT,
                generated_at TEXT NOT NULL,
                record_json TEXT NOT NULL,
                PRIMARY KEY (riot_id, tag_line)
            )
            """
        )

    def upsert_player(self, record: PlayerRecord) -> None:
        """Insert or replace the analysis for ``record``'s riot id and tag line."""

        payload = (
            record.riot_id,
            record.tag_line,
            record.puuid,
            record.archetype.name,
            _format_ts(record.generated_at),
            json.dumps(record.model_dump(mode="json", by_alias=True, exclude={"generated_at"})),
        )
        with self._session("save player") as conn:
            conn.execute(
                """
                INSERT INTO players (
                    riot_id, tag_line, puuid, archetype, generated_at, record_json
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (riot_id, tag_line) DO UPDATE SET
                    puuid = excluded.puuid,
                    archetype = excluded.archetype,
                    generated_at = excluded.generated_at,
                    record_json = excluded.record_json
                """,
                payload,
            )

    def get_player(self, riot_id: str, tag_line: str) -> Optional[PlayerRecord]:
        records = self.select(RecordFilter(riot_id=riot_id, tag_line=tag_line))
        return records[0] if records else None

    def get_fresh_player(
        self,
        riot_id: str,
        tag_line: str,
        *,
        threshold: timedelta,
        sentinel_epoch: datetime = DEFAULT_SENTINEL_EPOCH,
        now: Optional[datetime] = None,
    ) -> Optional[PlayerRecord]:
        """Return the cached record only while it does not need recomputation."""

        record = self.get_player(riot_id, tag_line)
        if record is None:
            return None
        now = now or datetime.now(timezone.utc)
        if record.freshness(sentinel_epoch).is_stale(now, threshold):
            return None
        return record

    def count_players(self) -> int:
        with self._session("count players") as conn:
            row = conn.execute("SELECT COUNT(*) FROM players").fetchone()
        return int(row[0])

    def list_cached(self, record_filter: RecordFilter | None = None) -> List[CachedPlayer]:
        where, params = _where(record_filter)
        with self._session("list cached players") as conn:
            rows = conn.execute(
                f"SELECT riot_id, tag_line, archetype FROM players{where} ORDER BY riot_id, tag_line",
                params,
            ).fetchall()
        return [
            CachedPlayer(riot_id=row["riot_id"], tag_line=row["tag_line"], archetype=row["archetype"])
            for row in rows
        ]

    def select(self, record_filter: RecordFilter | None = None) -> List[PlayerRecord]:
        where, params = _where(record_filter)
        with self._session("query players") as conn:
            rows = conn.execute(
                f"SELECT * FROM players{where} ORDER BY riot_id, tag_line",
                params,
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def update(self, record_filter: RecordFilter, patch: Mapping[str, Any]) -> int:
        unknown = set(patch) - _PATCHABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported patch fields: {', '.join(sorted(unknown))}")
        if not patch:
            return 0
        assignments: list[str] = []
        values: list[Any] = []
        for column, value in patch.items():
            assignments.append(f"{column} = ?")
            values.append(_format_ts(value) if isinstance(value, datetime) else value)
        where, params = _where(record_filter)
        with self._session("update players") as conn:
            cursor = conn.execute(
                f"UPDATE players SET {', '.join(assignments)}{where}",
                (*values, *params),
            )
            return cursor.rowcount

    def delete(self, record_filter: RecordFilter) -> int:
        where, params = _where(record_filter)
        with self._session("delete players") as conn:
            cursor = conn.execute(f"DELETE FROM players{where}", params)
            return cursor.rowcount

    def _row_to_record(self, row: sqlite3.Row) -> PlayerRecord:
        data = json.loads(row["record_json"])
        data["generatedAt"] = row["generated_at"]
        return PlayerRecord.model_validate(data)


class ShareCardStore(_SqliteStore):
    """SQLite-backed storage for published share-card images and metadata."""

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS share_cards (
                slug TEXT PRIMARY KEY,
                player_puuid TEXT,
                player_riot_id TEXT,
                player_tag_line TEXT,
                caption TEXT NOT NULL,
                mime_type TEXT NOT NULL,
                image BLOB NOT NULL,
                player_snapshot_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )

    def create_share_card(
        self,
        *,
        slug: str,
        player_puuid: Optional[str],
        player_riot_id: str,
        player_tag_line: str,
        caption: str,
        mime_type: str,
        image: bytes,
        player_snapshot: dict,
        created_at: Optional[datetime] = None,
    ) -> ShareCardRecord:
        created_at = created_at or datetime.now(timezone.utc)
        with self._session("save share card") as conn:
            conn.execute(
                """
                INSERT INTO share_cards (
                    slug, player_puuid, player_riot_id, player_tag_line, caption,
                    mime_type, image, player_snapshot_json, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    slug,
                    player_puuid,
                    player_riot_id,
                    player_tag_line,
                    caption,
                    mime_type,
                    sqlite3.Binary(image),
                    json.dumps(player_snapshot),
                    _format_ts(created_at),
                ),
            )
        card = self.get_share_card(slug)
        if card is None:  # pragma: no cover
            raise StoreUnavailable(f"Share card {slug} not found after insert")
        return card

    def get_share_card(self, slug: str) -> Optional[ShareCardRecord]:
        with self._session("fetch share card") as conn:
            row = conn.execute(
                """
                SELECT slug, player_puuid, player_riot_id, player_tag_line, caption,
                       mime_type, player_snapshot_json, created_at
                FROM share_cards WHERE slug = ?
                """,
                (slug,),
            ).fetchone()
        if row is None:
            return None
        return ShareCardRecord(
            slug=row["slug"],
            created_at=datetime.fromisoformat(row["created_at"]),
            player_puuid=row["player_puuid"],
            player_riot_id=row["player_riot_id"],
            player_tag_line=row["player_tag_line"],
            caption=row["caption"] or "",
            mime_type=row["mime_type"],
            player_snapshot=json.loads(row["player_snapshot_json"]),
        )

    def get_share_card_image(self, slug: str) -> Optional[tuple[bytes, str]]:
        with self._session("fetch share card image") as conn:
            row = conn.execute(
                "SELECT image, mime_type FROM share_cards WHERE slug = ?",
                (slug,),
            ).fetchone()
        if row is None:
            return None
        return bytes(row["image"]), row["mime_type"]


__all__ = [
    "PlayerStore",
    "RecordFilter",
    "RecordStore",
    "ShareCardRecord",
    "ShareCardStore",
    "StoreUnavailable",
]
