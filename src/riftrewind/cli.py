"""Command-line interface for player cache maintenance."""

from __future__ import annotations

import argparse
import logging
import math
import sys
from datetime import timedelta
from pathlib import Path
from typing import Sequence

from riftrewind.config import MAX_STALE_HOURS, Settings
from riftrewind.maintenance import CacheInvalidator
from riftrewind.persistence import PlayerStore, StoreUnavailable


def _stale_hours(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of hours: {raw!r}") from None
    if not math.isfinite(value) or value < 0 or value > MAX_STALE_HOURS:
        raise argparse.ArgumentTypeError(f"hours must be between 0 and {MAX_STALE_HOURS:.0f}, got {raw}")
    return value


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mark cached player analyses stale, or delete them, so they are recomputed"
    )
    parser.add_argument("--db", type=Path, default=None, help="SQLite database path (default from RIFTREWIND_DB_PATH)")
    subparsers = parser.add_subparsers(dest="action")

    invalidate = subparsers.add_parser("invalidate", help="Rewind generated_at so every analyzed player is stale")
    invalidate.add_argument(
        "--stale-hours",
        type=_stale_hours,
        default=None,
        help="How far before now to set generated_at (default from RIFTREWIND_STALE_HOURS)",
    )

    delete = subparsers.add_parser("delete", help="Delete every analyzed player record")
    delete.add_argument("--yes", action="store_true", help="Confirm the irreversible deletion")

    args = parser.parse_args(argv)
    if args.action is None:
        args.action = "invalidate"
        args.stale_hours = None
    return args


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    settings = Settings.from_env()
    db_path = args.db or settings.db_path

    if args.action == "delete" and not args.yes:
        print("Refusing to delete cached players without --yes", file=sys.stderr)
        return 2

    try:
        invalidator = CacheInvalidator(PlayerStore(db_path), settings)
        players = invalidator.list_cached_players()
        if not players:
            print("No cached players found. Nothing to clear.")
            return 0

        print(f"Found {len(players)} cached players:")
        for player in players:
            print(f"   - {player.display_name} ({player.archetype or 'Unknown'})")

        if args.action == "delete":
            count = invalidator.delete_all()
            print(f"Deleted {count} player records. Next analysis will be fresh.")
        else:
            stale_before = None
            if args.stale_hours is not None:
                stale_before = timedelta(hours=args.stale_hours)
            count = invalidator.invalidate_all(stale_before)
            print(f"Marked {count} players stale. They will be re-analyzed on next lookup.")
    except StoreUnavailable as exc:
        print(f"Error clearing cache: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
