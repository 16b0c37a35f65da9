"""Projection of cached player records into share-card summaries."""

from __future__ import annotations

from riftrewind.models import (
    ArchetypeSummary,
    InsightsSummary,
    PlayerRecord,
    ShareCardPlayerSummary,
)


DEFAULT_CAPTION_TITLE = "My League Year"
SEASON_LABEL = "2025 Season"
CAPTION_HASHTAGS = "#RiftRewind #LeagueOfLegends"


def build_summary(record: PlayerRecord) -> ShareCardPlayerSummary:
    """Return the minimal summary published alongside a share card.

    ``insights`` is only carried when the record has a non-empty insights
    title; otherwise the summary has no insights at all.
    """

    title = record.insights.title if record.insights is not None else None
    return ShareCardPlayerSummary(
        puuid=record.puuid,
        riot_id=record.riot_id,
        tag_line=record.tag_line,
        total_games=record.total_games,
        win_rate=record.win_rate,
        archetype=ArchetypeSummary(
            name=record.archetype.name,
            description=record.archetype.description,
        ),
        insights=InsightsSummary(title=title) if title else None,
    )


def build_default_caption(summary: ShareCardPlayerSummary) -> str:
    title = summary.insights.title if summary.insights is not None else DEFAULT_CAPTION_TITLE
    lines = [
        title,
        "",
        f"{summary.riot_id}'s {SEASON_LABEL}:",
        f"• {summary.total_games} games • {summary.win_rate * 100:.1f}% WR",
        f"• {summary.archetype.name}",
        f"• {summary.archetype.description}",
        "",
        CAPTION_HASHTAGS,
    ]
    return "\n".join(lines)
