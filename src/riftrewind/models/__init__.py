"""Player and share-card models."""

from .player import (
    Archetype,
    CachedPlayer,
    Element,
    Freshness,
    Insights,
    Persona,
    PlayerRecord,
    ProComparison,
)
from .share_card import (
    ArchetypeSummary,
    InsightsSummary,
    ShareCard,
    ShareCardOwner,
    ShareCardPayload,
    ShareCardPlayerSummary,
)

__all__ = [
    "Archetype",
    "ArchetypeSummary",
    "CachedPlayer",
    "Element",
    "Freshness",
    "Insights",
    "InsightsSummary",
    "Persona",
    "PlayerRecord",
    "ProComparison",
    "ShareCard",
    "ShareCardOwner",
    "ShareCardPayload",
    "ShareCardPlayerSummary",
]
