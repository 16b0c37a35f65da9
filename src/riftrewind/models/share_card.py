"""Wire models exchanged with the share-card endpoint."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, model_serializer

from .base import CamelModel


class ArchetypeSummary(CamelModel):
    name: str
    description: str = ""


class InsightsSummary(CamelModel):
    title: str


class ShareCardPlayerSummary(CamelModel):
    """Minimal projection of a player record embedded in a share card."""

    puuid: Optional[str] = None
    riot_id: str
    tag_line: str
    total_games: int = Field(default=0, ge=0)
    win_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    archetype: ArchetypeSummary
    insights: Optional[InsightsSummary] = None

    @model_serializer(mode="wrap")
    def omit_missing_insights(self, handler):
        data = handler(self)
        if self.insights is None:
            data.pop("insights", None)
        return data


class ShareCardPayload(CamelModel):
    card_data_url: str
    caption: str = ""
    player: ShareCardPlayerSummary


class ShareCardOwner(CamelModel):
    riot_id: Optional[str] = None
    tag_line: Optional[str] = None


class ShareCard(CamelModel):
    """Published share card as returned by the endpoint."""

    slug: str
    image_url: str
    caption: str = ""
    player: ShareCardOwner
    created_at: datetime
