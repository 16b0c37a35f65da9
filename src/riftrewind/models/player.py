"""Canonical player models shared by the cache, maintenance and publish layers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict

from riftrewind.config import DEFAULT_SENTINEL_EPOCH, ensure_utc

from .base import CamelModel


class Archetype(CamelModel):
    name: str
    description: str = ""
    match_percentage: float = Field(default=0.0, ge=0.0, le=100.0)


class Persona(CamelModel):
    codename: str
    description: str = ""


class Element(CamelModel):
    name: str


class Insights(BaseModel):
    """AI narrative attached to a player; keys mirror the analysis output."""

    title: Optional[str] = None
    surprising_insights: List[str] = Field(default_factory=list)
    improvement_tips: List[str] = Field(default_factory=list)
    story_arc: str = ""
    season_prediction: str = ""

    model_config = ConfigDict(frozen=True)


class ProComparison(CamelModel):
    primary: str
    secondary: Optional[str] = None
    similarity: float = Field(default=0.0, ge=0.0, le=100.0)
    description: str = ""


class PlayerRecord(CamelModel):
    """Cached analysis for one player, keyed by ``(riot_id, tag_line)``."""

    puuid: Optional[str] = None
    riot_id: str = Field(..., min_length=1)
    tag_line: str = Field(..., min_length=1)
    archetype: Archetype
    persona: Optional[Persona] = None
    element: Optional[Element] = None
    insights: Optional[Insights] = None
    pro_comparison: Optional[ProComparison] = None
    top_strengths: List[str] = Field(default_factory=list)
    needs_work: List[str] = Field(default_factory=list)
    total_games: int = Field(default=0, ge=0)
    win_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    generated_at: datetime

    @field_validator("generated_at")
    @classmethod
    def normalize_generated_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def display_name(self) -> str:
        return f"{self.riot_id}#{self.tag_line}"

    def freshness(self, sentinel_epoch: datetime = DEFAULT_SENTINEL_EPOCH) -> "Freshness":
        return Freshness(generated_at=self.generated_at, sentinel_epoch=sentinel_epoch)


@dataclass(frozen=True)
class Freshness:
    """Recency marker of a cached record.

    A marker at or before ``sentinel_epoch`` means the player was never
    analyzed. An analyzed record is stale once its marker is no longer
    strictly after ``now - threshold``.
    """

    generated_at: datetime
    sentinel_epoch: datetime = DEFAULT_SENTINEL_EPOCH

    def __post_init__(self) -> None:
        object.__setattr__(self, "generated_at", ensure_utc(self.generated_at))
        object.__setattr__(self, "sentinel_epoch", ensure_utc(self.sentinel_epoch))

    @property
    def is_analyzed(self) -> bool:
        return self.generated_at > self.sentinel_epoch

    def age(self, now: datetime) -> timedelta:
        return ensure_utc(now) - self.generated_at

    def is_stale(self, now: datetime, threshold: timedelta) -> bool:
        if not self.is_analyzed:
            return True
        return self.generated_at <= ensure_utc(now) - threshold


@dataclass(frozen=True)
class CachedPlayer:
    """Operator-facing projection listed before a maintenance action."""

    riot_id: str
    tag_line: str
    archetype: Optional[str]

    @property
    def display_name(self) -> str:
        return f"{self.riot_id}#{self.tag_line}"
