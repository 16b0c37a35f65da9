from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from riftrewind.models import ShareCard


class CreateShareCardRequest(BaseModel):
    cardDataUrl: str | None = None
    caption: str | None = None
    player: dict[str, Any] | None = None


class ShareCardResponse(BaseModel):
    success: bool
    data: ShareCard | None = None
    error: str | None = None


class PlayerLookupResponse(BaseModel):
    success: bool
    data: dict[str, Any] | None = None
    stale: bool | None = None
    error: str | None = None
