"""REST API serving cached players and accepting share-card uploads."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from datetime import datetime, timezone
from html import escape
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import ValidationError

from riftrewind.api.schemas import (
    CreateShareCardRequest,
    PlayerLookupResponse,
    ShareCardResponse,
)
from riftrewind.config import Settings
from riftrewind.models import ShareCard, ShareCardOwner, ShareCardPlayerSummary
from riftrewind.persistence import PlayerStore, ShareCardRecord, ShareCardStore, StoreUnavailable
from riftrewind.publish import build_default_caption


logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:(image/png|image/jpeg)")
_SLUG_INVALID = re.compile(r"[^a-z0-9]+")
_SITE_NAME = "Rift Rewind Chronicle"
_PREVIEW_DEFAULT_DESCRIPTION = "Relive this summoner's Rift Rewind Chronicle and craft your own wrap-up."
_PREVIEW_DESCRIPTION_LIMIT = 240
_PREVIEW_ERROR_MAX_AGE = 60


def build_slug(riot_id: str) -> str:
    normalized = _SLUG_INVALID.sub("-", riot_id.lower()).strip("-")[:30]
    return f"{normalized or 'summoner'}-{uuid4().hex[:6]}"


def _decode_data_url(card_data_url: str) -> tuple[Optional[str], Optional[bytes]]:
    prefix, _, encoded = card_data_url.partition(",")
    match = _DATA_URL_PREFIX.match(prefix)
    if match is None or not encoded:
        return None, None
    if not encoded.strip().rstrip("="):
        # Padding only: a well-formed data URL that carries no image bytes.
        return match.group(1), b""
    try:
        return match.group(1), base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        return None, None


def _envelope(status_code: int, response: ShareCardResponse | PlayerLookupResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


def _share_card_error(status_code: int, message: str) -> JSONResponse:
    return _envelope(status_code, ShareCardResponse(success=False, error=message))


def share_card_to_model(card: ShareCardRecord, *, base_url: str = "") -> ShareCard:
    return ShareCard(
        slug=card.slug,
        image_url=f"{base_url}/api/share-cards/{card.slug}/image",
        caption=card.caption,
        player=ShareCardOwner(riot_id=card.player_riot_id, tag_line=card.player_tag_line),
        created_at=card.created_at,
    )


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: max(0, limit - 1)].strip() + "…"


def render_share_card_preview(
    *,
    title: str,
    description: str,
    canonical_url: str,
    image_url: Optional[str] = None,
) -> str:
    """Standalone HTML page whose OpenGraph/Twitter tags unfurl a share card."""

    safe_title = escape(title)
    safe_description = escape(description)
    safe_canonical = escape(canonical_url)
    image_tags = ""
    if image_url:
        safe_image = escape(image_url)
        image_tags = (
            f'\n  <meta property="og:image" content="{safe_image}" />'
            f'\n  <meta property="og:image:secure_url" content="{safe_image}" />'
            f'\n  <meta name="twitter:image" content="{safe_image}" />'
        )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{safe_title}</title>
  <meta name="description" content="{safe_description}" />
  <link rel="canonical" href="{safe_canonical}" />
  <meta property="og:title" content="{safe_title}" />
  <meta property="og:description" content="{safe_description}" />
  <meta property="og:type" content="article" />
  <meta property="og:site_name" content="{_SITE_NAME}" />
  <meta property="og:url" content="{safe_canonical}" />
  <meta name="twitter:card" content="summary_large_image" />
  <meta name="twitter:title" content="{safe_title}" />
  <meta name="twitter:description" content="{safe_description}" />{image_tags}
</head>
<body style="font-family: 'Inter', system-ui, sans-serif; background:#050914; color:#f8f8f8; margin:0;">
  <main style="min-height:100vh; display:flex; flex-direction:column; align-items:center; justify-content:center; padding:32px; text-align:center; gap:16px;">
    <h1 style="font-size:1.75rem;">{safe_title}</h1>
    <p style="max-width:640px; line-height:1.6; opacity:0.85;">{safe_description}</p>
    <a href="{safe_canonical}" style="padding:12px 20px; border-radius:999px; background:#C8AA6E; color:#050914; text-decoration:none; font-weight:600;">View full share card</a>
  </main>
</body>
</html>
"""


def _preview_response(status_code: int, html: str, cache_control: str) -> HTMLResponse:
    return HTMLResponse(content=html, status_code=status_code, headers={"Cache-Control": cache_control})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(title="riftrewind")
    player_store = PlayerStore(settings.db_path)
    share_card_store = ShareCardStore(settings.db_path)
    app.state.settings = settings
    app.state.player_store = player_store
    app.state.share_card_store = share_card_store

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/player/{riot_id}/{tag_line}")
    async def get_player(riot_id: str, tag_line: str):
        record = player_store.get_player(riot_id, tag_line)
        if record is None:
            return _envelope(404, PlayerLookupResponse(success=False, error="Player not found"))
        freshness = record.freshness(settings.sentinel_epoch)
        stale = freshness.is_stale(datetime.now(timezone.utc), settings.staleness_threshold)
        return _envelope(
            200,
            PlayerLookupResponse(
                success=True,
                data=record.model_dump(mode="json", by_alias=True),
                stale=stale,
            ),
        )

    @app.post("/api/share-cards")
    async def create_share_card(body: CreateShareCardRequest):
        if not body.cardDataUrl:
            return _share_card_error(400, "Missing cardDataUrl")

        player_data = body.player or {}
        if not player_data.get("riotId") or not player_data.get("tagLine"):
            return _share_card_error(400, "Player information is required")
        try:
            player = ShareCardPlayerSummary.model_validate(player_data)
        except ValidationError:
            return _share_card_error(400, "Player information is invalid")

        mime_type, image = _decode_data_url(body.cardDataUrl)
        if mime_type is None or image is None:
            return _share_card_error(400, "cardDataUrl must be a PNG or JPEG data URL")
        if not image:
            return _share_card_error(400, "cardDataUrl is empty")
        if len(image) > settings.max_share_card_bytes:
            max_size_mb = round(settings.max_share_card_bytes / (1024 * 1024))
            return _share_card_error(413, f"Share card image exceeds {max_size_mb}MB limit")

        caption = (body.caption or "").strip() or build_default_caption(player)
        slug = build_slug(player.riot_id)
        try:
            card = share_card_store.create_share_card(
                slug=slug,
                player_puuid=player.puuid,
                player_riot_id=player.riot_id,
                player_tag_line=player.tag_line,
                caption=caption,
                mime_type=mime_type,
                image=image,
                player_snapshot=player.model_dump(mode="json", by_alias=True),
            )
        except StoreUnavailable:
            logger.exception("Error saving share card %s", slug)
            return _share_card_error(500, "Failed to save share card")

        logger.info("Stored share card %s for %s#%s", slug, player.riot_id, player.tag_line)
        data = share_card_to_model(card, base_url=settings.share_card_base_url)
        return _envelope(200, ShareCardResponse(success=True, data=data))

    @app.get("/api/share-cards/{slug}")
    async def get_share_card(slug: str):
        card = share_card_store.get_share_card(slug)
        if card is None:
            return _share_card_error(404, "Share card not found")
        data = share_card_to_model(card, base_url=settings.share_card_base_url)
        return _envelope(200, ShareCardResponse(success=True, data=data))

    @app.get("/api/share-cards/{slug}/image")
    async def get_share_card_image(slug: str):
        stored = share_card_store.get_share_card_image(slug)
        if stored is None:
            return _share_card_error(404, "Share card not found")
        image, mime_type = stored
        return Response(content=image, media_type=mime_type)

    @app.get("/share/{slug}/preview", response_class=HTMLResponse)
    async def share_card_preview(slug: str):
        landing_url = settings.landing_base_url
        try:
            card = share_card_store.get_share_card(slug)
        except StoreUnavailable:
            logger.exception("Error rendering share card preview %s", slug)
            html = render_share_card_preview(
                title=_SITE_NAME,
                description="We hit a snag generating this preview. Please try again in a moment.",
                canonical_url=landing_url,
                image_url=settings.preview_fallback_image,
            )
            return _preview_response(500, html, "no-store")

        if card is None:
            html = render_share_card_preview(
                title=f"Share card unavailable | {_SITE_NAME}",
                description=(
                    "This share card may have expired or been removed. "
                    "Generate your own Rift Rewind recap to share with friends."
                ),
                canonical_url=landing_url,
                image_url=settings.preview_fallback_image,
            )
            return _preview_response(404, html, f"public, max-age={_PREVIEW_ERROR_MAX_AGE}")

        if card.player_riot_id:
            summoner = card.player_riot_id + (f"#{card.player_tag_line}" if card.player_tag_line else "")
        else:
            summoner = "Rift Rewind Summoner"
        description = _truncate(card.caption.strip() or _PREVIEW_DEFAULT_DESCRIPTION, _PREVIEW_DESCRIPTION_LIMIT)
        html = render_share_card_preview(
            title=f"{summoner}'s {_SITE_NAME}",
            description=description,
            canonical_url=f"{landing_url}/{card.slug}",
            image_url=share_card_to_model(card, base_url=settings.share_card_base_url).image_url,
        )
        return _preview_response(200, html, f"public, max-age={settings.preview_cache_seconds}")

    return app


def main() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(create_app(), host="0.0.0.0", port=3001)
