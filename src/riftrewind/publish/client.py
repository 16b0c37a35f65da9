"""Async REST client for the share-card endpoint."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

import httpx

from riftrewind.models import ShareCard, ShareCardPayload

from .errors import DEFAULT_FAILURE_MESSAGE, NetworkOrEndpointFailure


logger = logging.getLogger(__name__)

_HTML_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")
_ERROR_SNIPPET_CHARS = 200


def _read_json_body(response: httpx.Response) -> Optional[dict[str, Any]]:
    """Parsed JSON object, ``{}`` for other JSON values, ``None`` if not JSON at all."""

    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else {}


def _summarize_error_body(response: httpx.Response) -> str:
    cleaned = _WHITESPACE.sub(" ", _HTML_TAG.sub(" ", response.text)).strip()
    if not cleaned:
        return f"Unexpected {response.status_code} response from server"
    if len(cleaned) > _ERROR_SNIPPET_CHARS:
        return cleaned[:_ERROR_SNIPPET_CHARS] + "..."
    return cleaned


def _error_message(response: httpx.Response, body: Optional[dict[str, Any]], fallback: str) -> str:
    if body and body.get("error"):
        return str(body["error"])
    message = f"{fallback} ({response.status_code})"
    if body is None:
        message = f"{message}: {_summarize_error_body(response)}"
    return message


class ShareCardClient:
    """Thin wrapper over ``httpx.AsyncClient`` for ``/api/share-cards``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "ShareCardClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create_share_card(self, payload: ShareCardPayload) -> ShareCard:
        try:
            response = await self._client.post(
                "/api/share-cards",
                json=payload.model_dump(mode="json", by_alias=True),
            )
        except httpx.HTTPError as exc:
            raise NetworkOrEndpointFailure(str(exc) or DEFAULT_FAILURE_MESSAGE) from exc

        body = _read_json_body(response)
        data = (body or {}).get("data")
        if not response.is_success or not (body or {}).get("success") or not data:
            message = _error_message(response, body, DEFAULT_FAILURE_MESSAGE)
            logger.warning("Share card upload rejected: %s", message)
            raise NetworkOrEndpointFailure(message)
        return ShareCard.model_validate(data)

    async def fetch_share_card(self, slug: str) -> ShareCard:
        try:
            response = await self._client.get(f"/api/share-cards/{slug}")
        except httpx.HTTPError as exc:
            raise NetworkOrEndpointFailure(str(exc) or "Share card not found") from exc

        body = _read_json_body(response)
        data = (body or {}).get("data")
        if not response.is_success or not (body or {}).get("success") or not data:
            raise NetworkOrEndpointFailure(_error_message(response, body, "Share card not found"))
        return ShareCard.model_validate(data)
