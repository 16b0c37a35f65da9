"""Pydantic models for API I/O."""

from .share_card import CreateShareCardRequest, PlayerLookupResponse, ShareCardResponse

__all__ = [
    "CreateShareCardRequest",
    "PlayerLookupResponse",
    "ShareCardResponse",
]
