"""Share-card publishing: summary projection, endpoint client and pipeline."""

from .client import ShareCardClient
from .errors import (
    NetworkOrEndpointFailure,
    PublishFailure,
    PublishInProgress,
    UnknownFailure,
)
from .pipeline import PublishStatus, ShareCardPublisher
from .summary import build_default_caption, build_summary

__all__ = [
    "NetworkOrEndpointFailure",
    "PublishFailure",
    "PublishInProgress",
    "PublishStatus",
    "ShareCardClient",
    "ShareCardPublisher",
    "UnknownFailure",
    "build_default_caption",
    "build_summary",
]
