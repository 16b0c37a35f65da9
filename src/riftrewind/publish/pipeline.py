"""Single-flight publish state machine for one player's share card."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from riftrewind.models import PlayerRecord, ShareCardPayload

from .client import ShareCardClient
from .errors import DEFAULT_FAILURE_MESSAGE, PublishFailure, PublishInProgress, UnknownFailure
from .summary import build_summary


logger = logging.getLogger(__name__)

PublishFn = Callable[[ShareCardPayload], Awaitable[Any]]

_INTERRUPTED_MESSAGE = "Share card upload was interrupted"


class PublishStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


class ShareCardPublisher:
    """Uploads share cards for a single player and tracks the outcome.

    ``publish`` moves ``idle``/``success``/``error`` to ``uploading`` and then
    to ``success`` or ``error``; ``reset`` returns to ``idle``. The status is
    checked and set before the first ``await``, so a second ``publish`` on the
    same instance while one is in flight is rejected with ``PublishInProgress``
    instead of racing the first.
    """

    def __init__(self, record: PlayerRecord, publish_fn: PublishFn):
        self.record = record
        self._publish_fn = publish_fn
        self._status = PublishStatus.IDLE
        self._result: Any = None
        self._error: Optional[str] = None

    @classmethod
    def from_client(cls, record: PlayerRecord, client: ShareCardClient) -> "ShareCardPublisher":
        return cls(record, client.create_share_card)

    @property
    def status(self) -> PublishStatus:
        return self._status

    @property
    def result(self) -> Any:
        return self._result

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def is_uploading(self) -> bool:
        return self._status is PublishStatus.UPLOADING

    async def publish(self, card_image: str, caption: str) -> Any:
        if self.is_uploading:
            raise PublishInProgress()
        self._status = PublishStatus.UPLOADING
        self._error = None

        try:
            payload = ShareCardPayload(
                card_data_url=card_image,
                caption=caption,
                player=build_summary(self.record),
            )
            result = await self._publish_fn(payload)
        except PublishFailure as exc:
            self._fail(exc.message or DEFAULT_FAILURE_MESSAGE)
            raise
        except Exception as exc:
            message = str(exc) or DEFAULT_FAILURE_MESSAGE
            self._fail(message)
            raise UnknownFailure(message) from exc
        else:
            self._result = result
            self._status = PublishStatus.SUCCESS
        finally:
            if self.is_uploading:
                self._fail(_INTERRUPTED_MESSAGE)

        logger.info("Published share card for %s", self.record.display_name)
        return result

    def reset(self) -> None:
        if self.is_uploading:
            raise PublishInProgress("Cannot reset while a share card upload is in progress")
        self._result = None
        self._error = None
        self._status = PublishStatus.IDLE

    def _fail(self, message: str) -> None:
        self._error = message
        self._status = PublishStatus.ERROR
        logger.warning("Share card upload failed for %s: %s", self.record.display_name, message)
