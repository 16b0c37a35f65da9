"""Failures surfaced while publishing share cards."""

from __future__ import annotations


DEFAULT_FAILURE_MESSAGE = "Failed to create share card"


class PublishFailure(RuntimeError):
    """Base failure carrying a message suitable for display."""

    def __init__(self, message: str = DEFAULT_FAILURE_MESSAGE):
        super().__init__(message)
        self.message = message


class NetworkOrEndpointFailure(PublishFailure):
    """The endpoint was unreachable or reported an error."""


class UnknownFailure(PublishFailure):
    """Any other failure raised while publishing."""


class PublishInProgress(PublishFailure):
    """A publish is already in flight on this pipeline."""

    def __init__(self, message: str = "A share card upload is already in progress"):
        super().__init__(message)
