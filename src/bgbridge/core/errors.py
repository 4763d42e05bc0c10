# src/bgbridge/core/errors.py

"""
Error taxonomy.

Only UnknownTaskError and InvalidArgumentError are expected to reach callers.
The others are raised by collaborators (facility, channel, window) and caught
at the scheduler or window boundary.

An application that does not answer and a window that hits its deadline are
not exceptions: they are carried as BridgeOutcome.NO_RESPONSE and
CompletionState.EXPIRED values and end in success=False.
"""

from __future__ import annotations


class BackgroundBridgeError(Exception):
    """Base class for all bgbridge errors."""


class UnknownTaskError(BackgroundBridgeError, LookupError):
    def __init__(self, identifier: str) -> None:
        super().__init__(f"Unknown task identifier: {identifier!r}")
        self.identifier = identifier


class InvalidArgumentError(BackgroundBridgeError, ValueError):
    """Malformed request payload (e.g. a missing or non-integer interval)."""


class OSSubmissionError(BackgroundBridgeError):
    """The facility declined a schedule request (duplicate, quota, disabled feature)."""


class ChannelClosedError(BackgroundBridgeError):
    pass


class WindowAlreadyCompletedError(BackgroundBridgeError):
    pass
