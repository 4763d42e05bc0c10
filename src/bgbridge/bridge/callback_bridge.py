# src/bgbridge/bridge/callback_bridge.py

from __future__ import annotations

"""
Callback bridge.

One round trip to the application layer per invoke(): the channel's reply callback
is resolved into a future on the running loop and awaited, optionally with a
timeout. Whatever happens, invoke() returns a BridgeResult and never raises
for channel or application failures.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..core.ports import AppChannel
from ..tasks.task_models import FetchResult
from .method_channel import METHOD_NOT_IMPLEMENTED, MethodCallError

logger = logging.getLogger(__name__)


class BridgeOutcome(StrEnum):
    REPLIED = "replied"
    NO_RESPONSE = "no_response"
    TIMEOUT = "timeout"


@dataclass(slots=True, frozen=True)
class BridgeResult:
    outcome: BridgeOutcome
    reply: Any = None

    @property
    def success(self) -> bool:
        # Only a real boolean True counts; any other reply is a failure.
        return self.outcome == BridgeOutcome.REPLIED and self.reply is True

    @classmethod
    def no_response(cls, reply: Any = None) -> BridgeResult:
        return cls(outcome=BridgeOutcome.NO_RESPONSE, reply=reply)

    @classmethod
    def timed_out(cls) -> BridgeResult:
        return cls(outcome=BridgeOutcome.TIMEOUT)


def fetch_result(result: BridgeResult) -> FetchResult:
    """Legacy path: new data only for an explicit True reply."""
    return FetchResult.NEW_DATA if result.success else FetchResult.NO_DATA


class CallbackBridge:
    def __init__(self, channel: AppChannel) -> None:
        self._channel = channel

    async def invoke(
            self,
            event_name: str,
            arguments: Any = None,
            *,
            timeout: float | None = None,
    ) -> BridgeResult:
        loop = asyncio.get_running_loop()
        fut: asyncio.Future[Any] = loop.create_future()

        def _resolve(reply: Any) -> None:
            if fut.done():
                logger.debug("Ignoring extra reply for %s", event_name)
                return
            fut.set_result(reply)

        def _on_reply(reply: Any) -> None:
            # The channel may answer from another thread.
            if loop.is_closed():
                return
            loop.call_soon_threadsafe(_resolve, reply)

        try:
            self._channel.invoke_method(event_name, arguments, _on_reply)
        except Exception:
            logger.warning("Channel invoke failed event=%s", event_name, exc_info=True)
            return BridgeResult.no_response()

        try:
            if timeout is None:
                reply = await fut
            else:
                reply = await asyncio.wait_for(fut, timeout=max(0.0, float(timeout)))
        except TimeoutError:
            logger.info("No reply for %s within %.1fs", event_name, timeout)
            return BridgeResult.timed_out()

        if reply is METHOD_NOT_IMPLEMENTED or isinstance(reply, MethodCallError):
            logger.warning("Application did not handle %s: %r", event_name, reply)
            return BridgeResult.no_response(reply)

        return BridgeResult(outcome=BridgeOutcome.REPLIED, reply=reply)
