# src/bgbridge/tasks/session.py

from __future__ import annotations

"""
Execution session: one live OS-granted window.

Order inside a window:
1. re-arm the scheduler for the same identifier (before any work)
2. install the expiration watchdog on the window
3. invoke the application callback through the bridge
4. report completion (reply if boolean, else False)
5. disarm the watchdog and re-arm again

The watchdog and the bridge reply race; a single completed flag decides the
winner. The loser is neither reported nor re-armed. When the watchdog wins,
the in-flight bridge call is cancelled and run() returns right away.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from ..bridge.callback_bridge import BridgeResult, CallbackBridge
from ..core.ports import BackgroundWindow
from .task_models import CompletionState, TaskDescriptor, TaskKind
from .task_scheduler import Scheduler

logger = logging.getLogger(__name__)


class ExecutionSession:
    def __init__(
            self,
            descriptor: TaskDescriptor,
            window: BackgroundWindow,
            scheduler: Scheduler,
            bridge: CallbackBridge,
            *,
            clock: Callable[[], float] = time.time,
    ) -> None:
        self._descriptor = descriptor
        self._window = window
        self._scheduler = scheduler
        self._bridge = bridge
        self._completed = False
        self._expired = asyncio.Event()

        self.started_at = clock()
        self.state = CompletionState.PENDING
        self.success: bool | None = None

    @property
    def identifier(self) -> str:
        return self._descriptor.identifier

    @property
    def kind(self) -> TaskKind:
        return self._descriptor.kind

    @property
    def deadline(self) -> float | None:
        return self._window.deadline

    @property
    def completed(self) -> bool:
        return self._completed

    async def run(self) -> bool:
        """Drive the window to exactly one completion. Returns the reported success."""
        logger.info("Window opened for %s (%s)", self.identifier, self.kind.value)

        self._scheduler.window_opened(self.identifier)
        self._scheduler.arm(self.identifier)

        self._window.expiration_handler = self.expire

        bridge_task = asyncio.ensure_future(self._bridge.invoke(self._descriptor.event_name))
        expired_wait = asyncio.ensure_future(self._expired.wait())
        try:
            await asyncio.wait({bridge_task, expired_wait}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            bridge_task.cancel()
            expired_wait.cancel()
            self._finish(CompletionState.EXPIRED, False)
            raise
        expired_wait.cancel()

        if not bridge_task.done():
            # Watchdog won; a reply arriving now has nowhere to go.
            bridge_task.cancel()
            return bool(self.success)

        try:
            result = bridge_task.result()
        except Exception:
            logger.exception("Bridge invoke failed for %s", self.identifier)
            result = BridgeResult.no_response()

        self._finish(CompletionState.COMPLETED, result.success)
        return bool(self.success)

    def expire(self) -> None:
        """Expiration watchdog. Called by the OS at the window deadline."""
        if self._completed:
            return
        logger.warning("Window for %s expired before the application answered", self.identifier)
        self._finish(CompletionState.EXPIRED, False)
        self._expired.set()

    def _finish(self, state: CompletionState, success: bool) -> None:
        if self._completed:
            logger.debug("Ignoring late %s for %s", state.value, self.identifier)
            return
        self._completed = True
        self.state = state
        self.success = success

        self._window.expiration_handler = None
        try:
            self._window.set_completed(success)
        except Exception:
            logger.exception("set_completed failed for %s", self.identifier)

        logger.info("Window for %s finished state=%s success=%s", self.identifier, state.value, success)
        self._scheduler.arm(self.identifier)
