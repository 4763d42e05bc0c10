# src/bgbridge/core/host.py

"""
Background task host.

This module is the composition point between the OS facility and the application
channel:
- registers one window-entry handler per task identifier at launch,
- answers app -> core method calls (registerAutoStart, setBackgroundFetchInterval, ...),
- runs one ExecutionSession per granted window,
- handles the legacy fetch path and the termination notice.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from ..bridge.callback_bridge import BridgeResult, CallbackBridge, fetch_result
from ..bridge.method_channel import MethodCall, MethodCallRouter
from ..core.errors import InvalidArgumentError
from ..core.ports import AppChannel, BackgroundWindow, FetchCompletion, TaskFacility, WindowHandler
from ..tasks.session import ExecutionSession
from ..tasks.task_models import AutoStartRegistration, FetchResult, TaskDescriptor, TaskKind
from ..tasks.task_registry import TaskRegistry, default_registry
from ..tasks.task_scheduler import Scheduler

logger = logging.getLogger(__name__)

EVENT_APP_WILL_TERMINATE = "onAppWillTerminate"


class BackgroundTaskHost:
    def __init__(
            self,
            settings,
            facility: TaskFacility,
            channel: AppChannel,
            *,
            registry: TaskRegistry | None = None,
            clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.registry = registry if registry is not None else default_registry(settings)
        self.facility = facility
        self.channel = channel
        self.scheduler = Scheduler(
            self.registry,
            facility,
            clock=clock,
            strict=bool(getattr(settings, "debug", False)),
        )
        self.bridge = CallbackBridge(channel)
        self.auto_start = AutoStartRegistration()
        self.router = MethodCallRouter()
        self.sessions: dict[str, ExecutionSession] = {}

        self._clock = clock
        self._tasks: set[asyncio.Task] = set()
        self._launched = False
        self._register_methods()

    # ---- startup ----

    def launch(self) -> None:
        """One-time startup: facility handlers + channel handler."""
        if self._launched:
            return
        if self.facility.supports_scheduled_tasks:
            for descriptor in self.registry.descriptors():
                self.facility.register(descriptor.identifier, self._window_handler(descriptor))
        else:
            logger.info("Facility has no scheduled tasks; only the legacy fetch path is available")
        self.channel.set_method_call_handler(self.router.handle)
        self._launched = True
        logger.info("Host launched tasks=%s", ", ".join(self.registry.identifiers()))

    def _register_methods(self) -> None:
        r = self.router
        r.register("registerAutoStart", lambda call: self.register_auto_start())
        r.register("unregisterAutoStart", lambda call: self.unregister_auto_start())
        r.register("configureBackgroundFetch", lambda call: self._configure(TaskKind.REFRESH))
        r.register("configureBackgroundProcessing", lambda call: self._configure(TaskKind.PROCESSING))
        r.register("setBackgroundFetchInterval", self._set_fetch_interval)
        r.register("isRegisteredForAutoStart", lambda call: self.is_registered_for_auto_start())

    # ---- app -> core ----

    def register_auto_start(self) -> bool:
        self.scheduler.arm_all()
        self.auto_start.active = True
        return True

    def unregister_auto_start(self) -> bool:
        self.scheduler.cancel_all()
        self.auto_start.active = False
        return True

    def is_registered_for_auto_start(self) -> bool:
        # Unconditional by design of the host integration; see DESIGN.md open questions.
        return True

    def _configure(self, kind: TaskKind) -> bool:
        self.scheduler.arm(self.registry.for_kind(kind).identifier)
        return True

    def _set_fetch_interval(self, call: MethodCall) -> bool:
        args: Any = call.arguments
        if not isinstance(args, dict):
            raise InvalidArgumentError("Invalid arguments")
        refresh = self.registry.for_kind(TaskKind.REFRESH)
        return self.scheduler.set_interval(refresh.identifier, args.get("seconds"))

    # ---- windows ----

    def _window_handler(self, descriptor: TaskDescriptor) -> WindowHandler:
        def _on_window(window: BackgroundWindow) -> None:
            self.open_session(descriptor, window)

        return _on_window

    def open_session(self, descriptor: TaskDescriptor, window: BackgroundWindow) -> asyncio.Task:
        session = ExecutionSession(descriptor, window, self.scheduler, self.bridge, clock=self._clock)
        self.sessions[descriptor.identifier] = session

        task = asyncio.get_running_loop().create_task(
            session.run(), name=f"bg-window:{descriptor.identifier}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for all live sessions to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ---- legacy path ----

    async def handle_legacy_fetch(self, completion: FetchCompletion) -> FetchResult:
        """
        Legacy fetch: the OS owns cadence and budget.

        No re-arm and no watchdog; the reply maps to new_data / no_data and
        completion is called exactly once.
        """
        descriptor = self.registry.for_kind(TaskKind.REFRESH)
        try:
            result = await self.bridge.invoke(
                descriptor.event_name,
                timeout=getattr(self.settings, "legacy_fetch_timeout_seconds", None),
            )
        except Exception:
            logger.exception("Legacy fetch bridge failed")
            result = BridgeResult.no_response()

        outcome = fetch_result(result)
        logger.info("Legacy fetch finished outcome=%s", outcome.value)
        try:
            completion(outcome)
        except Exception:
            logger.exception("Legacy fetch completion handler failed")
        return outcome

    # ---- shutdown ----

    def will_terminate(self) -> None:
        """Best-effort, fire-and-forget termination notice."""
        try:
            self.channel.invoke_method(EVENT_APP_WILL_TERMINATE, None, None)
        except Exception:
            logger.warning("Could not notify application of termination", exc_info=True)
