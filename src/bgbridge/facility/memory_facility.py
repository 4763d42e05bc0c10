# src/bgbridge/facility/memory_facility.py

from __future__ import annotations

"""
In-memory task facility.

Stands in for the OS task-execution facility in tests and in the local simulator:
- keeps at most one pending ScheduleRequest per identifier (submit replaces),
- records every submission and cancellation for assertions,
- opens windows on grant() and fires their expiration after a budget.

A polling loop (run_facility_loop) grants requests once they are due.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from ..core.errors import OSSubmissionError, UnknownTaskError, WindowAlreadyCompletedError
from ..core.ports import WindowHandler
from ..tasks.task_models import ScheduleRequest

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def scaled_clock(time_scale: float, base: Clock = time.time) -> Clock:
    """Clock running time_scale times faster than base, starting from base() now."""
    scale = max(1e-6, float(time_scale))
    origin = base()

    def _now() -> float:
        return origin + (base() - origin) * scale

    return _now


class InMemoryWindow:
    def __init__(
            self,
            identifier: str,
            *,
            deadline: float | None = None,
            on_close: Callable[[InMemoryWindow], None] | None = None,
    ) -> None:
        self.identifier = identifier
        self.expiration_handler: Callable[[], None] | None = None
        self.completions: list[bool] = []
        self._deadline = deadline
        self._on_close = on_close
        self._timer: asyncio.TimerHandle | None = None

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def completed(self) -> bool:
        return bool(self.completions)

    def set_completed(self, success: bool) -> None:
        if self.completions:
            raise WindowAlreadyCompletedError(self.identifier)
        self.completions.append(bool(success))
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._on_close is not None:
            self._on_close(self)

    def arm_timer(self, budget_seconds: float) -> None:
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(max(0.0, budget_seconds), self.expire)

    def expire(self) -> None:
        """Deadline reached: call the installed expiration handler, if any."""
        self._timer = None
        if self.completed:
            return
        handler = self.expiration_handler
        if handler is None:
            logger.warning("Window %s expired without an expiration handler", self.identifier)
            return
        handler()


class InMemoryTaskFacility:
    def __init__(self, *, supports_scheduled_tasks: bool = True, clock: Clock = time.time) -> None:
        self._supports = supports_scheduled_tasks
        self._clock = clock
        self._handlers: dict[str, WindowHandler] = {}

        self.pending: dict[str, ScheduleRequest] = {}
        self.submitted: list[ScheduleRequest] = []
        self.cancelled: list[str] = []
        self.active: dict[str, InMemoryWindow] = {}

        # Legacy path
        self.legacy_fetch_configured = False
        self.minimum_fetch_interval: float | None = None

        # Failure injection
        self.fail_all = False
        self.failing: set[str] = set()

    @property
    def supports_scheduled_tasks(self) -> bool:
        return self._supports

    def registered(self) -> list[str]:
        return list(self._handlers)

    def register(self, identifier: str, handler: WindowHandler) -> None:
        if identifier in self._handlers:
            raise ValueError(f"Handler already registered for {identifier!r}")
        self._handlers[identifier] = handler

    def submit(self, request: ScheduleRequest) -> None:
        if not self._supports:
            raise OSSubmissionError("Scheduled tasks are not supported")
        if self.fail_all or request.identifier in self.failing:
            raise OSSubmissionError(f"Request declined for {request.identifier}")
        self.pending[request.identifier] = request
        self.submitted.append(request)

    def cancel(self, identifier: str) -> None:
        self.pending.pop(identifier, None)
        self.cancelled.append(identifier)

    def set_minimum_fetch_interval(self, seconds: float | None) -> None:
        self.legacy_fetch_configured = True
        self.minimum_fetch_interval = seconds

    def submissions_for(self, identifier: str) -> list[ScheduleRequest]:
        return [r for r in self.submitted if r.identifier == identifier]

    def due(self, now: float | None = None) -> list[ScheduleRequest]:
        now_ts = self._clock() if now is None else now
        out = [r for r in self.pending.values() if r.earliest_begin_at <= now_ts]
        out.sort(key=lambda r: r.earliest_begin_at)
        return out

    def grant(self, identifier: str, *, budget_seconds: float | None = None) -> InMemoryWindow:
        """
        Open a window for the pending request of identifier.

        Consumes the pending request. With budget_seconds, the window's expiration
        fires after that many (real) seconds unless it completes first.
        """
        handler = self._handlers.get(identifier)
        if handler is None:
            raise UnknownTaskError(identifier)
        if identifier not in self.pending:
            raise LookupError(f"No pending request for {identifier!r}")
        if identifier in self.active:
            raise RuntimeError(f"Window already active for {identifier!r}")

        self.pending.pop(identifier)
        deadline = None if budget_seconds is None else self._clock() + budget_seconds
        window = InMemoryWindow(identifier, deadline=deadline, on_close=self._window_closed)
        self.active[identifier] = window
        if budget_seconds is not None:
            window.arm_timer(budget_seconds)

        logger.debug("Granting window for %s budget=%s", identifier, budget_seconds)
        handler(window)
        return window

    def _window_closed(self, window: InMemoryWindow) -> None:
        if self.active.get(window.identifier) is window:
            del self.active[window.identifier]


async def run_facility_loop(
        facility: InMemoryTaskFacility,
        *,
        interval_seconds: float = 1.0,
        window_budget_seconds: float | None = None,
) -> None:
    """
    Simple polling loop granting due requests.

    To stop it, cancel the coroutine/task.
    """
    sleep_s = max(0.05, float(interval_seconds))

    while True:
        for request in facility.due():
            if request.identifier in facility.active:
                continue
            try:
                facility.grant(request.identifier, budget_seconds=window_budget_seconds)
            except Exception:
                logger.exception("grant failed identifier=%s", request.identifier)

        await asyncio.sleep(sleep_s)
