# src/bgbridge/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
The real OS facility cannot be driven deterministically, so the in-memory
facility and the local channel stand in for it in tests and in the CLI.
"""

from collections.abc import Callable
from typing import Any, Protocol

from ..tasks.task_models import FetchResult, ScheduleRequest

ResultCallback = Callable[[Any], None]
# Reply callback of a core -> app method call. Called with the reply value.

FetchCompletion = Callable[[FetchResult], None]


class BackgroundWindow(Protocol):
    """
    One live OS-granted execution window.

    The OS calls expiration_handler (if set) at its deadline.
    set_completed must be called exactly once per window.
    """

    identifier: str
    expiration_handler: Callable[[], None] | None

    @property
    def deadline(self) -> float | None: ...

    def set_completed(self, success: bool) -> None: ...


WindowHandler = Callable[[BackgroundWindow], None]


class TaskFacility(Protocol):
    """OS task-execution facility (register/submit/cancel)."""

    @property
    def supports_scheduled_tasks(self) -> bool: ...

    def register(self, identifier: str, handler: WindowHandler) -> None: ...

    def submit(self, request: ScheduleRequest) -> None:
        """Replace any pending request for the same identifier. May raise."""
        ...

    def cancel(self, identifier: str) -> None: ...

    # Legacy path: the OS owns cadence, we only ask for its minimum interval.
    def set_minimum_fetch_interval(self, seconds: float | None) -> None: ...


class AppChannel(Protocol):
    """
    Bidirectional call channel to the application layer.

    Core -> app calls are callback based: callback receives the reply (a value,
    a MethodCallError or METHOD_NOT_IMPLEMENTED). callback may be None for
    fire-and-forget calls.
    """

    def invoke_method(
            self,
            method: str,
            arguments: Any = None,
            callback: ResultCallback | None = None,
    ) -> None: ...

    def set_method_call_handler(self, handler: Callable[[Any], Any] | None) -> None: ...
