# src/bgbridge/tasks/task_scheduler.py

from __future__ import annotations

"""
Scheduler.

Owns the arm/cancel lifecycle of every task identifier:
- builds a ScheduleRequest (now + descriptor delay) and submits it to the facility,
- withdraws pending requests on demand,
- tracks a small per-identifier state machine (unarmed -> armed -> running -> armed).

Submission is fire-and-forget. A declined request is logged and swallowed; the next
arm (app resume, next window) is the retry.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from ..core.errors import InvalidArgumentError, UnknownTaskError
from ..core.ports import TaskFacility
from .task_models import ArmState, ScheduleRequest, TaskDescriptor, TaskKind
from .task_registry import TaskRegistry

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class Scheduler:
    def __init__(
            self,
            registry: TaskRegistry,
            facility: TaskFacility,
            *,
            clock: Clock = time.time,
            strict: bool = False,
    ) -> None:
        self._registry = registry
        self._facility = facility
        self._clock = clock
        self._strict = strict
        self._states: dict[str, ArmState] = {i: ArmState.UNARMED for i in registry.identifiers()}

    @property
    def registry(self) -> TaskRegistry:
        return self._registry

    def state_of(self, identifier: str) -> ArmState:
        self._registry.descriptor_for(identifier)
        return self._states[identifier]

    def _lookup(self, identifier: str) -> TaskDescriptor | None:
        try:
            return self._registry.descriptor_for(identifier)
        except UnknownTaskError:
            if self._strict:
                raise
            logger.error("Unknown task identifier %r, ignoring", identifier)
            return None

    def build_request(self, descriptor: TaskDescriptor) -> ScheduleRequest:
        return ScheduleRequest(
            identifier=descriptor.identifier,
            kind=descriptor.kind,
            earliest_begin_at=self._clock() + descriptor.min_delay_seconds,
            requires_network=descriptor.requires_network,
            requires_power=descriptor.requires_power,
        )

    def arm(self, identifier: str) -> bool:
        """
        Request the next window for identifier.

        Returns True when a request was handed to the facility. Never raises on
        facility failure (only on an unknown identifier in strict mode).
        """
        descriptor = self._lookup(identifier)
        if descriptor is None:
            return False

        if not self._facility.supports_scheduled_tasks:
            return self._arm_legacy(descriptor)

        request = self.build_request(descriptor)
        try:
            self._facility.submit(request)
        except Exception:
            logger.warning(
                "Could not schedule %s task %s; will retry at next opportunity",
                descriptor.kind.value,
                identifier,
                exc_info=True,
            )
            if self._states[identifier] == ArmState.ARMED:
                # A failed replace leaves whatever the facility already had.
                return False
            self._states[identifier] = ArmState.UNARMED
            return False

        self._states[identifier] = ArmState.ARMED
        logger.debug(
            "Armed %s earliest_begin_at=%.3f network=%s power=%s",
            identifier,
            request.earliest_begin_at,
            request.requires_network,
            request.requires_power,
        )
        return True

    def _arm_legacy(self, descriptor: TaskDescriptor) -> bool:
        # Only fetch exists on the legacy path; the OS owns the cadence.
        if descriptor.kind != TaskKind.REFRESH:
            return False
        try:
            self._facility.set_minimum_fetch_interval(None)
        except Exception:
            logger.warning("Could not set minimum background fetch interval", exc_info=True)
            return False
        self._states[descriptor.identifier] = ArmState.ARMED
        return True

    def arm_all(self) -> int:
        armed = 0
        for identifier in self._registry.identifiers():
            if self.arm(identifier):
                armed += 1
        return armed

    def cancel(self, identifier: str) -> None:
        descriptor = self._lookup(identifier)
        if descriptor is None:
            return
        if self._facility.supports_scheduled_tasks:
            try:
                self._facility.cancel(identifier)
            except Exception:
                logger.warning("Cancel failed for %s", identifier, exc_info=True)
        if self._states[identifier] == ArmState.ARMED:
            self._states[identifier] = ArmState.UNARMED

    def cancel_all(self) -> None:
        for identifier in self._registry.identifiers():
            self.cancel(identifier)

    def window_opened(self, identifier: str) -> None:
        if identifier in self._registry:
            self._states[identifier] = ArmState.RUNNING

    def set_interval(self, identifier: str, seconds: Any) -> bool:
        """
        Validate and acknowledge a custom interval.

        The value is not persisted: the live delay stays the descriptor default.
        """
        if seconds is None:
            raise InvalidArgumentError("Missing 'seconds'")
        if isinstance(seconds, bool) or not isinstance(seconds, int):
            raise InvalidArgumentError(f"'seconds' must be an integer, got {type(seconds).__name__}")
        descriptor = self._lookup(identifier)
        if descriptor is None:
            return False
        logger.info(
            "Interval %ss acknowledged for %s (not persisted, using %ss)",
            seconds,
            identifier,
            descriptor.min_delay_seconds,
        )
        return True
