# tests/conftest.py

from __future__ import annotations

from types import SimpleNamespace

import pytest

from bgbridge.bridge.callback_bridge import CallbackBridge
from bgbridge.tasks.task_registry import TaskRegistry, default_registry
from bgbridge.tasks.task_scheduler import Scheduler

from .fakes import ManualClock, RecordingFacility, ScriptedChannel

REFRESH = "test.refresh"
PROCESSING = "test.processing"


@pytest.fixture()
def settings() -> SimpleNamespace:
    """
    Minimal settings object compatible with the registry and the host.

    We intentionally use a SimpleNamespace rather than the env-driven Settings,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        debug=True,
        refresh_identifier=REFRESH,
        processing_identifier=PROCESSING,
        refresh_delay_seconds=15 * 60,
        processing_delay_seconds=30 * 60,
        processing_requires_network=False,
        processing_requires_power=False,
        legacy_fetch_timeout_seconds=0.05,
    )


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def events() -> list[str]:
    return []


@pytest.fixture()
def registry(settings: SimpleNamespace) -> TaskRegistry:
    return default_registry(settings)


@pytest.fixture()
def facility(events: list[str], clock: ManualClock) -> RecordingFacility:
    return RecordingFacility(events, clock=clock)


@pytest.fixture()
def scheduler(registry: TaskRegistry, facility: RecordingFacility, clock: ManualClock) -> Scheduler:
    return Scheduler(registry, facility, clock=clock, strict=True)


@pytest.fixture()
def channel(events: list[str]) -> ScriptedChannel:
    return ScriptedChannel(events)


@pytest.fixture()
def bridge(channel: ScriptedChannel) -> CallbackBridge:
    return CallbackBridge(channel)
