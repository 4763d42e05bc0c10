# tests/test_task_registry.py

from __future__ import annotations

import pytest

from bgbridge.core.errors import UnknownTaskError
from bgbridge.tasks.task_models import TaskDescriptor, TaskKind
from bgbridge.tasks.task_registry import (
    EVENT_BACKGROUND_FETCH,
    EVENT_BACKGROUND_PROCESSING,
    TaskRegistry,
)

from .conftest import PROCESSING, REFRESH


def test_default_registry_descriptors(registry: TaskRegistry) -> None:
    refresh = registry.descriptor_for(REFRESH)
    assert refresh.kind == TaskKind.REFRESH
    assert refresh.event_name == EVENT_BACKGROUND_FETCH
    assert refresh.min_delay_seconds == 900

    processing = registry.descriptor_for(PROCESSING)
    assert processing.kind == TaskKind.PROCESSING
    assert processing.event_name == EVENT_BACKGROUND_PROCESSING
    assert processing.min_delay_seconds == 1800
    assert processing.requires_network is False
    assert processing.requires_power is False

    assert registry.identifiers() == [REFRESH, PROCESSING]
    assert registry.for_kind(TaskKind.PROCESSING) is processing


def test_unknown_identifier_raises(registry: TaskRegistry) -> None:
    with pytest.raises(UnknownTaskError) as exc:
        registry.descriptor_for("nope")
    assert exc.value.identifier == "nope"
    assert "nope" not in registry


def test_duplicate_identifier_rejected() -> None:
    d = TaskDescriptor("x", TaskKind.REFRESH, EVENT_BACKGROUND_FETCH, 60)
    with pytest.raises(ValueError):
        TaskRegistry([d, d])
