# src/bgbridge/tasks/task_registry.py

from __future__ import annotations

from collections.abc import Iterable

from ..core.errors import UnknownTaskError
from .task_models import TaskDescriptor, TaskKind

EVENT_BACKGROUND_FETCH = "onBackgroundFetch"
EVENT_BACKGROUND_PROCESSING = "onBackgroundProcessing"


class TaskRegistry:
    """Static identifier -> descriptor lookup. No mutable state after construction."""

    def __init__(self, descriptors: Iterable[TaskDescriptor]) -> None:
        by_id: dict[str, TaskDescriptor] = {}
        for d in descriptors:
            if d.identifier in by_id:
                raise ValueError(f"Duplicate task identifier: {d.identifier!r}")
            by_id[d.identifier] = d
        self._by_id = by_id

    def descriptor_for(self, identifier: str) -> TaskDescriptor:
        try:
            return self._by_id[identifier]
        except KeyError:
            raise UnknownTaskError(identifier) from None

    def identifiers(self) -> list[str]:
        return list(self._by_id)

    def descriptors(self) -> list[TaskDescriptor]:
        return list(self._by_id.values())

    def for_kind(self, kind: TaskKind) -> TaskDescriptor:
        for d in self._by_id.values():
            if d.kind == kind:
                return d
        raise UnknownTaskError(str(kind))

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)


def default_registry(settings) -> TaskRegistry:
    """Refresh (onBackgroundFetch) + processing (onBackgroundProcessing) from settings."""
    return TaskRegistry(
        [
            TaskDescriptor(
                identifier=settings.refresh_identifier,
                kind=TaskKind.REFRESH,
                event_name=EVENT_BACKGROUND_FETCH,
                min_delay_seconds=float(settings.refresh_delay_seconds),
            ),
            TaskDescriptor(
                identifier=settings.processing_identifier,
                kind=TaskKind.PROCESSING,
                event_name=EVENT_BACKGROUND_PROCESSING,
                min_delay_seconds=float(settings.processing_delay_seconds),
                requires_network=bool(settings.processing_requires_network),
                requires_power=bool(settings.processing_requires_power),
            ),
        ]
    )
