# src/bgbridge/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class TaskKind(StrEnum):
    """
    Kind of background work a task identifier stands for.

    - refresh: short, frequent, lightweight
    - processing: longer, less frequent, may tolerate heavier work
    """

    REFRESH = "refresh"
    PROCESSING = "processing"


class ArmState(StrEnum):
    UNARMED = "unarmed"
    ARMED = "armed"
    RUNNING = "running"


class CompletionState(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    EXPIRED = "expired"


class FetchResult(StrEnum):
    """Binary outcome reported on the legacy fetch path."""

    NEW_DATA = "new_data"
    NO_DATA = "no_data"


@dataclass(slots=True, frozen=True)
class TaskDescriptor:
    identifier: str
    kind: TaskKind
    event_name: str
    min_delay_seconds: float
    requires_network: bool = False
    requires_power: bool = False


@dataclass(slots=True, frozen=True)
class ScheduleRequest:
    """
    One request for a future execution window.

    Created by the scheduler each time a task is armed and handed to the facility,
    which keeps at most one pending request per identifier.
    """

    identifier: str
    kind: TaskKind
    earliest_begin_at: float
    requires_network: bool = False
    requires_power: bool = False


@dataclass(slots=True)
class AutoStartRegistration:
    # Process-wide, not persisted.
    active: bool = False
