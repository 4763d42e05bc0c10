# tests/test_session.py

from __future__ import annotations

import asyncio

import pytest

from bgbridge.bridge.method_channel import MethodCallError
from bgbridge.tasks.session import ExecutionSession
from bgbridge.tasks.task_models import CompletionState
from bgbridge.tasks.task_registry import EVENT_BACKGROUND_FETCH, EVENT_BACKGROUND_PROCESSING

from .conftest import PROCESSING, REFRESH
from .fakes import RecordingWindow, wait_until


def _session(registry, scheduler, bridge, identifier: str) -> tuple[ExecutionSession, RecordingWindow]:
    window = RecordingWindow(identifier=identifier)
    session = ExecutionSession(registry.descriptor_for(identifier), window, scheduler, bridge)
    return session, window


@pytest.mark.asyncio
async def test_success_reports_once_and_rearms_twice(registry, scheduler, bridge, channel, facility) -> None:
    channel.auto_replies[EVENT_BACKGROUND_FETCH] = True
    session, window = _session(registry, scheduler, bridge, REFRESH)

    assert await session.run() is True

    assert window.completions == [True]
    assert session.state == CompletionState.COMPLETED
    assert window.expiration_handler is None
    assert len(facility.submissions_for(REFRESH)) == 2
    assert list(facility.pending) == [REFRESH]


@pytest.mark.asyncio
async def test_rearm_happens_before_bridge_invocation(registry, scheduler, bridge, channel, events) -> None:
    channel.auto_replies[EVENT_BACKGROUND_FETCH] = False
    session, window = _session(registry, scheduler, bridge, REFRESH)

    await session.run()

    assert events == [
        f"submit:{REFRESH}",
        f"invoke:{EVENT_BACKGROUND_FETCH}",
        f"submit:{REFRESH}",
    ]
    assert window.completions == [False]


@pytest.mark.asyncio
async def test_watchdog_wins_and_late_reply_is_ignored(registry, scheduler, bridge, channel, facility) -> None:
    session, window = _session(registry, scheduler, bridge, PROCESSING)
    task = asyncio.create_task(session.run())

    await wait_until(lambda: bool(channel.calls))
    # Re-armed before the application had a chance to answer.
    assert len(facility.submissions_for(PROCESSING)) == 1

    window.fire_expiration()
    assert window.completions == [False]
    assert session.state == CompletionState.EXPIRED
    assert len(facility.submissions_for(PROCESSING)) == 2

    channel.reply(EVENT_BACKGROUND_PROCESSING, True)
    assert await task is False

    assert window.completions == [False]
    assert session.state == CompletionState.EXPIRED
    assert len(facility.submissions_for(PROCESSING)) == 2


@pytest.mark.asyncio
async def test_reply_wins_and_late_expiration_is_ignored(registry, scheduler, bridge, channel) -> None:
    channel.auto_replies[EVENT_BACKGROUND_FETCH] = True
    session, window = _session(registry, scheduler, bridge, REFRESH)

    await session.run()
    session.expire()

    assert window.completions == [True]
    assert session.state == CompletionState.COMPLETED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    ["yes", 1, None, MethodCallError(code="HANDLER_FAILED")],
)
async def test_non_boolean_reply_reports_failure(registry, scheduler, bridge, channel, reply) -> None:
    channel.auto_replies[EVENT_BACKGROUND_FETCH] = reply
    session, window = _session(registry, scheduler, bridge, REFRESH)

    assert await session.run() is False
    assert window.completions == [False]


class _RaisingBridge:
    def __init__(self, events: list[str]) -> None:
        self.events = events

    async def invoke(self, event_name, arguments=None, *, timeout=None):
        self.events.append("invoke")
        raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_bridge_error_still_completes_and_rearms(registry, scheduler, facility, events) -> None:
    window = RecordingWindow(identifier=REFRESH)
    session = ExecutionSession(registry.descriptor_for(REFRESH), window, scheduler, _RaisingBridge(events))

    assert await session.run() is False

    assert window.completions == [False]
    assert events == [f"submit:{REFRESH}", "invoke", f"submit:{REFRESH}"]


@pytest.mark.asyncio
async def test_cancelled_session_still_reports_failure(registry, scheduler, bridge, channel) -> None:
    session, window = _session(registry, scheduler, bridge, REFRESH)
    task = asyncio.create_task(session.run())
    await wait_until(lambda: bool(channel.calls))

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert window.completions == [False]


@pytest.mark.asyncio
async def test_window_failure_does_not_escape(registry, scheduler, bridge, channel) -> None:
    channel.auto_replies[EVENT_BACKGROUND_FETCH] = True
    window = RecordingWindow(identifier=REFRESH, fail_on_complete=True)
    session = ExecutionSession(registry.descriptor_for(REFRESH), window, scheduler, bridge)

    assert await session.run() is True
    assert window.completions == [True]


@pytest.mark.asyncio
async def test_expiration_ends_run_without_any_reply(registry, scheduler, bridge, channel) -> None:
    session, window = _session(registry, scheduler, bridge, PROCESSING)
    task = asyncio.create_task(session.run())
    await wait_until(lambda: bool(channel.calls))

    window.fire_expiration()

    assert await asyncio.wait_for(task, timeout=1.0) is False
    assert window.completions == [False]
    assert session.state == CompletionState.EXPIRED

    # The parked callback may still fire; it changes nothing.
    channel.reply(EVENT_BACKGROUND_PROCESSING, True)
    await asyncio.sleep(0)
    assert window.completions == [False]
