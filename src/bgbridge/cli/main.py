# src/bgbridge/cli/main.py

"""
CLI entrypoint: local simulator.

Initializes logging, wires the host against the in-memory facility and a local
application channel with demo handlers, then runs until SIGINT/SIGTERM:
- modern path: the facility polling loop grants windows once requests are due,
- legacy path: the simulated OS triggers a fetch on its own cadence.

Set BGBRIDGE_TIME_SCALE (e.g. 60) to make the 15/30 minute delays pass faster.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Any

from ..bridge.method_channel import LocalAppChannel
from ..config import Settings, get_settings
from ..core.host import EVENT_APP_WILL_TERMINATE, BackgroundTaskHost
from ..facility.memory_facility import InMemoryTaskFacility, run_facility_loop, scaled_clock
from ..logging_setup import setup_logging
from ..tasks.task_models import FetchResult
from ..tasks.task_registry import EVENT_BACKGROUND_FETCH, EVENT_BACKGROUND_PROCESSING

logger = logging.getLogger(__name__)


def _install_demo_app(channel: LocalAppChannel) -> None:
    """Application side of the channel: trivial work that always succeeds."""

    async def on_fetch(_args: Any) -> bool:
        await asyncio.sleep(0.1)
        logger.info("[app] background fetch done")
        return True

    async def on_processing(_args: Any) -> bool:
        await asyncio.sleep(0.5)
        logger.info("[app] background processing done")
        return True

    async def on_terminate(_args: Any) -> None:
        logger.info("[app] terminating")

    channel.on(EVENT_BACKGROUND_FETCH, on_fetch)
    channel.on(EVENT_BACKGROUND_PROCESSING, on_processing)
    channel.on(EVENT_APP_WILL_TERMINATE, on_terminate)


async def _run_legacy_loop(host: BackgroundTaskHost, interval_seconds: float) -> None:
    def _done(result: FetchResult) -> None:
        logger.info("[os] legacy fetch completed: %s", result.value)

    while True:
        await asyncio.sleep(interval_seconds)
        await host.handle_legacy_fetch(_done)


async def run(settings: Settings) -> None:
    clock = scaled_clock(settings.time_scale)
    facility = InMemoryTaskFacility(supports_scheduled_tasks=not settings.legacy_mode, clock=clock)
    channel = LocalAppChannel(settings.channel_name)
    _install_demo_app(channel)

    host = BackgroundTaskHost(settings, facility, channel, clock=clock)
    host.launch()

    if settings.auto_start:
        await channel.call("registerAutoStart")

    if settings.legacy_mode:
        interval = max(0.5, settings.refresh_delay_seconds / max(settings.time_scale, 1e-6))
        runner = asyncio.create_task(_run_legacy_loop(host, interval))
    else:
        runner = asyncio.create_task(
            run_facility_loop(
                facility,
                interval_seconds=settings.poll_interval_seconds,
                window_budget_seconds=settings.window_budget_seconds,
            )
        )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Some platforms may not support signal handlers on the loop.
            pass

    try:
        await stop.wait()
    finally:
        logger.info("Shutting down...")
        runner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await runner
        host.will_terminate()
        # Give the fire-and-forget notice a chance to run.
        await asyncio.sleep(0)
        await host.drain()
        channel.close()


def main() -> None:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)
    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        pass
    logger.info("Bye.")


if __name__ == "__main__":
    main()
