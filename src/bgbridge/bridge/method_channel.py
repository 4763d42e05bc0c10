# src/bgbridge/bridge/method_channel.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from ..core.errors import ChannelClosedError, InvalidArgumentError
from ..core.ports import ResultCallback

logger = logging.getLogger(__name__)

INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
HANDLER_FAILED = "HANDLER_FAILED"


class _NotImplemented:
    def __repr__(self) -> str:
        return "METHOD_NOT_IMPLEMENTED"


METHOD_NOT_IMPLEMENTED = _NotImplemented()


@dataclass(slots=True, frozen=True)
class MethodCall:
    method: str
    arguments: Any = None


@dataclass(slots=True, frozen=True)
class MethodCallError:
    """Structured error reply. Sent back to the caller instead of raising."""

    code: str
    message: str | None = None
    details: Any = None


MethodHandler = Callable[[MethodCall], Any]


class MethodCallRouter:
    """Name -> handler registry for app -> core method calls."""

    def __init__(self) -> None:
        self._handlers: dict[str, MethodHandler] = {}

    def register(self, name: str, handler: MethodHandler) -> None:
        self._handlers[name] = handler

    def names(self) -> list[str]:
        return list(self._handlers)

    def handle(self, call: MethodCall) -> Any:
        """
        Dispatch call to its handler.

        Returns the handler's reply, a MethodCallError or METHOD_NOT_IMPLEMENTED.
        Never raises.
        """
        handler = self._handlers.get(call.method)
        if handler is None:
            logger.debug("No handler for method %s", call.method)
            return METHOD_NOT_IMPLEMENTED

        try:
            return handler(call)
        except InvalidArgumentError as e:
            return MethodCallError(code=INVALID_ARGUMENTS, message="Invalid arguments", details=str(e))
        except Exception as e:
            logger.exception("Method handler failed method=%s", call.method)
            return MethodCallError(code=HANDLER_FAILED, message=str(e))


AppHandler = Callable[[Any], Awaitable[Any]]


class LocalAppChannel:
    """
    In-process channel between the core and an application layer living on the same loop.

    - core -> app: invoke_method() runs the app handler as a task and passes its
      reply to the callback
    - app -> core: call() goes through the core's method call handler
    """

    def __init__(self, name: str = "bgbridge/channel") -> None:
        self.name = name
        self.closed = False
        self._app_handlers: dict[str, AppHandler] = {}
        self._core_handler: Callable[[MethodCall], Any] | None = None
        self._tasks: set[asyncio.Task] = set()

    # ---- app side ----

    def on(self, method: str, handler: AppHandler) -> None:
        self._app_handlers[method] = handler

    async def call(self, method: str, arguments: Any = None) -> Any:
        if self.closed:
            raise ChannelClosedError(self.name)
        if self._core_handler is None:
            return METHOD_NOT_IMPLEMENTED
        return self._core_handler(MethodCall(method=method, arguments=arguments))

    # ---- core side ----

    def set_method_call_handler(self, handler: Callable[[MethodCall], Any] | None) -> None:
        self._core_handler = handler

    def invoke_method(
            self,
            method: str,
            arguments: Any = None,
            callback: ResultCallback | None = None,
    ) -> None:
        if self.closed:
            raise ChannelClosedError(self.name)

        handler = self._app_handlers.get(method)
        if handler is None:
            if callback is not None:
                asyncio.get_running_loop().call_soon(callback, METHOD_NOT_IMPLEMENTED)
            return

        task = asyncio.get_running_loop().create_task(self._run_app_handler(handler, arguments, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_app_handler(
            self,
            handler: AppHandler,
            arguments: Any,
            callback: ResultCallback | None,
    ) -> None:
        try:
            reply = await handler(arguments)
        except Exception as e:
            logger.exception("App handler failed")
            reply = MethodCallError(code=HANDLER_FAILED, message=str(e))
        if callback is not None:
            callback(reply)

    def close(self) -> None:
        self.closed = True
