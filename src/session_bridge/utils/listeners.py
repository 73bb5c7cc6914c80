"""Listener sets with explicit unsubscribe handles.

Each subscriber gets its own _Listener record. Unsubscribing flips the
record inactive and removes it, and every delivery re-checks the flag on the
event-loop thread right before invoking the callback. A delivery that was
already scheduled when the handle ran is therefore dropped, never delivered.
"""

from __future__ import annotations

__all__ = [
    "ListenerSet",
    "Unsubscribe",
]

import asyncio
from typing import Callable, Generic, TypeVar

from session_bridge.telemetry.system.system_logger import get_system_logger

T = TypeVar("T")

Unsubscribe = Callable[[], None]

logger = get_system_logger()


class _Listener(Generic[T]):
    """One registered callback and its liveness flag."""

    __slots__ = ("callback", "active")

    def __init__(self, callback: Callable[[T], None]) -> None:
        self.callback = callback
        self.active = True


class ListenerSet(Generic[T]):
    """Ordered set of callbacks receiving values of type T.

    Supports synchronous emission (emit) and emission on the next event-loop
    turn (emit_soon). Deliveries scheduled with emit_soon run in FIFO order.

    Usage:
        listeners: ListenerSet[str] = ListenerSet("names")
        unsubscribe = listeners.add(print)
        listeners.emit("ann")
        unsubscribe()
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._listeners: list[_Listener[T]] = []
        self._pending = 0

    def __len__(self) -> int:
        return len(self._listeners)

    def add(self, callback: Callable[[T], None]) -> Unsubscribe:
        """Register a callback.

        Returns:
            Idempotent handle. After it returns, the callback is never invoked
            again, including for deliveries already scheduled.
        """
        listener: _Listener[T] = _Listener(callback)
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if not listener.active:
                return
            listener.active = False
            self._listeners.remove(listener)

        return unsubscribe

    def add_and_deliver_soon(self, callback: Callable[[T], None], value: T) -> Unsubscribe:
        """Register a callback and schedule one delivery of value to it alone.

        Used to hand new subscribers the current state.

        Raises:
            RuntimeError: If no event loop is running.
        """
        asyncio.get_running_loop()
        unsubscribe = self.add(callback)
        self._schedule(self._listeners[-1], value)
        return unsubscribe

    def emit(self, value: T) -> None:
        """Invoke every active callback now, in registration order."""
        for listener in list(self._listeners):
            self._deliver(listener, value)

    def emit_soon(self, value: T) -> None:
        """Schedule delivery of value to every current callback.

        Raises:
            RuntimeError: If no event loop is running.
        """
        for listener in list(self._listeners):
            self._schedule(listener, value)

    async def wait_idle(self) -> None:
        """Wait until every scheduled delivery has run or been dropped."""
        while self._pending:
            await asyncio.sleep(0)

    def clear(self) -> None:
        """Deactivate and remove all callbacks."""
        for listener in self._listeners:
            listener.active = False
        self._listeners.clear()

    def _schedule(self, listener: _Listener[T], value: T) -> None:
        loop = asyncio.get_running_loop()
        self._pending += 1
        loop.call_soon(self._run_scheduled, listener, value)

    def _run_scheduled(self, listener: _Listener[T], value: T) -> None:
        try:
            self._deliver(listener, value)
        finally:
            self._pending -= 1

    def _deliver(self, listener: _Listener[T], value: T) -> None:
        if not listener.active:
            return
        try:
            listener.callback(value)
        except Exception as e:
            # One faulty subscriber must not starve the others
            logger.error(
                {
                    "event": "listener_callback_failed",
                    "listener_set": self._name,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
                exc_info=True,
            )
