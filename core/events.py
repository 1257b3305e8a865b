"""Event dispatch and timer bookkeeping for the protocol components.

EventBus gives each component a fixed set of named events. Handlers run
synchronously inside emit(), in subscription order, so a "data ready" event
always sees fully parsed data.

TimerArena tracks every timer a component schedules on the event loop so the
component can cancel all of them when it is torn down.
"""

import asyncio
from typing import Callable


class EventBus:
    """Named publish/subscribe channels for one component instance."""

    def __init__(self, *names: str):
        self._handlers: dict[str, list[Callable]] = {name: [] for name in names}

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    def subscribe(self, name: str, handler: Callable) -> Callable[[], None]:
        """Register a handler for an event.

        Returns:
            Unsubscribe handle; calling it more than once is harmless
        """
        if name not in self._handlers:
            raise KeyError(f"Unknown event '{name}'")
        self._handlers[name].append(handler)

        def unsubscribe():
            handlers = self._handlers[name]
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(self, name: str, *args):
        """Run every handler of the event before returning."""
        for handler in list(self._handlers[name]):
            handler(*args)

    def handler_count(self, name: str) -> int:
        return len(self._handlers[name])


class Subscriptions:
    """Unsubscribe handles collected so they can be released together."""

    def __init__(self):
        self._handles: list[Callable[[], None]] = []

    def add(self, handle: Callable[[], None]):
        self._handles.append(handle)

    def release(self):
        for handle in self._handles:
            handle()
        self._handles = []

    def __len__(self):
        return len(self._handles)


class TimerArena:
    """Cancellable timers owned by one component."""

    def __init__(self):
        self._handles: set[asyncio.TimerHandle] = set()

    def call_later(self, delay: float, callback: Callable, *args) -> asyncio.TimerHandle:
        """Schedule callback(*args) after delay seconds on the running loop."""
        loop = asyncio.get_running_loop()
        handle = None

        def fire():
            self._handles.discard(handle)
            callback(*args)

        handle = loop.call_later(delay, fire)
        self._handles.add(handle)
        return handle

    def cancel(self, handle: asyncio.TimerHandle):
        handle.cancel()
        self._handles.discard(handle)

    def cancel_all(self):
        for handle in self._handles:
            handle.cancel()
        self._handles = set()

    @property
    def pending(self) -> int:
        return len(self._handles)
