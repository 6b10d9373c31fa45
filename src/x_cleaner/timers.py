"""Cancellable timers on top of an event loop's call_later().

Any object with asyncio's ``call_later(delay, callback, *args)`` signature
returning a handle with ``cancel()`` can drive these.
"""

import asyncio
from collections.abc import Callable, Hashable


class KeyedTimers:
    """At most one pending timer per key; starting a key replaces its timer."""

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop
        self._handles: dict[Hashable, asyncio.TimerHandle] = {}

    def start(self, key: Hashable, delay: float, callback: Callable, *args) -> None:
        self.cancel(key)
        self._handles[key] = self._loop.call_later(
            delay, self._fire, key, callback, args
        )

    def _fire(self, key: Hashable, callback: Callable, args: tuple) -> None:
        self._handles.pop(key, None)
        callback(*args)

    def cancel(self, key: Hashable) -> bool:
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._handles

    def __len__(self) -> int:
        return len(self._handles)


class DebounceTimer:
    """Trailing-edge debounce: only the last trigger in a burst fires."""

    def __init__(self, loop: asyncio.AbstractEventLoop, delay: float, callback: Callable):
        self._loop = loop
        self.delay = delay
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None

    def trigger(self) -> None:
        self.cancel()
        self._handle = self._loop.call_later(self.delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        self._callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def pending(self) -> bool:
        return self._handle is not None
