"""A small, thread-safe event emitter."""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable
from typing import Any

from .log import get_logger

_log = get_logger("wechaty-puppet/events")

DEFAULT_MAX_LISTENERS = 0
"""Listeners allowed per event by default; 0 means unlimited."""

Listener = Callable[..., Any]


class EventEmitter:
    """Registers listeners per event name and calls them synchronously on emit."""

    def __init__(self, max_listeners: int = DEFAULT_MAX_LISTENERS) -> None:
        self._max_listeners = max(max_listeners, 0)
        self._listeners: dict[Hashable, list[Listener]] = {}
        self._lock = threading.Lock()

    @property
    def max_listeners(self) -> int:
        """Listeners allowed per event; 0 means unlimited."""
        return self._max_listeners

    @max_listeners.setter
    def max_listeners(self, value: int) -> None:
        if value < 0:
            _log.warning(
                "(events) warning: MaxListeners must be positive number, tried to set: %d",
                value,
            )
            return
        self._max_listeners = value

    def add_listener(self, event: Hashable, *args: Listener) -> None:
        """Register listeners for an event, in the order given."""
        if not args:
            return
        with self._lock:
            listeners = self._listeners.setdefault(event, [])
            if self._max_listeners > 0 and len(listeners) >= self._max_listeners:
                _log.warning(
                    "(events) warning: possible EventEmitter memory leak detected. "
                    "%d listeners added. Raise max_listeners to increase limit.",
                    len(listeners),
                )
                return
            listeners.extend(args)

    def on(self, event: Hashable, *args: Listener) -> None:
        """Alias of add_listener."""
        self.add_listener(event, *args)

    def once(self, event: Hashable, *args: Listener) -> None:
        """Register listeners that are removed the first time the event fires."""
        self.add_listener(event, *(self._once_wrapper(event, listener) for listener in args))

    def _once_wrapper(self, event: Hashable, listener: Listener) -> Listener:
        fired = threading.Event()
        guard = threading.Lock()

        def wrapper(*data: Any) -> None:
            with guard:
                if fired.is_set():
                    return
                fired.set()
            with self._lock:
                registered = self._listeners.get(event)
                if registered is not None and wrapper in registered:
                    registered.remove(wrapper)
            listener(*data)

        wrapper._original = listener  # type: ignore[attr-defined]
        return wrapper

    def emit(self, event: Hashable, *args: Any) -> None:
        """Call every listener of the event with the given arguments."""
        with self._lock:
            listeners = list(self._listeners.get(event, ()))
        for listener in listeners:
            listener(*args)

    def event_names(self) -> list[Hashable]:
        """Return the events that have been registered, in registration order."""
        with self._lock:
            return list(self._listeners)

    def listener_count(self, event: Hashable) -> int:
        """Return how many listeners the event has."""
        with self._lock:
            return len(self._listeners.get(event, ()))

    def listeners(self, event: Hashable) -> list[Listener]:
        """Return a copy of the event's listeners."""
        with self._lock:
            return list(self._listeners.get(event, ()))

    def remove_all_listeners(self, event: Hashable) -> bool:
        """Forget the event and its listeners; True if it had any listeners."""
        with self._lock:
            listeners = self._listeners.pop(event, None)
        return bool(listeners)

    def remove_listener(self, event: Hashable, listener: Listener) -> bool:
        """Remove the first registration of a listener; True if one was removed."""
        if listener is None:
            return False
        with self._lock:
            listeners = self._listeners.get(event)
            if listeners is None:
                return False
            for registered in listeners:
                if registered is listener or getattr(registered, "_original", None) is listener:
                    listeners.remove(registered)
                    return True
        return False

    def clear(self) -> None:
        """Remove every event and listener."""
        with self._lock:
            self._listeners = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)