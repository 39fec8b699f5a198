"""In-process event source.

Any object with ``on(event_name, listener)`` and ``remove_listener(event_name, listener)``
can feed an EventManager; this one is used when the application has none of its own.
"""
import threading
from collections import defaultdict
from typing import Callable


class EventEmitter:
    def __init__(self):
        self._listeners: dict[str, list[Callable]] = defaultdict(list)
        self._lock = threading.Lock()

    def on(self, event_name: str, listener: Callable) -> Callable:
        with self._lock:
            self._listeners[event_name].append(listener)
        return listener

    def remove_listener(self, event_name: str, listener: Callable):
        with self._lock:
            listeners = self._listeners.get(event_name)
            if listeners and listener in listeners:
                listeners.remove(listener)
                if not listeners:
                    del self._listeners[event_name]

    def listeners(self, event_name: str) -> list[Callable]:
        with self._lock:
            return list(self._listeners.get(event_name, ()))

    def emit(self, event_name: str, *args) -> bool:
        """Call every listener of ``event_name`` in registration order.

        Listener exceptions propagate to the caller. Returns False when nobody listens.
        """
        listeners = self.listeners(event_name)
        for listener in listeners:
            listener(*args)
        return bool(listeners)
