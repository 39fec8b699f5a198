import logging
import threading
import time
import uuid
from collections import deque
from typing import Any, Callable, Optional

from .config import check_validity
from .handler import EventHandler, make_handler
from .model import StoredFrame


def parse_last_event_id(value: Any) -> Optional[int]:
    """Client's last-seen id, or None when absent, non-numeric or negative."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    text = str(value).strip()
    if not text.isdecimal():
        return None
    return int(text)


class Subscriber:
    """One client's registration on a HistoryBroadcaster."""

    def __init__(self, broadcaster: 'HistoryBroadcaster', callback: Callable[[str], Any]):
        self.subscriber_id = uuid.uuid4().hex[:8]
        self.broadcaster = broadcaster
        self.callback = callback
        self.connected_at = time.time()
        self.live_from = 0  # frames below this id came from replay
        self.is_closed = False

    def close(self):
        self.broadcaster.unsubscribe(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self):
        return f"Subscriber({self.subscriber_id}, closed={self.is_closed})"


class HistoryBroadcaster:
    """
    Assigns sequence ids to frames, keeps every frame for the life of the process
    and fans them out to subscribers.

    - ids start at 0 and increase by one per commit
    - subscribe() replays history after the client's last-seen id before returning
    - commit, subscribe and unsubscribe share one lock, so no frame falls between replay and registration
    """

    def __init__(self):
        self.mylogger = logging.getLogger(self.__class__.__name__)
        self._history: list[StoredFrame] = []
        self._subscribers: dict[str, Subscriber] = {}
        self._pending: deque = deque()
        self._delivering = False
        self.lock = threading.RLock()
        self.started_at = time.time()

    @property
    def history(self) -> tuple[StoredFrame, ...]:
        with self.lock:
            return tuple(self._history)

    @property
    def next_id(self) -> int:
        return len(self._history)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def commit(self, frame: str) -> int:
        """Store ``frame`` under the next id and deliver it to every subscriber."""
        with self.lock:
            event_id = len(self._history)
            stored = StoredFrame(id=event_id, text=f"id: {event_id}\n{frame}")
            self._history.append(stored)
            self._pending.append(stored)
            # a callback committing again only queues; the outermost commit delivers in id order
            if not self._delivering:
                self._delivering = True
                try:
                    while self._pending:
                        self._fan_out(self._pending.popleft())
                finally:
                    self._delivering = False
            return event_id

    def _fan_out(self, stored: StoredFrame):
        for subscriber in list(self._subscribers.values()):
            if not subscriber.is_closed and stored.id >= subscriber.live_from:
                self._deliver(subscriber, stored)

    def replay_start(self, last_event_id: Any) -> int:
        event_id = parse_last_event_id(last_event_id)
        if event_id is None:
            if last_event_id is not None:
                self.mylogger.debug(f"Ignoring malformed last-event-id {last_event_id!r}, replaying all")
            return 0
        if event_id >= len(self._history):
            self.mylogger.debug(f"Last-event-id {event_id} is beyond history ({len(self._history)}), replaying all")
            return 0
        return event_id + 1

    def subscribe(self, last_event_id: Any, callback: Callable[[str], Any]) -> Subscriber:
        subscriber = Subscriber(self, callback)
        with self.lock:
            index = self.replay_start(last_event_id)
            self.mylogger.debug(f"Subscriber {subscriber.subscriber_id} replaying from id {index}")
            # history may grow while replaying if a callback commits
            while index < len(self._history) and not subscriber.is_closed:
                self._deliver(subscriber, self._history[index])
                index += 1
            if not subscriber.is_closed:
                subscriber.live_from = index
                self._subscribers[subscriber.subscriber_id] = subscriber
                self.mylogger.info(f"Subscriber {subscriber.subscriber_id} registered (total={len(self._subscribers)})")
        return subscriber

    def unsubscribe(self, subscriber: Subscriber):
        with self.lock:
            subscriber.is_closed = True
            if self._subscribers.pop(subscriber.subscriber_id, None) is not None:
                self.mylogger.info(f"Subscriber {subscriber.subscriber_id} unregistered (total={len(self._subscribers)})")

    def _deliver(self, subscriber: Subscriber, stored: StoredFrame):
        try:
            subscriber.callback(stored.text)
        except Exception:
            self.mylogger.exception(f"Delivery of frame {stored.id} to subscriber {subscriber.subscriber_id} failed")
            self.unsubscribe(subscriber)

    def close(self):
        with self.lock:
            for subscriber in list(self._subscribers.values()):
                self.unsubscribe(subscriber)

    def stats(self) -> dict:
        with self.lock:
            last_frame = self._history[-1] if self._history else None
            return {
                'frames': len(self._history),
                'subscribers': len(self._subscribers),
                'clients': [{'id': subscriber.subscriber_id, 'connected_s': time.time() - subscriber.connected_at}
                            for subscriber in self._subscribers.values()],
                'last_frame_at': last_frame.local_created_at.isoformat() if last_frame else None,
                'uptime': time.time() - self.started_at,
            }


class EventManager:
    """Attaches one EventHandler per configured source event and commits their frames."""

    def __init__(self, source, event_specs, broadcaster: HistoryBroadcaster = None):
        self.mylogger = logging.getLogger(self.__class__.__name__)
        self.source = source
        self.event_specs = check_validity(event_specs)
        self.broadcaster = broadcaster if broadcaster is not None else HistoryBroadcaster()
        self.handlers: dict[str, EventHandler] = {}
        for event_name, spec in self.event_specs.items():
            handler = make_handler(event_name, spec, self.broadcaster.commit)
            self.source.on(event_name, handler)
            self.handlers[event_name] = handler
        self.mylogger.info(f"Listening to events: {', '.join(self.handlers) or '(none)'}")

    def subscribe(self, last_event_id: Any, callback: Callable[[str], Any]) -> Subscriber:
        return self.broadcaster.subscribe(last_event_id, callback)

    def close(self):
        remove_listener = getattr(self.source, 'remove_listener', None)
        if remove_listener is not None:
            for event_name, handler in self.handlers.items():
                remove_listener(event_name, handler)
        self.handlers.clear()
        self.broadcaster.close()
