from typing import Any, Callable

from .config import EventSpec
from .model import to_sse


class EventHandler:
    """Listener for one source event that turns each occurrence into at most one frame.

    The frame passed to ``sink`` carries no id line, the broadcaster assigns ids.
    """

    def __init__(self, source_event_name: str, spec: Any, sink: Callable[[str], Any]):
        spec = EventSpec.from_config(spec, source_event_name)
        self.source_event_name = source_event_name
        self.event_name = spec.name or source_event_name
        self.pre_processor = spec.pre_processor
        self.sink = sink

    def __call__(self, *args) -> None:
        if self.pre_processor is None:
            payload = args[0] if args else None
        else:
            payload = self.pre_processor(*args)
            if payload is None:
                return
        self.sink(to_sse(self.event_name, payload))

    def __repr__(self):
        return f"EventHandler({self.source_event_name!r} -> {self.event_name!r})"


def make_handler(source_event_name: str, spec: Any, sink: Callable[[str], Any]) -> EventHandler:
    return EventHandler(source_event_name, spec, sink)
