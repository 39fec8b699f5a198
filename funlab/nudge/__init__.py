"""funlab-nudge: relay application events to Server-Sent-Events clients.

Frames get sequence ids and are kept for the life of the process, so a
reconnecting client sending Last-Event-ID receives exactly what it missed.
"""
from .config import Config, ConfigurationError, EventSpec, check_validity
from .emitter import EventEmitter
from .handler import EventHandler, make_handler
from .manager import EventManager, HistoryBroadcaster, Subscriber, parse_last_event_id
from .model import PayloadBase, StoredFrame, to_sse
from .service import QueueTransport, SSEService, nudge

__all__ = [
    "Config",
    "ConfigurationError",
    "EventSpec",
    "check_validity",
    "EventEmitter",
    "EventHandler",
    "make_handler",
    "EventManager",
    "HistoryBroadcaster",
    "Subscriber",
    "parse_last_event_id",
    "PayloadBase",
    "StoredFrame",
    "to_sse",
    "QueueTransport",
    "SSEService",
    "nudge",
]
