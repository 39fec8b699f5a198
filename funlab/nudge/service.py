import logging
import queue
import threading
from typing import Any, Callable, Optional

from flask import Blueprint, Flask, Response, jsonify, request, stream_with_context

from .config import Config
from .emitter import EventEmitter
from .manager import EventManager, Subscriber

SSE_HEADERS = {
    'Content-Type': 'text/event-stream',
    'Cache-Control': 'no-cache',
    'Connection': 'keep-alive',
}
HEARTBEAT = ': keepalive\n\n'

_CLOSED = object()


class QueueTransport:
    """Per-connection transport that hands written text to a streaming response."""

    def __init__(self, heartbeat_interval: Optional[float] = None):
        self.heartbeat_interval = heartbeat_interval
        self.status: Optional[int] = None
        self.headers: dict[str, str] = {}
        self.is_closed = False
        self._queue: queue.Queue = queue.Queue()
        self._close_callbacks: list[Callable[[], Any]] = []
        self._lock = threading.Lock()

    def start(self, status: int, headers: dict[str, str]):
        if self.status is not None:
            raise RuntimeError("Response already started")
        self.status = status
        self.headers = dict(headers)

    def write(self, text: str):
        if self.is_closed:
            raise ConnectionError("Transport is closed")
        self._queue.put(text)

    def on_close(self, callback: Callable[[], Any]):
        with self._lock:
            if not self.is_closed:
                self._close_callbacks.append(callback)
                return
        callback()

    def close(self):
        with self._lock:
            if self.is_closed:
                return
            self.is_closed = True
            callbacks, self._close_callbacks = self._close_callbacks, []
        self._queue.put(_CLOSED)
        for callback in callbacks:
            callback()

    def stream(self):
        try:
            while True:
                try:
                    text = self._queue.get(timeout=self.heartbeat_interval)
                except queue.Empty:
                    yield HEARTBEAT
                    continue
                if text is _CLOSED:
                    break
                yield text
        finally:
            self.close()


class SSEService:
    """Serves the frames of an EventManager as text/event-stream responses."""

    def __init__(self, source=None, event_specs=None, app: Flask = None):
        self.mylogger = logging.getLogger(self.__class__.__name__)
        self.source = source if source is not None else EventEmitter()
        self.event_mgr: Optional[EventManager] = None
        self.heartbeat_interval = Config.NUDGE_HEARTBEAT_INTERVAL
        self.is_shutting_down = False
        self._transports: set[QueueTransport] = set()
        self._lock = threading.Lock()
        if event_specs is not None:
            self.event_mgr = EventManager(self.source, event_specs)
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask):
        for key, value in Config.defaults().items():
            app.config.setdefault(key, value)
        if self.event_mgr is None:
            self.event_mgr = EventManager(self.source, app.config['NUDGE_EVENTS'])
        self.heartbeat_interval = app.config['NUDGE_HEARTBEAT_INTERVAL']
        app.extensions['nudge'] = self
        blueprint = Blueprint('nudge', __name__, url_prefix=app.config['NUDGE_URL_PREFIX'])
        self.register_routes(blueprint)
        app.register_blueprint(blueprint)

    def connect(self, transport, last_event_id: Any = None) -> Subscriber:
        """Start an SSE response on ``transport`` and subscribe it to the broadcast."""
        if self.event_mgr is None:
            raise RuntimeError("SSEService has no event specs, call init_app() or pass event_specs")
        transport.start(200, dict(SSE_HEADERS))
        transport.write('\n')
        subscriber = self.event_mgr.subscribe(last_event_id, transport.write)
        transport.on_close(subscriber.close)
        return subscriber

    def sse_stream(self, last_event_id: Any = None) -> Response:
        if self.is_shutting_down:
            return Response("SSE service is shutting down", status=503)
        transport = QueueTransport(heartbeat_interval=self.heartbeat_interval)
        subscriber = self.connect(transport, last_event_id)
        with self._lock:
            self._transports.add(transport)
        transport.on_close(lambda: self._discard(transport))
        self.mylogger.info(f"SSE client {subscriber.subscriber_id} connected (last-event-id={last_event_id!r})")
        response = Response(stream_with_context(transport.stream()),
                            status=transport.status, headers=transport.headers)
        # HEAD and aborted responses close without ever running the stream body
        response.call_on_close(transport.close)
        return response

    def _discard(self, transport: QueueTransport):
        with self._lock:
            self._transports.discard(transport)

    def register_routes(self, blueprint: Blueprint):
        @blueprint.route('/stream')
        def stream():
            return self.sse_stream(request.headers.get('Last-Event-ID'))

        @blueprint.route('/stats')
        def stats():
            return jsonify(self.event_mgr.broadcaster.stats())

    def shutdown(self):
        if self.is_shutting_down:
            return
        self.is_shutting_down = True
        self.mylogger.info("Shutting down SSE service...")
        with self._lock:
            transports = list(self._transports)
        for transport in transports:
            transport.close()
        if self.event_mgr is not None:
            self.event_mgr.close()
        self.mylogger.info("All SSE clients have been disconnected")


def nudge(source, event_specs, app: Flask = None) -> SSEService:
    """Relay the events named in ``event_specs`` from ``source`` to SSE clients."""
    return SSEService(source=source, event_specs=event_specs, app=app)
