import pytest
from flask import Flask

from funlab.nudge import EventEmitter, HistoryBroadcaster, SSEService


class FakeTransport:
    def __init__(self):
        self.status = []
        self.headers = []
        self.written = []
        self.close_callbacks = []

    def start(self, status, headers):
        self.status.append(status)
        self.headers.append(headers)

    def write(self, text):
        self.written.append(text)

    def on_close(self, callback):
        self.close_callbacks.append(callback)

    def close(self):
        for callback in self.close_callbacks:
            callback()


@pytest.fixture
def emitter():
    return EventEmitter()


@pytest.fixture
def broadcaster():
    return HistoryBroadcaster()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def app(emitter):
    app = Flask(__name__)
    app.config.update(TESTING=True, NUDGE_EVENTS={'test': True})
    service = SSEService(source=emitter, app=app)
    yield app
    service.shutdown()


@pytest.fixture
def client(app):
    return app.test_client()
