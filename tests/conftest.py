import threading

import pytest

from hello.app import create_app
from hello.config import Settings
from hello.server import build_server


@pytest.fixture
def settings():
    return Settings(host="127.0.0.1", port=0)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def live_server(app, settings):
    server = build_server(app, settings)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)
