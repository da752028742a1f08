import os
import sys
import pytest

# Ensure the backend root (containing the `focusbuddy` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from focusbuddy import create_app, db, socketio
from focusbuddy.services.sessions import clock
from focusbuddy.services.sessions.events import observers

T0_MS = 1_760_000_000_000


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SESSION_ID_LENGTH = 8
    DEEP_LINK_SCHEME = 'focusnest'
    MAX_TASK_LENGTH = 50
    MAX_DURATION_MIN = 180
    REQUIRE_FRIEND_TO_START = True
    COMPLETE_TOLERANCE_SEC = 0
    WAITING_SESSION_TTL_HOURS = 0
    TIMER_HEARTBEAT_SEC = 0


class FakeClock:
    """Pinned server clock, in epoch milliseconds."""

    def __init__(self, now_ms):
        self.now_ms = now_ms

    def advance(self, ms):
        self.now_ms += ms

    def __call__(self):
        return self.now_ms / 1000.0


@pytest.fixture()
def fake_clock(monkeypatch):
    fake = FakeClock(T0_MS)
    monkeypatch.setattr(clock, '_wall_clock', fake)
    return fake


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import focusbuddy.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()
    observers.clear()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


@pytest.fixture()
def make_session(client):
    """Create a session over HTTP and return its JSON payload."""

    def _make(task='Study', duration=25, creator_id='user1', **extra):
        body = {'creator_id': creator_id, 'task': task, 'duration': duration}
        body.update(extra)
        res = client.post('/api/sessions/create', json=body)
        assert res.status_code == 201, res.get_json()
        return res.get_json()

    return _make
