import os
import sys
import pytest

# Ensure the backend root (containing the `multiwatch` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from multiwatch import create_app, db, socketio
from multiwatch.services.clock import ClockConfig, ClockStateMachine, MemoryStore, ManualTicker


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_SEATS = 12
    LOW_TIME_THRESHOLD_SEC = 10
    DEFAULT_ADD_TIME_SEC = 10
    PRESERVE_ELIMINATED_ON_NEW_GAME = True
    PAUSE_ON_ELIMINATION = 'running'
    STOP_WHEN_ROTATION_EXHAUSTED = False


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import multiwatch.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


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
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def make_machine():
    """Build a machine on a MemoryStore and ManualTicker, already initialized."""
    def _make(seats=3, seconds=300, increment=0, policy=None):
        machine = ClockStateMachine(
            ClockConfig(seat_count=seats, seconds_per_seat=seconds, increment_seconds=increment),
            store=MemoryStore(),
            ticker=ManualTicker(),
            policy=policy,
        )
        machine.initialize()
        return machine
    return _make
