import os
import sys
import pytest

# Ensure the backend root (containing the `guessroom` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from guessroom import create_app, db, socketio
from guessroom.services.games import get_services
from guessroom.services.games.definitions import Definition, DefinitionProvider


PILLOW = Definition(
    'PILLOW',
    'A celestial cushion of divine comfort, blessed by the gods for mortal repose',
    'Soft as a cloud',
    'Found where mortals rest',
)


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = '*'
    DEFAULT_TOTAL_ROUNDS = 5
    DEFAULT_ROUND_TIME_SEC = 60
    ROUND_END_DELAY_SEC = 5
    EARLY_END_DELAY_SEC = 5
    EARLY_END_POLICY = 'all_answered'
    ROUND_TIMER_ENABLED = False
    HINT1_AT_SEC = 40
    HINT2_AT_SEC = 20
    MIN_PLAYERS = 2


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import guessroom.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def services(flask_app):
    game_services = get_services()
    # Every round uses the same word so tests can guess it
    game_services.coordinator.definitions = DefinitionProvider([PILLOW])
    return game_services


@pytest.fixture()
def coordinator(services):
    return services.coordinator


@pytest.fixture()
def store(services):
    return services.store


@pytest.fixture()
def scheduler(services):
    return services.scheduler


@pytest.fixture()
def room_with_players(coordinator):
    """A room with two joined players; Alice is the host."""
    room = coordinator.create_room()
    room, alice = coordinator.join_room(room.code, 'Alice')
    room, bob = coordinator.join_room(room.code, 'Bob')
    return room.id, alice.id, bob.id


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
