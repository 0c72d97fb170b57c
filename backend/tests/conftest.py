import os
import sys
import pytest

# Ensure the backend root (containing the `pincer` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from pincer import create_app, socketio
from pincer.game.engine import GameEngine
from pincer.game.pieces import Color, Pawn, Posture


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    LOG_LEVEL = 'DEBUG'
    CORS_ORIGINS = []
    SOCKETIO_NAMESPACE = '/'
    DEFAULT_BOARD_SIZE = 13
    ALLOWED_BOARD_SIZES = (9, 11, 13, 15)
    # Short enough for tests to wait it out
    ROOM_CLEANUP_GRACE_SEC = 0.2
    ROOM_CODE_LENGTH = 6


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def rooms(flask_app):
    return flask_app.extensions['room_manager']


@pytest.fixture()
def sio_factory(flask_app):
    """Connect Socket.IO test clients with the given identity token."""
    clients = []

    def _connect(token='player-1'):
        auth = {'token': token} if token is not None else {}
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            auth=auth,
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        if test_client.is_connected():
            test_client.disconnect()


@pytest.fixture()
def place():
    """Put a pawn straight onto an engine's grid, bypassing the rules."""

    def _place(engine: GameEngine, r: int, c: int, color: Color, posture: Posture = Posture.OLD) -> Pawn:
        pawn = Pawn(color, posture)
        engine.grid[r][c] = pawn
        return pawn

    return _place
