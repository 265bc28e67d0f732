import os
import sys
import pytest

# Ensure the backend root (containing the `gamenight` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from gamenight import create_app, db


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = []
    LOG_LEVEL = 'DEBUG'
    SESSION_CODE_LENGTH = 4
    SESSION_CODE_ATTEMPTS = 10
    ENFORCE_ROLES = True
    BCRYPT_LOG_ROUNDS = 4


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        from gamenight.models import seed_game_catalogue
        db.create_all()
        seed_game_catalogue()
        db.session.commit()
    # Leave no context pushed so each test client keeps its own login
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    """Logged-in host."""
    test_client = flask_app.test_client()
    res = test_client.post('/register', json={'username': 'host', 'password': 'secret'})
    assert res.status_code == 201
    return test_client


@pytest.fixture()
def guest(flask_app):
    """A device with no login, the way players connect."""
    return flask_app.test_client()


@pytest.fixture()
def games(client):
    return {g['slug']: g for g in client.get('/api/games/').get_json()}


def _join(test_client, code, name, un_id=None):
    res = test_client.post('/api/sessions/join', json={'code': code, 'name': name, 'unId': un_id or f'un-{name}'})
    assert res.status_code == 200, res.get_json()
    return res.get_json()


@pytest.fixture()
def join(guest):
    def _join_as(code, name, un_id=None, test_client=None):
        return _join(test_client or guest, code, name, un_id)
    return _join_as


@pytest.fixture()
def make_session(client, guest):
    """Create a session and join the named players to it."""
    def _make(*names):
        session = client.post('/api/sessions/create').get_json()
        for name in names:
            session = _join(guest, session['code'], name)
        return session
    return _make
