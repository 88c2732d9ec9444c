import os
import sys
import pytest

# Ensure the backend root (containing the `clueboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from clueboard import create_app, db, socketio
from clueboard.errors import StoreUnavailable
from clueboard.services.games.catalog import CategoryPuzzle, PuzzleCatalog, WordPuzzle
from clueboard.services.games.score_store import LeaderboardEntry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LIFE_LIMIT = 4
    LEADERBOARD_SIZE = 5
    PLAYER_IDENTITY_HEADER = 'X-Player-Identity'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import clueboard.models  # noqa: F401
        db.create_all()
        yield application
        application.extensions['clueboard'].registry.end_all()
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
def catalog():
    return PuzzleCatalog(
        {
            'animals': [
                CategoryPuzzle('Tiger', ('Striped', 'Big cat', 'Orange fur', 'Roars in the jungle')),
                CategoryPuzzle('Penguin', ('Cannot fly', 'Lives on ice', 'Wears a tuxedo')),
                CategoryPuzzle('Owl', ('Hoots at night',)),
            ],
            'fruit': [
                CategoryPuzzle('Banana', ('Yellow', 'Curved')),
            ],
            'empty': [],
        },
        [
            WordPuzzle('apple', ('A round fruit', 'Keeps the doctor away')),
            WordPuzzle('river', ('Flowing water', 'Has banks and a mouth')),
            WordPuzzle('ice cream', ('A frozen dessert', 'Served in a cone')),
        ],
    )


class FakeStore:
    """In-memory ScoreStore stand-in that can be told to fail."""

    def __init__(self):
        self.scores = {}
        self.calls = []
        self.fail = False

    def upsert(self, member, score):
        self.calls.append((member, score))
        if self.fail:
            raise StoreUnavailable('database is down')
        self.scores[member] = score

    def top_k(self, k):
        if self.fail:
            raise StoreUnavailable('database is down')
        ranked = sorted(self.scores.items(), key=lambda kv: -kv[1])
        return [LeaderboardEntry(m, s) for m, s in ranked[:k]]


@pytest.fixture()
def fake_store():
    return FakeStore()


def answer_for(catalog, state):
    """The correct guess for whatever puzzle ``state`` is showing."""
    if state.mode.value == 'category_round':
        return catalog.category_puzzle(state.category, state.puzzle_index).name
    return catalog.word_puzzle(state.puzzle_index).word
