import pytest
from sqlalchemy.exc import OperationalError

from clueboard import db
from clueboard.errors import StoreUnavailable
from clueboard.models import ScoreRecord
from clueboard.services.games.broadcaster import Broadcaster
from clueboard.services.games.leaderboard import LeaderboardCache
from clueboard.services.games.score_store import LeaderboardEntry, ScoreStore


@pytest.fixture()
def store(flask_app):
    return ScoreStore(db.session)


def test_upsert_inserts_then_replaces(store):
    store.upsert('ann', 5)
    store.upsert('ann', 3)
    assert store.get('ann') == 3
    assert ScoreRecord.query.filter_by(member='ann').count() == 1
    assert store.get('nobody') is None


def test_top_k_is_descending_and_bounded(store):
    for member, score in [('a', 1), ('b', 7), ('c', 3), ('d', 9), ('e', 2), ('f', 5), ('g', 4)]:
        store.upsert(member, score)
    top = store.top_k(5)
    assert len(top) == 5
    assert [e.score for e in top] == [9, 7, 5, 4, 3]
    assert top[0] == LeaderboardEntry('d', 9)
    assert store.top_k(0) == []


def test_ties_go_to_earliest_recorded(store):
    store.upsert('late', 1)
    store.upsert('first', 6)
    store.upsert('second', 6)
    store.upsert('late', 6)
    assert [e.member for e in store.top_k(3)] == ['first', 'second', 'late']
    # rewriting the same score keeps the original position
    store.upsert('first', 6)
    assert store.top_k(1)[0].member == 'first'


def test_reset_removes_everything(store):
    store.upsert('ann', 2)
    store.upsert('bo', 4)
    assert store.reset() == 2
    assert store.top_k(5) == []


class BrokenSession:
    def __init__(self):
        self.rolled_back = 0

    def query(self, *args, **kwargs):
        raise OperationalError('SELECT 1', {}, Exception('connection refused'))

    def rollback(self):
        self.rolled_back += 1


def test_backend_errors_become_store_unavailable():
    session = BrokenSession()
    store = ScoreStore(session)
    with pytest.raises(StoreUnavailable):
        store.upsert('ann', 1)
    with pytest.raises(StoreUnavailable):
        store.top_k(5)
    assert session.rolled_back == 2


def test_cache_ranks_ties_like_the_store(store):
    store.upsert('first', 6)
    store.upsert('second', 6)
    broadcaster = Broadcaster()
    cache = LeaderboardCache()
    cache.attach(broadcaster)
    cache.seed(store)
    store.upsert('first', 6)
    broadcaster.publish('first', 6)
    assert cache.entries == store.top_k(5)
