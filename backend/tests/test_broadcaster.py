import threading

import pytest

from clueboard.errors import BroadcastUnavailable, InvalidScoreEvent
from clueboard.services.games.broadcaster import Broadcaster, ScoreEvent


class RecordingSocketIO:
    def __init__(self):
        self.emitted = []

    def emit(self, event, payload, to=None, namespace=None):
        self.emitted.append((event, payload, to, namespace))


class ThreadedSocketIO(RecordingSocketIO):
    def __init__(self):
        super().__init__()
        self.tasks = []

    def start_background_task(self, target, *args, **kwargs):
        task = threading.Thread(target=target, args=args, kwargs=kwargs, daemon=True)
        task.start()
        self.tasks.append(task)
        return task


@pytest.mark.parametrize('payload', [
    None,
    {'member': '', 'score': 1},
    {'member': 'ann', 'score': -1},
    {'member': 'ann', 'score': '3'},
    {'member': 'ann', 'score': True},
    {'member': 7, 'score': 3},
])
def test_score_event_rejects_malformed_payloads(payload):
    with pytest.raises(InvalidScoreEvent):
        ScoreEvent.from_payload(payload)


def test_publish_reaches_socket_room_and_subscribers():
    sio = RecordingSocketIO()
    broadcaster = Broadcaster(sio)
    seen = []
    broadcaster.subscribe(lambda m, s: seen.append((m, s)))
    broadcaster.publish('ann', 4)
    assert sio.emitted == [('score_update', {'member': 'ann', 'score': 4}, 'leaderboard', '/ws')]
    assert seen == [('ann', 4)]


def test_late_subscribers_get_no_backlog():
    broadcaster = Broadcaster()
    broadcaster.publish('ann', 1)
    seen = []
    broadcaster.subscribe(lambda m, s: seen.append((m, s)))
    broadcaster.publish('bo', 2)
    assert seen == [('bo', 2)]


def test_events_arrive_in_publish_order():
    broadcaster = Broadcaster()
    seen = []
    broadcaster.subscribe(lambda m, s: seen.append(s))
    for score in range(10):
        broadcaster.publish('ann', score)
    assert seen == list(range(10))


def test_failing_subscriber_does_not_block_others():
    broadcaster = Broadcaster()
    seen = []

    def broken(member, score):
        raise RuntimeError('boom')

    broadcaster.subscribe(broken)
    broadcaster.subscribe(lambda m, s: seen.append(m))
    broadcaster.publish('ann', 1)
    assert seen == ['ann']


def test_cancelled_subscription_stops_delivery():
    broadcaster = Broadcaster()
    seen = []
    sub = broadcaster.subscribe(lambda m, s: seen.append(m))
    sub.cancel()
    sub.cancel()
    broadcaster.publish('ann', 1)
    assert seen == []
    assert broadcaster.subscriber_count == 0


def test_emit_failure_raises_and_skips_local_delivery():
    class Down:
        def emit(self, *args, **kwargs):
            raise OSError('queue down')

    broadcaster = Broadcaster(Down())
    seen = []
    broadcaster.subscribe(lambda m, s: seen.append(m))
    with pytest.raises(BroadcastUnavailable):
        broadcaster.publish('ann', 1)
    assert seen == []


def test_async_delivery_keeps_publish_order():
    sio = ThreadedSocketIO()
    broadcaster = Broadcaster(sio, async_delivery=True)
    count = 50
    seen = []
    done = threading.Event()

    def record(member, score):
        seen.append(score)
        if len(seen) == count:
            done.set()

    broadcaster.subscribe(record)
    for score in range(count):
        broadcaster.publish('ann', score)

    assert done.wait(timeout=5)
    assert seen == list(range(count))
    assert [p['score'] for _, p, _, _ in sio.emitted] == list(range(count))
    # one worker drains the queue for every publish
    assert len(sio.tasks) == 1
