"""Score update fan-out.

Every published event goes to the Socket.IO ``leaderboard`` room (so browser
clients can follow along) and to every in-process subscriber, which is how
each live session keeps its leaderboard cache current.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, List

from clueboard.errors import BroadcastUnavailable, InvalidScoreEvent

logger = logging.getLogger(__name__)

LEADERBOARD_ROOM = 'leaderboard'
SCORE_UPDATE_EVENT = 'score_update'


@dataclass(frozen=True)
class ScoreEvent:
    member: str
    score: int

    @classmethod
    def from_payload(cls, payload) -> 'ScoreEvent':
        if not isinstance(payload, dict):
            raise InvalidScoreEvent(f"expected an object, got {type(payload).__name__}")
        member = payload.get('member')
        score = payload.get('score')
        if not isinstance(member, str) or not member.strip():
            raise InvalidScoreEvent('member must be a non-empty string')
        # bool is an int subclass; a True score is a client bug, not 1 point
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise InvalidScoreEvent('score must be a non-negative integer')
        return cls(member=member, score=score)

    def to_payload(self) -> dict:
        return {'member': self.member, 'score': self.score}


Handler = Callable[[str, int], None]


class Subscription:
    def __init__(self, broadcaster: 'Broadcaster', handler: Handler):
        self._broadcaster = broadcaster
        self.handler = handler
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._broadcaster._remove(self)


class Broadcaster:
    def __init__(self, socketio=None, room: str = LEADERBOARD_ROOM, namespace: str = '/ws', async_delivery: bool = False):
        self._socketio = socketio
        self._room = room
        self._namespace = namespace
        self._async = async_delivery and socketio is not None
        self._subs: List[Subscription] = []
        self._lock = threading.Lock()
        self._queue: 'queue.Queue[ScoreEvent]' = queue.Queue()
        self._worker_started = False

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def subscribe(self, handler: Handler) -> Subscription:
        """Call ``handler(member, score)`` for every event published from now on."""
        sub = Subscription(self, handler)
        with self._lock:
            self._subs.append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            try:
                self._subs.remove(sub)
            except ValueError:
                pass

    def publish(self, member: str, score: int) -> ScoreEvent:
        event = ScoreEvent.from_payload({'member': member, 'score': score})
        if self._socketio is not None:
            try:
                self._socketio.emit(SCORE_UPDATE_EVENT, event.to_payload(), to=self._room, namespace=self._namespace)
            except Exception as exc:
                logger.warning(f"[broadcast-unavailable] member={member} score={score} error={exc}")
                raise BroadcastUnavailable(str(exc)) from exc
        if self._async:
            # One FIFO queue keeps each publisher's events in order
            self._queue.put(event)
            self._ensure_worker()
        else:
            self._deliver(event)
        return event

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker_started:
                return
            self._worker_started = True
        self._socketio.start_background_task(self._drain)

    def _drain(self) -> None:
        while True:
            event = self._queue.get()
            try:
                self._deliver(event)
            finally:
                self._queue.task_done()

    def _deliver(self, event: ScoreEvent) -> None:
        with self._lock:
            subs = list(self._subs)
        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.handler(event.member, event.score)
            except Exception:
                logger.exception(f"[subscriber-error] member={event.member} score={event.score}")
